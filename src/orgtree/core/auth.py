from __future__ import annotations
import os
from typing import Mapping

import msal
import requests

SCOPES = ["https://graph.microsoft.com/.default"]

APP_CREDENTIAL_VARS = ("ORGTREE_TENANT_ID", "ORGTREE_CLIENT_ID", "ORGTREE_CLIENT_SECRET")


class AuthError(Exception):
    code = "auth_error"; hint = "Unknown error."
    def __init__(self, message: str = "", *, hint: str | None = None):
        super().__init__(message or self.__class__.__name__)
        if hint: self.hint = hint

class ConfigError(AuthError):
    code = "config_error"; hint = "Export a bearer token before running."
class TokenAcquisitionError(AuthError):
    code = "token_error"; hint = "App credentials were rejected or consent is missing."


def build_authority(tenant_id: str) -> str:
    return f"https://login.microsoftonline.com/{tenant_id}"


def msal_acquire_token(client_id: str, client_secret: str, authority: str) -> str:
    try:
        app = msal.ConfidentialClientApplication(
            client_id=client_id,
            client_credential=client_secret,
            authority=authority,
        )
        res = app.acquire_token_for_client(scopes=SCOPES)
    except requests.exceptions.RequestException as ex:
        raise TokenAcquisitionError(f"network error while acquiring token: {ex}") from ex
    except ValueError as ex:
        # msal validates the authority eagerly
        raise TokenAcquisitionError(str(ex)) from ex

    if "access_token" not in res:
        raise TokenAcquisitionError(res.get("error_description") or "token request failed")
    return res["access_token"]


def resolve_token(token_env: str = "ACCESS_TOKEN", environ: Mapping[str, str] | None = None) -> str:
    """
    Bearer token for the run. The token variable wins; otherwise app credentials
    (all three ORGTREE_* variables) go through MSAL client credentials.
    """
    env = os.environ if environ is None else environ
    token = (env.get(token_env) or "").strip()
    if token:
        return token

    tenant_id, client_id, client_secret = ((env.get(k) or "").strip() for k in APP_CREDENTIAL_VARS)
    if tenant_id and client_id and client_secret:
        return msal_acquire_token(client_id, client_secret, build_authority(tenant_id))

    raise ConfigError(f"{token_env} environment variable is not set")
