import json, pathlib

DEFAULT_SETTINGS_PATH = "config/appsettings.json"


def load_appsettings(path: str | pathlib.Path = DEFAULT_SETTINGS_PATH) -> dict:
    p = pathlib.Path(path)
    if not p.exists():
        return {}
    try:
        text = p.read_text(encoding="utf-8").strip()
        if not text:
            return {}
        data = json.loads(text)
    except (OSError, ValueError):
        # malformed JSON → fall back to defaults
        return {}
    return data if isinstance(data, dict) else {}


def get_http_config(settings: dict | None = None) -> dict:
    cfg = (settings if settings is not None else load_appsettings()).get("http", {})
    return {
        "timeout_seconds": float(cfg.get("timeout_seconds", 30)),
        "max_retries": int(cfg.get("max_retries", 0)),
        "max_concurrency": int(cfg.get("max_concurrency", 10)),
        "pacing_delay_ms": float(cfg.get("pacing_delay_ms", 1)),
    }


def get_directory_config(settings: dict | None = None) -> dict:
    cfg = (settings if settings is not None else load_appsettings()).get("directory", {})
    return {
        "base_url": str(cfg.get("base_url", "https://graph.microsoft.com")).rstrip("/"),
        "api_version": str(cfg.get("api_version", "beta")).strip("/"),
        "token_env": str(cfg.get("token_env", "ACCESS_TOKEN")),
        "prefetch_workers": int(cfg.get("prefetch_workers", 1)),
    }
