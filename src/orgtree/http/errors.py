class DirectoryError(Exception):
    """Anything that goes wrong talking to the directory service."""


class TransportError(DirectoryError):
    def __init__(self, url: str, message: str = ""):
        super().__init__(message or f"request to {url} failed")
        self.url = url


class RemoteError(DirectoryError):
    def __init__(self, status: int, url: str, message: str = "", body_snippet: str = ""):
        super().__init__(message or f"HTTP {status} for {url}")
        self.status = status
        self.url = url
        self.body_snippet = body_snippet

    def __str__(self) -> str:
        base = f"{self.args[0]} ({self.status} {self.url})"
        return f"{base}: {self.body_snippet}" if self.body_snippet else base


class UnauthorizedError(RemoteError): pass         # 401
class ForbiddenError(RemoteError): pass            # 403
class NotFoundError(RemoteError): pass             # 404
class ThrottleError(RemoteError): pass             # 429
class ServerError(RemoteError): pass               # 5xx


class DeserializationError(DirectoryError):
    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url
