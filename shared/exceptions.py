"""Error types shared by all clients and services of the search bridge."""


class BridgeError(Exception):
    """Base class for every error raised by the bridge itself."""


class ConfigurationError(BridgeError, ValueError):
    """A required setting is missing or invalid. Raised while constructing clients."""


class InvalidRecord(BridgeError, AssertionError):
    """A record reference passed to the tracker or formatter is missing or malformed.

    This signals a caller error, not a runtime condition to recover from.
    """


class AdapterError(BridgeError):
    """Any failure of a call to the remote search index (network, auth, quota)."""


class ClientRequestError(BridgeError):
    """An HTTP request answered with a non-2xx status.

    Attributes:
        url (str): The requested URL.
        status_code (int): The HTTP status returned by the backend.
    """

    def __init__(self, url: str, status_code: int, detail: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Request to {url} failed with status {status_code}")
