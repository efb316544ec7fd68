class SyncError(Exception):
    """Base exception for the offline sync client."""


class StorageError(SyncError):
    """Local cache read/write/serialisation failed."""


class NetworkError(SyncError):
    """The sync endpoint could not be reached (no route, DNS, timeout)."""


class RemoteRejected(SyncError):
    """The sync endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class InvalidResponse(SyncError):
    """The sync endpoint answered 2xx with a body that is not JSON."""
