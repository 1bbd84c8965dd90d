"""Error taxonomy shared by the YAPI client, the stores and the reconciler."""


class ApiHubError(Exception):
    """Base class for every error raised by apihub."""


class InvalidConfigError(ApiHubError):
    """A required sync or connection setting is missing."""


class ConnectionFailedError(ApiHubError):
    """The remote host could not be reached (DNS, refused, timeout, bad HTTP status)."""


class RemoteError(ApiHubError):
    """The remote host answered with a non-zero application error code."""

    def __init__(self, message: str, errcode: int | None = None):
        super().__init__(message)
        self.errcode = errcode


class NoInterfacesError(RemoteError):
    """Neither fetch strategy returned any interface for the remote project."""


class DecodeError(ApiHubError):
    """A remote payload could not be decoded into the expected shape."""


class NotFoundError(ApiHubError):
    """A local project, collection or endpoint does not exist."""


class StorageError(ApiHubError):
    """A local persistence operation failed."""


class CancelledError(ApiHubError):
    """The operation was cancelled or ran past its deadline."""
