"""Error types raised while configuring and running a deploy."""


class DeployError(RuntimeError):
    """Base class for every failure that aborts a deploy run."""


class ConfigurationError(DeployError):
    """Missing required input, or an input path that does not exist."""


class RequestConstructionError(DeployError):
    """Local I/O failure while building the multipart upload body."""


class TransportError(DeployError):
    """Network-level failure while performing the upload request."""


class ServerError(DeployError):
    """The distribution service answered with a non-success status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        message = f"Upload failed with status code {status_code}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)


class ResponseParseError(DeployError):
    """The response body is not JSON of the expected shape."""


class SinkError(RuntimeError):
    """A value could not be written to the environment store."""
