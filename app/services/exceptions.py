class GatewayError(Exception):
    """Base exception for every failure the prediction gateway reports."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(GatewayError):
    """Raised when the upload is missing or unreadable; never reaches the upstream."""

    status_code = 400


class UpstreamError(GatewayError):
    """Raised when the inference service fails or answers with something unrecognized."""


class InternalError(GatewayError):
    """Raised on local I/O failures such as the temporary upload write."""


class UpstreamQueued(Exception):
    """Raised form of the queued sentinel: the job is waiting in the upstream queue."""

    type = "status"
    queue = True

    def __init__(self, message: str = "Prediction queued", queue_size: int | None = None) -> None:
        super().__init__(message)
        self.queue_size = queue_size
