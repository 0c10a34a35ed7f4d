"""Error taxonomy for report generation.

Every error is terminal for the call that raised it: generation is
all-or-nothing and no partial report is ever returned.
"""


class ReportError(Exception):
    """Base class for all report generation failures."""


class ConfigurationError(ReportError):
    """A required collaborator capability is absent (e.g. no device info)."""


class DataUnavailableError(ReportError):
    """No pubkeys or balances are available for the requested asset."""


class RemoteServiceError(ReportError):
    """
    The remote reporting service returned a non-success response.

    Parameters
    ----------
    message : str
        Human readable description
    status_code : int | None
        HTTP status code, or None for transport-level failures
    body : str | None
        Raw response body, if any

    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class JobFailedError(ReportError):
    """An async report job finished in the ``failed`` state."""

    def __init__(self, job_id: str, reason: str | None = None) -> None:
        self.job_id = job_id
        self.reason = reason or "Unknown error"
        super().__init__(f"Job {job_id} failed: {self.reason}")


class JobTimeoutError(ReportError):
    """Polling an async report job exceeded the attempt ceiling."""

    def __init__(self, job_id: str, attempts: int, interval: float) -> None:
        self.job_id = job_id
        self.attempts = attempts
        self.interval = interval
        super().__init__(f"Job {job_id} polling timed out after {attempts} attempts ({attempts * interval:.0f}s)")
