from typing import Optional


class RailCoverError(Exception):
    pass


class UpstreamError(RailCoverError):
    """The prediction or tracking service failed or answered with garbage."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MissingDataError(RailCoverError):
    pass


class MalformedJourneyError(RailCoverError, ValueError):
    pass


class PayoutMatrixError(RailCoverError):
    pass
