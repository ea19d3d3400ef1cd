from typing import Optional


class CheckerError(Exception):
    """Base class for failures reported to the caller as {"error": message}."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputValidationError(CheckerError):
    status_code = 400


class ServiceConfigurationError(CheckerError):
    status_code = 500


class UpstreamServiceError(CheckerError):
    """Non rate-limit failure reported by an upstream service."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class RateLimitedError(UpstreamServiceError):
    status_code = 429

    def __init__(self, message: str = "Upstream rate limit exceeded (429). Please try again later.",
                 upstream_status: Optional[int] = 429):
        super().__init__(message, upstream_status)


class ContentBlockedError(CheckerError):
    status_code = 400

    def __init__(self, message: str, block_reason: Optional[str] = None):
        super().__init__(message)
        self.block_reason = block_reason


class MalformedResponseError(CheckerError):
    status_code = 500

    def __init__(self, message: str = "Invalid or malformed response from backend."):
        super().__init__(message)
