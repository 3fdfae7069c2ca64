"""
Error taxonomy for the Bill of Lading pipeline.

Every failure that crosses the request boundary is mapped onto one of these
kinds. ``message`` is always safe to show to the caller; internal details
travel only through the exception chain and the logs.
"""


class BOLGenerationError(Exception):
    """Base class for all pipeline failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputValidationError(BOLGenerationError):
    """Malformed, missing or oversized input. Raised before any external call."""

    status_code = 400


class ExtractionError(BOLGenerationError):
    """OCR, page splitting or LLM output produced nothing usable."""

    status_code = 422


class ProcessingError(BOLGenerationError):
    """LLM, layout or render failure after the input was accepted."""

    status_code = 500


class ProcessingTimeoutError(BOLGenerationError, TimeoutError):
    """The end-to-end processing deadline was exceeded."""

    status_code = 408


class ServiceUnavailableError(BOLGenerationError):
    """An upstream service is misconfigured or refusing requests (quota, rate limit)."""

    status_code = 503
