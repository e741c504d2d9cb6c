from typing import Optional


class PipelineError(Exception):
    """
    Base for every error that may reach a caller.

    `code` and `safe_message` are what callers see; the exception text itself
    may carry internal detail and is only logged.
    """

    code = "UNKNOWN_FAILURE"
    status = 500
    safe_message = "Failed to fetch transaction data. Please try again later."


class UnknownFailure(PipelineError):
    pass


class InvalidAddress(PipelineError):
    code = "INVALID_ADDRESS"
    status = 400
    safe_message = "Invalid Solana wallet address format"


class InvalidTimeRange(PipelineError):
    code = "INVALID_TIME_RANGE"
    status = 400
    safe_message = "Invalid time range format. Expected object with start and end properties."


class RateLimited(PipelineError):
    code = "RATE_LIMITED"
    status = 429
    safe_message = "Rate limit exceeded"

    def __init__(self, retry_after: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"rate limited, retry after {retry_after}s")
        self.retry_after = retry_after


class ConfigurationError(PipelineError):
    code = "CONFIGURATION_ERROR"
    status = 500
    safe_message = "API configuration error. Please try again later."


class DataSourceError(PipelineError):
    code = "UPSTREAM_ERROR"
    status = 502
    safe_message = "Upstream data service temporarily unavailable. Please try again later."


class UpstreamRateLimited(DataSourceError):
    code = "UPSTREAM_RATE_LIMITED"
    status = 429
    safe_message = "Upstream API rate limit exceeded. Please try again later."
    retry_after = 60


class UpstreamTimeout(DataSourceError):
    code = "UPSTREAM_TIMEOUT"
    status = 504
    safe_message = "Request timeout. The upstream service is taking too long. Please try again."


class ProcessingTimeout(PipelineError):
    code = "PROCESSING_TIMEOUT"
    status = 408
    safe_message = "Request timeout. The processing is taking too long. Please try again."
    suggestion = "Try a narrower time range or a wallet with fewer transactions."
