"""Error taxonomy for calls to the Perplexity API.

Callers discriminate by exception type, never by message text.
"""


class ResearchError(Exception):
    """Base class for failures of an external research call."""

    retryable: bool = False

    def suggested_action(self) -> str:
        return "Check your request parameters and try again."


class NetworkError(ResearchError):
    """The transport could not complete the call (DNS, connection reset, timeout)."""

    retryable = True

    def __init__(self, message: str):
        super().__init__(f"Network error calling Perplexity API: {message}")

    def suggested_action(self) -> str:
        return "Check your network connection and try again."


class APIError(ResearchError):
    """The API answered with a non-success status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Perplexity API error ({status}): {body}")

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_server_error(self) -> bool:
        return self.status >= 500

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.is_rate_limited or self.is_server_error

    def suggested_action(self) -> str:
        if self.is_unauthorized:
            return "Check your PERPLEXITY_API_KEY - it may be invalid or expired."
        if self.is_rate_limited:
            return "Rate limited. Wait a moment and try again."
        if self.is_server_error:
            return "Perplexity server error. Try again in a few seconds."
        return super().suggested_action()
