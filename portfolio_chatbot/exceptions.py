"""Error taxonomy shared by the services and the HTTP layer."""


class PortfolioChatbotError(Exception):
    """Base class for application errors."""

    status_code: int = 500
    public_message: str | None = None

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def safe_message(self) -> str:
        """Message that may be shown to API callers."""
        return self.public_message or self.message


class ValidationError(PortfolioChatbotError):
    """Missing or invalid required input."""

    status_code = 400


class NoContentError(ValidationError):
    """Document text produced no chunks worth storing."""


class VectorDimensionError(ValidationError):
    """Two vectors of different dimensionality were compared or mixed."""


class NotFoundError(PortfolioChatbotError):
    """Session or document does not exist."""

    status_code = 404


class AuthenticationError(PortfolioChatbotError):
    """Missing, invalid or expired admin credentials."""

    status_code = 401


class UpstreamError(PortfolioChatbotError):
    """Embedding model or generation API failure."""

    status_code = 502
    public_message = "The AI service is temporarily unavailable. Please try again later."


class ConsistencyError(PortfolioChatbotError):
    """Document processing failed part way and the record was rolled back."""

    status_code = 500
    public_message = "Failed to process document."
