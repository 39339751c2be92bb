"""Exception hierarchy for the weekly digest pipeline."""
from typing import Optional


class DigestError(Exception):
    """Base exception class for the digest pipeline"""
    pass


class ConfigurationError(DigestError):
    """Raised when required configuration is missing or invalid"""
    pass


class ChannelNotFoundError(DigestError):
    """Raised when the destination channel cannot be resolved"""
    pass


class EmptyGenerationError(DigestError):
    """Raised when a generative call returns no usable payload"""
    pass


class RetryExhaustedError(DigestError):
    """Raised when every attempt of a retried operation has failed"""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None, message: Optional[str] = None):
        self.attempts = attempts
        self.last_error = last_error
        if message is None:
            message = f"Gave up after {attempts} attempt(s)"
            if last_error is not None:
                message += f": {last_error}"
        super().__init__(message)


class ImageGenerationExhaustedError(RetryExhaustedError):
    """Raised when image generation failed on every attempt"""
    pass
