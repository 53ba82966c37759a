"""
Error taxonomy for the conversion pipeline.

Every failure that leaves a component is one of these kinds. `user_message`
is the short, actionable text an outer surface may show; the full message
and cause are for the log only.
"""

from typing import Optional


class DecksmithError(Exception):
    """Base class for all pipeline errors."""

    kind = "error"
    default_user_message = "Something went wrong while processing the document."

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class ValidationError(DecksmithError):
    """An upload was rejected before processing. Never retried."""

    kind = "validation"

    def __init__(self, message: str, code: str = "invalid"):
        # Validation messages are written for the user already
        super().__init__(message, user_message=message)
        self.code = code


class ExtractionError(DecksmithError):
    """The document could not be decoded into text."""

    kind = "extraction"
    default_user_message = (
        "Could not read text from the document. "
        "If it is a scanned or image-only file, export it with a text layer and try again."
    )


class SynthesisError(DecksmithError):
    """The generative model call failed."""

    kind = "synthesis"
    default_user_message = "Slide generation failed. Please try again shortly."


class ResponseFormatError(SynthesisError):
    """The model answered, but not with the JSON shape we asked for."""


class RenderError(DecksmithError):
    """Writing the presentation (or fetching its imagery) failed."""

    kind = "render"
    default_user_message = "Failed to generate PPTX. Please try again."


class RateLimitError(DecksmithError):
    """A local action quota was exceeded."""

    kind = "rate_limit"
    default_user_message = "Rate limit exceeded. Please try again in a moment."

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        user_message: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, user_message=user_message)
        self.retry_after = retry_after
