"""
WiseNotes API — Validation Policy
==================================

What:  Presence and length rules for notebook titles and note content.
Why:   One place decides what a valid title or content string is, so the
       notebook and note services reject bad input the same way.
How:   Pure functions over an immutable `ValidationLimits` value. The
       `validate_*` methods classify input; the `ensure_*` methods turn a
       failed classification into a field-level ValidationError.
When:  Before any store write. Create/update requests fail fast here.

Rules:
    - None, "" and whitespace-only strings are EMPTY regardless of limits
    - Length counts characters of the raw string (not stripped)
    - A string of exactly `max_length` characters is OK; one more is TOO_LONG
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from wisenotes.exceptions import ValidationError


class ValidationOutcome(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    TOO_LONG = "too_long"


@dataclass(frozen=True)
class ValidationLimits:
    """Maximum lengths for user-supplied text. Values are deployment-specific."""

    title_max_length: int = 25
    content_max_length: int = 500

    def __post_init__(self) -> None:
        if self.title_max_length < 1 or self.content_max_length < 1:
            raise ValueError("Validation limits must be positive")


def classify(value: Optional[str], max_length: int) -> ValidationOutcome:
    if value is None or not value.strip():
        return ValidationOutcome.EMPTY
    if len(value) > max_length:
        return ValidationOutcome.TOO_LONG
    return ValidationOutcome.OK


class ValidationPolicy:
    """
    Stateless validator configured with explicit limits.

    Example:
        policy = ValidationPolicy(ValidationLimits(title_max_length=50))
        policy.validate_title("   ")   # ValidationOutcome.EMPTY
        policy.ensure_title("Recipes") # returns None, raises on failure
    """

    def __init__(self, limits: Optional[ValidationLimits] = None):
        self.limits = limits or ValidationLimits()

    def validate_title(self, value: Optional[str]) -> ValidationOutcome:
        return classify(value, self.limits.title_max_length)

    def validate_content(self, value: Optional[str]) -> ValidationOutcome:
        return classify(value, self.limits.content_max_length)

    def ensure_title(self, value: Optional[str]) -> None:
        """Raises ValidationError(field='title') unless the title is OK."""
        self._raise_for(self.validate_title(value), "title", "Title", self.limits.title_max_length)

    def ensure_content(self, value: Optional[str]) -> None:
        """Raises ValidationError(field='content') unless the content is OK."""
        self._raise_for(
            self.validate_content(value), "content", "Content", self.limits.content_max_length
        )

    @staticmethod
    def _raise_for(outcome: ValidationOutcome, field: str, label: str, max_length: int) -> None:
        if outcome is ValidationOutcome.EMPTY:
            raise ValidationError(message=f"{label} is required", field=field)
        if outcome is ValidationOutcome.TOO_LONG:
            raise ValidationError(
                message=f"{label} must be at most {max_length} characters",
                field=field,
                context={"max_length": max_length},
            )
