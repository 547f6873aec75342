"""Input validation package."""

from spendwise.validation.validator import (
    CheckedInput,
    LedgerInputValidator,
    ValidationError,
    get_validator,
)

__all__ = ["CheckedInput", "LedgerInputValidator", "ValidationError", "get_validator"]
