from __future__ import annotations

import typing as t

from stagegate.model import Decision

from .matrix import EvaluationMatrix

DEFAULT_MIN_COMMENT_LENGTH = 10


class ValidationResult(t.NamedTuple):
    is_valid: bool
    errors: tuple[str, ...]


def validate(matrix: EvaluationMatrix, *, min_comment_length: int = DEFAULT_MIN_COMMENT_LENGTH) -> ValidationResult:
    """Check an evaluation is ready to submit, reporting every problem at once.

    Errors come back in a fixed order: unscored criteria, short comments,
    missing decision.
    """
    errors: list[str] = []

    unscored = matrix.unscored()
    if unscored:
        errors.append(f"Please score all criteria: {', '.join(unscored)}")

    if len(matrix.comments.strip()) < min_comment_length:
        errors.append(f"Review comments must be at least {min_comment_length} characters long")

    if not isinstance(matrix.decision, Decision):
        errors.append("Please select a gate decision")

    return ValidationResult(is_valid=not errors, errors=tuple(errors))
