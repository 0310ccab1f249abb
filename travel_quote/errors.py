# travel_quote/errors.py
"""
Error kinds raised by the pricing and underwriting core.

None of these are retried: every failure is deterministic given the same
request and the same reference-data snapshot.
"""

from __future__ import annotations


class QuoteEngineError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(QuoteEngineError):
    """The request itself is wrong (birth date in the future, age out of range, ...)."""


class ReferenceNotFoundError(QuoteEngineError):
    """A country, coverage level, risk or rate record is missing for the as-of date."""

    def __init__(self, kind: str, key: object, as_of: object = None) -> None:
        self.kind = kind
        self.key = key
        self.as_of = as_of
        suffix = f" on {as_of}" if as_of is not None else ""
        super().__init__(f"{kind} not found: {key}{suffix}")


class ReferenceDataConflictError(QuoteEngineError):
    """More than one record is active for the same key and date."""


class RuleEvaluationError(QuoteEngineError):
    """An underwriting rule failed while evaluating a request."""

    def __init__(self, rule_name: str, cause: BaseException) -> None:
        self.rule_name = rule_name
        self.cause = cause
        super().__init__(f"{rule_name}: {cause}")


class UnderwritingNotApprovedError(QuoteEngineError):
    """Premium calculation was requested for an application that is not APPROVED."""
