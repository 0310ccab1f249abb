# travel_quote/underwriting/domain.py
"""
Underwriting value objects.

Severities are ordered PASS < WARNING < REVIEW_REQUIRED < BLOCKING.
The decision is driven by the worst severity seen:
- any BLOCKING       -> DECLINED
- any REVIEW_REQUIRED -> REQUIRES_REVIEW
- otherwise          -> APPROVED (warnings never change it)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class RuleSeverity(str, Enum):
    PASS = "PASS"
    WARNING = "WARNING"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"
    BLOCKING = "BLOCKING"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: "RuleSeverity") -> bool:  # type: ignore[override]
        if not isinstance(other, RuleSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: "RuleSeverity") -> bool:  # type: ignore[override]
        if not isinstance(other, RuleSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: "RuleSeverity") -> bool:  # type: ignore[override]
        if not isinstance(other, RuleSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: "RuleSeverity") -> bool:  # type: ignore[override]
        if not isinstance(other, RuleSeverity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    RuleSeverity.PASS: 0,
    RuleSeverity.WARNING: 1,
    RuleSeverity.REVIEW_REQUIRED: 2,
    RuleSeverity.BLOCKING: 3,
}


class UnderwritingDecision(str, Enum):
    APPROVED = "APPROVED"
    REQUIRES_REVIEW = "REQUIRES_REVIEW"
    DECLINED = "DECLINED"


@dataclass(frozen=True)
class RuleResult:
    rule_name: str
    severity: RuleSeverity
    message: str

    @classmethod
    def passed(cls, rule_name: str) -> "RuleResult":
        return cls(rule_name, RuleSeverity.PASS, "Rule passed")

    @classmethod
    def warning(cls, rule_name: str, message: str) -> "RuleResult":
        return cls(rule_name, RuleSeverity.WARNING, message)

    @classmethod
    def review_required(cls, rule_name: str, message: str) -> "RuleResult":
        return cls(rule_name, RuleSeverity.REVIEW_REQUIRED, message)

    @classmethod
    def blocking(cls, rule_name: str, message: str) -> "RuleResult":
        return cls(rule_name, RuleSeverity.BLOCKING, message)

    def to_dict(self) -> Dict[str, Any]:
        return {"rule_name": self.rule_name, "severity": self.severity.value, "message": self.message}


@dataclass(frozen=True)
class UnderwritingResult:
    decision: UnderwritingDecision
    rule_results: List[RuleResult] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def approved(self) -> bool:
        return self.decision is UnderwritingDecision.APPROVED

    @property
    def warnings(self) -> List[RuleResult]:
        return [r for r in self.rule_results if r.severity is RuleSeverity.WARNING]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decision": self.decision.value,
            "reason": self.reason,
            "rule_results": [r.to_dict() for r in self.rule_results],
        }
