# travel_quote/underwriting/engine.py
"""
Underwriting decision engine.

Runs every rule in priority order (no short-circuit) and aggregates the
results into one decision. A rule that raises is recorded as BLOCKING, so an
evaluation always completes with a decision.

Usage:
  engine = UnderwritingRuleEngine(default_rules(reference))
  result = engine.evaluate(request)
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, List, Optional, Sequence

from travel_quote.errors import RuleEvaluationError
from travel_quote.underwriting.domain import (
    RuleResult,
    RuleSeverity,
    UnderwritingDecision,
    UnderwritingResult,
)
from travel_quote.underwriting.rules import UnderwritingRule

if TYPE_CHECKING:
    from travel_quote.quoting.schemas import PremiumRequest

logger = logging.getLogger(__name__)


def decide(rule_results: List[RuleResult]) -> UnderwritingResult:
    """Worst severity wins; warnings are reported but never change the decision."""
    worst = max((r.severity for r in rule_results), default=RuleSeverity.PASS)

    if worst is RuleSeverity.BLOCKING:
        reason = "; ".join(r.message for r in rule_results if r.severity is worst)
        logger.info("Application DECLINED: %s", reason)
        return UnderwritingResult(UnderwritingDecision.DECLINED, rule_results, reason)

    if worst is RuleSeverity.REVIEW_REQUIRED:
        reason = "; ".join(r.message for r in rule_results if r.severity is worst)
        logger.info("Application REQUIRES_REVIEW: %s", reason)
        return UnderwritingResult(UnderwritingDecision.REQUIRES_REVIEW, rule_results, reason)

    logger.info("Application APPROVED")
    return UnderwritingResult(UnderwritingDecision.APPROVED, rule_results, None)


class UnderwritingRuleEngine:
    def __init__(self, rules: Sequence[UnderwritingRule]) -> None:
        # sorted() is stable: equal priorities keep registration order
        self.rules: List[UnderwritingRule] = sorted(rules, key=lambda r: r.priority)

    def _run(self, rule: UnderwritingRule, request: "PremiumRequest", as_of: date) -> RuleResult:
        try:
            return rule.evaluate(request, as_of)
        except Exception as e:
            err = RuleEvaluationError(rule.rule_name, e)
            logger.exception("Rule evaluation failed: %s", err)
            return RuleResult.blocking(rule.rule_name, f"Error evaluating rule: {e}")

    def evaluate(self, request: "PremiumRequest", as_of: Optional[date] = None) -> UnderwritingResult:
        as_of = as_of or request.agreement_date_from
        logger.info(
            "Starting underwriting for %s %s as of %s",
            request.person_first_name or "-",
            request.person_last_name or "-",
            as_of,
        )

        results: List[RuleResult] = []
        for rule in self.rules:
            result = self._run(rule, request, as_of)
            logger.debug("Rule %s -> %s", rule.rule_name, result.severity.value)
            results.append(result)

        return decide(results)
