# travel_quote/underwriting/rules.py
"""
Underwriting rules.

Each rule looks at one aspect of the application and returns a single
RuleResult. Rules never see each other's results; aggregation happens in the
engine. Thresholds come from the `rule_parameters` reference table with the
defaults below.

  priority  rule                 parameters (default)
  10        AgeRule              MAX_AGE (80), REVIEW_AGE_THRESHOLD (75)
  20        CountryRiskRule      -
  30        MedicalCoverageRule  REVIEW_AGE (70), BLOCKING_AGE (75),
                                 REVIEW_COVERAGE_THRESHOLD (100000),
                                 BLOCKING_COVERAGE_THRESHOLD (200000)
  40        AdditionalRisksRule  MAX_AGE_FOR_EXTREME_SPORT (70),
                                 REVIEW_AGE_FOR_EXTREME_SPORT (60)
  50        TripDurationRule     MAX_DAYS (180), REVIEW_DAYS_THRESHOLD (90)
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Protocol

from travel_quote.errors import InvalidInputError, ReferenceNotFoundError
from travel_quote.pricing.components import full_years
from travel_quote.reference.models import RiskGroup
from travel_quote.reference.port import ReferenceDataPort
from travel_quote.underwriting.domain import RuleResult
from travel_quote.underwriting.parameters import RuleParameterService

if TYPE_CHECKING:
    from travel_quote.quoting.schemas import PremiumRequest

logger = logging.getLogger(__name__)

EXTREME_SPORT = "EXTREME_SPORT"


class UnderwritingRule(Protocol):
    rule_name: str
    priority: int

    def evaluate(self, request: "PremiumRequest", as_of: date) -> RuleResult:
        ...


def applicant_age(request: "PremiumRequest") -> int:
    """Whole years at the agreement start date."""
    if request.person_birth_date is None:
        raise InvalidInputError("Birth date is required")
    return full_years(request.person_birth_date, request.agreement_date_from)


def trip_days(request: "PremiumRequest") -> int:
    return (request.agreement_date_to - request.agreement_date_from).days


class _ParameterisedRule:
    rule_name = ""
    priority = 0

    def __init__(self, reference: ReferenceDataPort, parameters: Optional[RuleParameterService] = None) -> None:
        self.reference = reference
        self.parameters = parameters or RuleParameterService(reference)

    def _int(self, name: str, as_of: date, default: int) -> int:
        return self.parameters.get_int(self.rule_name, name, as_of, default)

    def _decimal(self, name: str, as_of: date, default: Decimal) -> Decimal:
        return self.parameters.get_decimal(self.rule_name, name, as_of, default)

    def _country(self, request: "PremiumRequest", as_of: date):
        country = self.reference.find_country(request.country_iso_code, as_of)
        if country is None:
            raise ReferenceNotFoundError("Country", request.country_iso_code, as_of)
        return country


class AgeRule(_ParameterisedRule):
    rule_name = "AgeRule"
    priority = 10

    def evaluate(self, request: "PremiumRequest", as_of: date) -> RuleResult:
        max_age = self._int("MAX_AGE", as_of, 80)
        review_age = self._int("REVIEW_AGE_THRESHOLD", as_of, 75)
        age = applicant_age(request)
        logger.debug("AgeRule: age=%d max=%d review=%d", age, max_age, review_age)

        if age > max_age:
            return RuleResult.blocking(self.rule_name, f"Age {age} exceeds maximum allowed age of {max_age}")
        if age >= review_age:
            return RuleResult.review_required(
                self.rule_name, f"Age {age} requires manual review (threshold: {review_age})"
            )
        return RuleResult.passed(self.rule_name)


class CountryRiskRule(_ParameterisedRule):
    rule_name = "CountryRiskRule"
    priority = 20

    def evaluate(self, request: "PremiumRequest", as_of: date) -> RuleResult:
        country = self._country(request, as_of)
        logger.debug("CountryRiskRule: %s risk group %s", country.iso_code, country.risk_group.value)

        if country.risk_group is RiskGroup.VERY_HIGH:
            return RuleResult.blocking(
                self.rule_name, f"Travel to {country.name} is not covered due to very high risk"
            )
        if country.risk_group is RiskGroup.HIGH:
            return RuleResult.review_required(
                self.rule_name, f"Travel to {country.name} requires manual review due to high risk"
            )
        if country.risk_group is RiskGroup.MEDIUM:
            return RuleResult.warning(self.rule_name, f"Travel to {country.name} has medium risk level")
        return RuleResult.passed(self.rule_name)


class MedicalCoverageRule(_ParameterisedRule):
    """High coverage for older applicants; country-default quotes carry no level and pass."""

    rule_name = "MedicalCoverageRule"
    priority = 30

    def evaluate(self, request: "PremiumRequest", as_of: date) -> RuleResult:
        if not request.medical_risk_limit_level:
            return RuleResult.passed(self.rule_name)

        review_age = self._int("REVIEW_AGE", as_of, 70)
        blocking_age = self._int("BLOCKING_AGE", as_of, 75)
        review_coverage = self._decimal("REVIEW_COVERAGE_THRESHOLD", as_of, Decimal("100000"))
        blocking_coverage = self._decimal("BLOCKING_COVERAGE_THRESHOLD", as_of, Decimal("200000"))

        level = self.reference.find_medical_level(request.medical_risk_limit_level, as_of)
        if level is None:
            raise ReferenceNotFoundError("Medical risk limit level", request.medical_risk_limit_level, as_of)

        age = applicant_age(request)
        coverage = level.coverage_amount
        logger.debug("MedicalCoverageRule: age=%d coverage=%s", age, coverage)

        if age >= blocking_age and coverage > blocking_coverage:
            return RuleResult.blocking(
                self.rule_name,
                f"Coverage of {coverage} {level.currency} is too high for age {age} "
                f"(max {blocking_coverage} {level.currency})",
            )
        if age >= review_age and coverage > review_coverage:
            return RuleResult.review_required(
                self.rule_name,
                f"High coverage ({coverage} {level.currency}) for age {age} requires manual review",
            )
        return RuleResult.passed(self.rule_name)


class AdditionalRisksRule(_ParameterisedRule):
    rule_name = "AdditionalRisksRule"
    priority = 40

    def evaluate(self, request: "PremiumRequest", as_of: date) -> RuleResult:
        if EXTREME_SPORT not in {c.upper() for c in request.selected_risks}:
            return RuleResult.passed(self.rule_name)

        max_age = self._int("MAX_AGE_FOR_EXTREME_SPORT", as_of, 70)
        review_age = self._int("REVIEW_AGE_FOR_EXTREME_SPORT", as_of, 60)
        age = applicant_age(request)
        country = self._country(request, as_of)
        logger.debug("AdditionalRisksRule: EXTREME_SPORT age=%d max=%d review=%d", age, max_age, review_age)

        if age > max_age:
            return RuleResult.blocking(
                self.rule_name, f"Extreme sport coverage not available for age {age} (max age: {max_age})"
            )
        if country.risk_group is RiskGroup.VERY_HIGH:
            return RuleResult.blocking(
                self.rule_name,
                f"Extreme sport coverage not available in {country.name} (very high risk country)",
            )
        if age >= review_age:
            return RuleResult.review_required(
                self.rule_name, f"Extreme sport coverage for age {age} requires manual review"
            )
        return RuleResult.passed(self.rule_name)


class TripDurationRule(_ParameterisedRule):
    rule_name = "TripDurationRule"
    priority = 50

    def evaluate(self, request: "PremiumRequest", as_of: date) -> RuleResult:
        max_days = self._int("MAX_DAYS", as_of, 180)
        review_days = self._int("REVIEW_DAYS_THRESHOLD", as_of, 90)
        days = trip_days(request)
        logger.debug("TripDurationRule: days=%d max=%d review=%d", days, max_days, review_days)

        if days > max_days:
            return RuleResult.blocking(
                self.rule_name, f"Trip duration of {days} days exceeds maximum of {max_days} days"
            )
        if days > review_days:
            return RuleResult.review_required(
                self.rule_name,
                f"Trip duration of {days} days requires manual review (threshold: {review_days} days)",
            )
        return RuleResult.passed(self.rule_name)


def default_rules(reference: ReferenceDataPort) -> List[UnderwritingRule]:
    parameters = RuleParameterService(reference)
    return [
        AgeRule(reference, parameters),
        CountryRiskRule(reference, parameters),
        MedicalCoverageRule(reference, parameters),
        AdditionalRisksRule(reference, parameters),
        TripDurationRule(reference, parameters),
    ]
