# travel_quote/pricing/risk_calculators.py
"""
Stand-alone premium per optional risk (itemised quote lines).

Each calculator prices one risk off its own base medical premium:

  base    = round2(daily_rate * age_coeff * country_coeff * days)
  premium = round2(base * risk_coefficient * age_modifier)

Days here are counted inclusively (date_to - date_from + 1) and no duration
coefficient is applied, unlike the strategies. The two conventions are kept
separate: itemised quotes already issued were priced with this one.

A calculator that is not applicable to a request prices it at 0.00.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional, Type

from travel_quote.errors import ReferenceNotFoundError
from travel_quote.pricing.components import MANDATORY_RISK_CODE, SharedCalculationComponents, full_years
from travel_quote.pricing.money import ONE, ZERO, round2
from travel_quote.reference.models import RiskGroup
from travel_quote.reference.port import ReferenceDataPort
from travel_quote.underwriting.parameters import RuleParameterService

if TYPE_CHECKING:
    from travel_quote.quoting.schemas import PremiumRequest

logger = logging.getLogger(__name__)


class RiskPremiumCalculator:
    def __init__(self, reference: ReferenceDataPort, risk_code: str) -> None:
        self.reference = reference
        self.risk_code = risk_code.strip().upper()
        self.components = SharedCalculationComponents(reference)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.risk_code!r})"

    def is_applicable(self, request: "PremiumRequest") -> bool:
        return self.risk_code in {c.upper() for c in request.selected_risks}

    def base_medical_premium(self, request: "PremiumRequest") -> Decimal:
        as_of = request.agreement_date_from
        level = self.reference.find_medical_level(request.medical_risk_limit_level or "", as_of)
        if level is None:
            raise ReferenceNotFoundError("Medical risk limit level", request.medical_risk_limit_level, as_of)
        country = self.reference.find_country(request.country_iso_code, as_of)
        if country is None:
            raise ReferenceNotFoundError("Country", request.country_iso_code, as_of)

        age = self.components.resolve_age(request.person_birth_date, as_of, coefficient_enabled=True)
        days = self.components.count_days(request.agreement_date_from, request.agreement_date_to, inclusive=True)
        return round2(level.daily_rate * age.coefficient * country.risk_coefficient * days)

    def calculate_premium(self, request: "PremiumRequest") -> Decimal:
        if not self.is_applicable(request):
            logger.debug("%s not applicable; premium 0.00", self.risk_code)
            return round2(ZERO)

        as_of = request.agreement_date_from
        risk = self.reference.find_risk_type(self.risk_code, as_of)
        if risk is None:
            raise ReferenceNotFoundError("Risk type", self.risk_code, as_of)

        base = self.base_medical_premium(request)
        age = self.components.resolve_age(request.person_birth_date, as_of).age
        modifier = self.reference.find_age_risk_modifier(self.risk_code, age, as_of)
        age_modifier = ONE if modifier is None else modifier.modifier

        premium = round2(base * risk.coefficient * age_modifier)
        logger.debug(
            "%s premium %s (base=%s risk_coeff=%s age_mod=%s)",
            self.risk_code,
            premium,
            base,
            risk.coefficient,
            age_modifier,
        )
        return premium


class ExtremeSportPremiumCalculator(RiskPremiumCalculator):
    """
    EXTREME_SPORT is only sold up to MAX_AGE_FOR_EXTREME_SPORT and never for
    VERY_HIGH risk countries. The age limit is the AdditionalRisksRule
    parameter, so pricing and underwriting read the same value.
    """

    PARAMETER_RULE = "AdditionalRisksRule"
    DEFAULT_MAX_AGE = 70

    def __init__(
        self,
        reference: ReferenceDataPort,
        risk_code: str = "EXTREME_SPORT",
        parameters: Optional[RuleParameterService] = None,
    ) -> None:
        super().__init__(reference, risk_code)
        self.parameters = parameters or RuleParameterService(reference)

    def is_applicable(self, request: "PremiumRequest") -> bool:
        if not super().is_applicable(request):
            return False

        as_of = request.agreement_date_from
        max_age = self.parameters.get_int(self.PARAMETER_RULE, "MAX_AGE_FOR_EXTREME_SPORT", as_of, self.DEFAULT_MAX_AGE)
        age = full_years(request.person_birth_date, as_of)
        if age > max_age:
            logger.warning("EXTREME_SPORT not applicable: age %d exceeds maximum %d", age, max_age)
            return False

        country = self.reference.find_country(request.country_iso_code, as_of)
        if country is not None and country.risk_group is RiskGroup.VERY_HIGH:
            logger.warning("EXTREME_SPORT not applicable: %s is VERY_HIGH risk", country.iso_code)
            return False
        return True


_CALCULATORS: Dict[str, Type[RiskPremiumCalculator]] = {
    "EXTREME_SPORT": ExtremeSportPremiumCalculator,
}


def calculator_for(reference: ReferenceDataPort, risk_code: str) -> RiskPremiumCalculator:
    code = risk_code.strip().upper()
    return _CALCULATORS.get(code, RiskPremiumCalculator)(reference, code)


def calculators_for(reference: ReferenceDataPort, request: "PremiumRequest") -> List[RiskPremiumCalculator]:
    """One calculator per selected optional risk, in request order."""
    calculators: List[RiskPremiumCalculator] = []
    seen = set()
    for code in request.selected_risks:
        norm = code.strip().upper()
        if not norm or norm == MANDATORY_RISK_CODE or norm in seen:
            continue
        seen.add(norm)
        risk = reference.find_risk_type(norm, request.agreement_date_from)
        if risk is None or risk.is_mandatory:
            logger.debug("No calculator for risk %s", norm)
            continue
        calculators.append(calculator_for(reference, norm))
    return calculators


def itemise_risk_premiums(reference: ReferenceDataPort, request: "PremiumRequest") -> Dict[str, Decimal]:
    """Per-risk premiums keyed by risk code; needs a medical risk limit level."""
    return {calc.risk_code: calc.calculate_premium(request) for calc in calculators_for(reference, request)}
