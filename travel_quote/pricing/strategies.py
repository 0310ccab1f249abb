# travel_quote/pricing/strategies.py
"""
Premium calculation strategies.

MEDICAL_LEVEL:
  premium = daily_rate(level) * age * country * duration * (1 + additional) * days
COUNTRY_DEFAULT:
  premium = default_day_premium(country) * age * duration * days [* (1 + additional)]

Both count trip days as date_to - date_from and evaluate every reference lookup
as of agreement_date_from.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from travel_quote.errors import InvalidInputError, ReferenceNotFoundError
from travel_quote.pricing import steps as calc_steps
from travel_quote.pricing.components import SharedCalculationComponents
from travel_quote.pricing.config import CalculationConfigService
from travel_quote.pricing.money import ONE, ZERO, round2
from travel_quote.pricing.results import CalculationMode, PremiumResult
from travel_quote.reference.port import ReferenceDataPort

if TYPE_CHECKING:
    from travel_quote.quoting.schemas import PremiumRequest

logger = logging.getLogger(__name__)


class PremiumCalculationStrategy:
    """Common wiring: both strategies read the same reference data through the same components."""

    mode: CalculationMode

    def __init__(
        self,
        reference: ReferenceDataPort,
        components: Optional[SharedCalculationComponents] = None,
        config: Optional[CalculationConfigService] = None,
    ) -> None:
        self.reference = reference
        self.components = components or SharedCalculationComponents(reference)
        self.config = config or CalculationConfigService(reference)

    def calculate(self, request: "PremiumRequest") -> PremiumResult:
        raise NotImplementedError


class MedicalLevelStrategy(PremiumCalculationStrategy):
    mode = CalculationMode.MEDICAL_LEVEL

    def calculate(self, request: "PremiumRequest") -> PremiumResult:
        as_of = request.agreement_date_from
        level_code = request.medical_risk_limit_level
        if not level_code:
            raise ReferenceNotFoundError("Medical risk limit level", level_code, as_of)

        level = self.reference.find_medical_level(level_code, as_of)
        if level is None:
            raise ReferenceNotFoundError("Medical risk limit level", level_code, as_of)
        country = self.reference.find_country(request.country_iso_code, as_of)
        if country is None:
            raise ReferenceNotFoundError("Country", request.country_iso_code, as_of)

        age_enabled = self.config.resolve_age_coefficient_enabled(request.apply_age_coefficient, as_of)
        age = self.components.resolve_age(request.person_birth_date, as_of, age_enabled)
        days, duration = self.components.resolve_duration(
            request.agreement_date_from, request.agreement_date_to, as_of, inclusive=False
        )
        additional = self.components.resolve_additional_risks(request.selected_risks, age.age, as_of)

        total = age.coefficient * country.risk_coefficient * duration * (ONE + additional.total_coefficient)
        base_premium = round2(level.daily_rate * total * days)
        bundle = self.components.resolve_bundle_discount(request.selected_risks, base_premium, as_of)
        final_premium = round2(base_premium - bundle.discount_amount)

        # Informational only: the premium is never scaled by the payout limit
        payout_limit = level.effective_payout_limit
        payout_limit_applied = (
            level.max_payout_amount is not None and level.max_payout_amount < level.coverage_amount
        )

        breakdown = self.components.build_risk_breakdown(
            request.selected_risks,
            level.daily_rate,
            age.coefficient,
            country.risk_coefficient,
            duration,
            days,
            age.age,
            as_of,
        )
        steps = calc_steps.medical_level_steps(
            level.daily_rate,
            age.coefficient,
            country.risk_coefficient,
            duration,
            additional.total_coefficient,
            days,
            base_premium,
            bundle.discount_amount,
            final_premium,
            currency=level.currency,
        )

        logger.info(
            "MEDICAL_LEVEL premium %s %s (level=%s country=%s days=%d age=%d)",
            final_premium,
            level.currency,
            level.code,
            country.iso_code,
            days,
            age.age,
        )
        return PremiumResult(
            final_premium=final_premium,
            base_rate=level.daily_rate,
            base_premium=base_premium,
            age=age.age,
            age_coefficient=age.coefficient,
            age_group=age.group_label,
            country_coefficient=country.risk_coefficient,
            duration_coefficient=duration,
            additional_risks_coefficient=additional.total_coefficient,
            total_coefficient=total,
            days=days,
            coverage_amount=level.coverage_amount,
            risk_breakdown=breakdown,
            bundle_discount=bundle,
            steps=steps,
            mode=self.mode,
            payout_limit=payout_limit,
            payout_limit_applied=payout_limit_applied,
            currency=level.currency,
            additional_risks=additional.per_risk,
        )


class CountryDefaultStrategy(PremiumCalculationStrategy):
    """
    Premium from a fixed per-country day rate.

    The country coefficient is already priced into the day rate, so it is
    reported as 1 and the country itself is not looked up. No coverage level
    is involved, hence no coverage amount and no payout limit.
    """

    mode = CalculationMode.COUNTRY_DEFAULT

    def calculate(self, request: "PremiumRequest") -> PremiumResult:
        as_of = request.agreement_date_from
        day_premium = self.reference.find_country_default_day_premium(request.country_iso_code, as_of)
        if day_premium is None:
            raise ReferenceNotFoundError("Country default day premium", request.country_iso_code, as_of)
        if day_premium.amount <= ZERO:
            raise InvalidInputError(
                f"Country default day premium for {day_premium.country_iso_code} must be positive, "
                f"got {day_premium.amount}"
            )

        age_enabled = self.config.resolve_age_coefficient_enabled(request.apply_age_coefficient, as_of)
        age = self.components.resolve_age(request.person_birth_date, as_of, age_enabled)
        days, duration = self.components.resolve_duration(
            request.agreement_date_from, request.agreement_date_to, as_of, inclusive=False
        )
        if days <= 0:
            raise InvalidInputError(f"Trip must last at least one day, got {days}")
        additional = self.components.resolve_additional_risks(request.selected_risks, age.age, as_of)

        rate = day_premium.amount
        base_premium = round2(rate * age.coefficient * duration * days)
        if additional.total_coefficient > ZERO:
            base_premium = round2(base_premium * (ONE + additional.total_coefficient))

        bundle = self.components.resolve_bundle_discount(request.selected_risks, base_premium, as_of)
        final_premium = round2(base_premium - bundle.discount_amount)

        breakdown = self.components.build_risk_breakdown(
            request.selected_risks, rate, age.coefficient, ONE, duration, days, age.age, as_of
        )
        steps = calc_steps.country_default_steps(
            rate,
            age.coefficient,
            duration,
            additional.total_coefficient,
            days,
            base_premium,
            bundle.discount_amount,
            final_premium,
            currency=day_premium.currency,
        )

        logger.info(
            "COUNTRY_DEFAULT premium %s %s (country=%s days=%d age=%d)",
            final_premium,
            day_premium.currency,
            day_premium.country_iso_code,
            days,
            age.age,
        )
        return PremiumResult(
            final_premium=final_premium,
            base_rate=rate,
            base_premium=base_premium,
            age=age.age,
            age_coefficient=age.coefficient,
            age_group=age.group_label,
            country_coefficient=ONE,
            duration_coefficient=duration,
            additional_risks_coefficient=additional.total_coefficient,
            total_coefficient=age.coefficient * duration * (ONE + additional.total_coefficient),
            days=days,
            coverage_amount=None,
            risk_breakdown=breakdown,
            bundle_discount=bundle,
            steps=steps,
            mode=self.mode,
            payout_limit=None,
            payout_limit_applied=False,
            currency=day_premium.currency,
            additional_risks=additional.per_risk,
        )
