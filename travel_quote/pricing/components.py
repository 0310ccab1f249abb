# travel_quote/pricing/components.py
"""
Calculation building blocks shared by both premium strategies.

Provides:
- age and age coefficient (with a built-in fallback table)
- trip day count and duration coefficient
- age-modified additional-risk coefficients
- best bundle discount
- per-risk premium breakdown lines

Everything here is a pure function of its arguments plus reference-data lookups.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from travel_quote.errors import InvalidInputError, ReferenceNotFoundError
from travel_quote.pricing.money import HUNDRED, ONE, ZERO, round2
from travel_quote.pricing.results import (
    AdditionalRisksResult,
    AgeResult,
    BundleDiscountResult,
    ModifiedRisk,
    RiskPremiumLine,
)
from travel_quote.reference.models import RiskBundle
from travel_quote.reference.port import ReferenceDataPort

logger = logging.getLogger(__name__)

MANDATORY_RISK_CODE = "TRAVEL_MEDICAL"

MIN_AGE = 0
MAX_AGE = 80

# (age_from, age_to, coefficient, label); used when no band is active
FALLBACK_AGE_BANDS: Tuple[Tuple[int, int, Decimal, str], ...] = (
    (0, 5, Decimal("1.10"), "Infants and toddlers"),
    (6, 17, Decimal("0.90"), "Children and teenagers"),
    (18, 30, Decimal("1.00"), "Young adults"),
    (31, 40, Decimal("1.10"), "Adults"),
    (41, 50, Decimal("1.30"), "Middle-aged"),
    (51, 60, Decimal("1.60"), "Senior"),
    (61, 70, Decimal("2.00"), "Elderly"),
    (71, 80, Decimal("2.50"), "Very elderly"),
)


def full_years(birth_date: date, as_of: date) -> int:
    """Completed years between two dates (birthday on as_of counts)."""
    years = as_of.year - birth_date.year
    if (as_of.month, as_of.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


def fallback_age_band(age: int) -> Tuple[Decimal, str]:
    for age_from, age_to, coefficient, label in FALLBACK_AGE_BANDS:
        if age_from <= age <= age_to:
            return coefficient, label
    raise InvalidInputError(f"Age {age} is outside the supported range {MIN_AGE}-{MAX_AGE}")


def _unique_codes(codes: Optional[Iterable[str]]) -> List[str]:
    # Keep request order, drop blanks and repeats
    seen: List[str] = []
    for code in codes or ():
        if code is None:
            continue
        norm = str(code).strip().upper()
        if norm and norm not in seen:
            seen.append(norm)
    return seen


class SharedCalculationComponents:
    def __init__(self, reference: ReferenceDataPort) -> None:
        self.reference = reference

    # -----------------------------
    # Age
    # -----------------------------
    def resolve_age(self, birth_date: Optional[date], as_of: date, coefficient_enabled: bool = True) -> AgeResult:
        if birth_date is None:
            raise InvalidInputError("Birth date is required")
        if birth_date > as_of:
            raise InvalidInputError(f"Birth date {birth_date} is after {as_of}")

        age = full_years(birth_date, as_of)
        if age < MIN_AGE or age > MAX_AGE:
            raise InvalidInputError(f"Age {age} is outside the supported range {MIN_AGE}-{MAX_AGE}")

        if not coefficient_enabled:
            _, label = fallback_age_band(age)
            logger.debug("Age coefficient disabled; age=%d uses 1.0", age)
            return AgeResult(age=age, coefficient=ONE, group_label=label)

        band = self.reference.find_age_coefficient(age, as_of)
        if band is None:
            coefficient, label = fallback_age_band(age)
            logger.warning("No age coefficient band for age %d on %s; using built-in %s", age, as_of, coefficient)
            return AgeResult(age=age, coefficient=coefficient, group_label=label, fallback_used=True)

        return AgeResult(age=age, coefficient=band.coefficient, group_label=band.description)

    # -----------------------------
    # Duration
    # -----------------------------
    @staticmethod
    def count_days(date_from: date, date_to: date, inclusive: bool = False) -> int:
        if date_from is None or date_to is None:
            raise InvalidInputError("Agreement dates are required")
        if date_to < date_from:
            raise InvalidInputError(f"Agreement end {date_to} is before start {date_from}")
        days = (date_to - date_from).days
        return days + 1 if inclusive else days

    def resolve_duration(
        self, date_from: date, date_to: date, as_of: date, inclusive: bool = False
    ) -> Tuple[int, Decimal]:
        days = self.count_days(date_from, date_to, inclusive=inclusive)
        band = self.reference.find_duration_coefficient(days, as_of)
        if band is None:
            logger.warning("No duration coefficient for %d days on %s; using 1.0", days, as_of)
            return days, ONE
        return days, band.coefficient

    # -----------------------------
    # Additional risks
    # -----------------------------
    def _age_modifier(self, risk_code: str, age: int, as_of: date) -> Decimal:
        modifier = self.reference.find_age_risk_modifier(risk_code, age, as_of)
        return ONE if modifier is None else modifier.modifier

    def resolve_additional_risks(
        self, selected_risk_codes: Optional[Iterable[str]], age: int, as_of: date
    ) -> AdditionalRisksResult:
        per_risk: List[ModifiedRisk] = []
        total = ZERO

        for code in _unique_codes(selected_risk_codes):
            risk = self.reference.find_risk_type(code, as_of)
            if risk is None:
                logger.debug("Risk '%s' not active on %s; skipped", code, as_of)
                continue
            if risk.is_mandatory:
                continue

            modifier = self._age_modifier(code, age, as_of)
            modified = risk.coefficient * modifier
            per_risk.append(
                ModifiedRisk(
                    risk_code=code,
                    base_coefficient=risk.coefficient,
                    age_modifier=modifier,
                    modified_coefficient=modified,
                )
            )
            total += modified
            logger.debug("Risk '%s': base=%s age_modifier=%s modified=%s", code, risk.coefficient, modifier, modified)

        return AdditionalRisksResult(total_coefficient=total, per_risk=per_risk)

    # -----------------------------
    # Bundles
    # -----------------------------
    def best_bundle(self, selected_risk_codes: Optional[Iterable[str]], as_of: date) -> Optional[RiskBundle]:
        selected = frozenset(_unique_codes(selected_risk_codes))
        best: Optional[RiskBundle] = None
        # Sorted by code, so strict ">" keeps the lexically first on ties
        for bundle in sorted(self.reference.find_all_active_bundles(as_of), key=lambda b: b.code):
            if not bundle.is_applicable(selected):
                continue
            if best is None or bundle.discount_percentage > best.discount_percentage:
                best = bundle
        return best

    def resolve_bundle_discount(
        self, selected_risk_codes: Optional[Iterable[str]], premium_amount: Decimal, as_of: date
    ) -> BundleDiscountResult:
        bundle = self.best_bundle(selected_risk_codes, as_of)
        if bundle is None:
            return BundleDiscountResult(bundle=None, discount_amount=round2(ZERO))

        discount = round2(premium_amount * bundle.discount_percentage / HUNDRED)
        logger.info("Applied bundle '%s' with %s%% discount = %s", bundle.code, bundle.discount_percentage, discount)
        return BundleDiscountResult(bundle=bundle, discount_amount=discount)

    # -----------------------------
    # Breakdown
    # -----------------------------
    def build_risk_breakdown(
        self,
        selected_risk_codes: Optional[Iterable[str]],
        base_rate: Decimal,
        age_coefficient: Decimal,
        country_coefficient: Decimal,
        duration_coefficient: Decimal,
        days: int,
        age: int,
        as_of: date,
    ) -> List[RiskPremiumLine]:
        """
        One line for the mandatory medical risk, then one per selected optional risk.

        Optional lines are priced off the mandatory line:
          line = round2(mandatory_premium * coefficient * age_modifier)
        """
        mandatory = self.reference.find_risk_type(MANDATORY_RISK_CODE, as_of)
        if mandatory is None:
            raise ReferenceNotFoundError("Risk type", MANDATORY_RISK_CODE, as_of)

        base_premium = round2(base_rate * age_coefficient * country_coefficient * duration_coefficient * days)
        lines = [
            RiskPremiumLine(
                risk_code=mandatory.code,
                risk_name=mandatory.name,
                premium=base_premium,
                coefficient=ZERO,
                age_modifier=ONE,
            )
        ]

        for code in _unique_codes(selected_risk_codes):
            risk = self.reference.find_risk_type(code, as_of)
            if risk is None or risk.is_mandatory:
                continue
            modifier = self._age_modifier(code, age, as_of)
            lines.append(
                RiskPremiumLine(
                    risk_code=risk.code,
                    risk_name=risk.name,
                    premium=round2(base_premium * risk.coefficient * modifier),
                    coefficient=risk.coefficient,
                    age_modifier=modifier,
                )
            )
        return lines
