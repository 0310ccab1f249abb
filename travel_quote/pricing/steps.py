# travel_quote/pricing/steps.py
"""
Human-readable calculation steps returned with every premium.

Intermediate values in the steps are unrounded; only the money amounts they
end on (base premium, final premium) are the rounded figures of the result.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List

from travel_quote.pricing.money import ONE, ZERO
from travel_quote.pricing.results import CalculationStep


def _additional_risks_step(running: Decimal, additional: Decimal) -> CalculationStep:
    after = running * (ONE + additional)
    return CalculationStep(
        "Additional risks (age-modified)",
        f"{running:.4f} × (1 + {additional:.4f}) = {after:.4f}",
        after,
    )


def _bundle_step(base_premium: Decimal, discount: Decimal, final_premium: Decimal, currency: str) -> CalculationStep:
    return CalculationStep(
        "Bundle discount applied",
        f"{base_premium:.2f} - {discount:.2f} (bundle discount) = {final_premium:.2f} {currency}",
        final_premium,
    )


def medical_level_steps(
    base_rate: Decimal,
    age_coefficient: Decimal,
    country_coefficient: Decimal,
    duration_coefficient: Decimal,
    additional_risks_coefficient: Decimal,
    days: int,
    base_premium: Decimal,
    bundle_discount: Decimal,
    final_premium: Decimal,
    currency: str = "EUR",
) -> List[CalculationStep]:
    steps = [CalculationStep("Base daily rate (medical level)", f"Daily Rate = {base_rate:.2f} {currency}", base_rate)]

    after_age = base_rate * age_coefficient
    steps.append(
        CalculationStep(
            "Age coefficient applied",
            f"{base_rate:.2f} × {age_coefficient:.4f} (age coeff) = {after_age:.4f}",
            after_age,
        )
    )

    after_country = after_age * country_coefficient
    steps.append(
        CalculationStep(
            "Country risk coefficient applied",
            f"{after_age:.4f} × {country_coefficient:.4f} (country coeff) = {after_country:.4f}",
            after_country,
        )
    )

    running = after_country * duration_coefficient
    steps.append(
        CalculationStep(
            "Duration coefficient applied",
            f"{after_country:.4f} × {duration_coefficient:.4f} (duration coeff) = {running:.4f}",
            running,
        )
    )

    if additional_risks_coefficient > ZERO:
        steps.append(_additional_risks_step(running, additional_risks_coefficient))

    steps.append(CalculationStep("Multiply by trip days", f"× {days} days = {base_premium:.2f} {currency}", base_premium))

    if bundle_discount > ZERO:
        steps.append(_bundle_step(base_premium, bundle_discount, final_premium, currency))
    return steps


def country_default_steps(
    default_day_premium: Decimal,
    age_coefficient: Decimal,
    duration_coefficient: Decimal,
    additional_risks_coefficient: Decimal,
    days: int,
    base_premium: Decimal,
    bundle_discount: Decimal,
    final_premium: Decimal,
    currency: str = "EUR",
) -> List[CalculationStep]:
    """The country coefficient is already part of the default day premium, so it gets no step."""
    steps = [
        CalculationStep(
            "Country default day premium (country risk already included)",
            f"Default Day Rate = {default_day_premium:.2f} {currency}",
            default_day_premium,
        )
    ]

    after_age = default_day_premium * age_coefficient
    steps.append(
        CalculationStep(
            "Age coefficient applied",
            f"{default_day_premium:.2f} × {age_coefficient:.4f} (age coeff) = {after_age:.4f}",
            after_age,
        )
    )

    running = after_age * duration_coefficient
    steps.append(
        CalculationStep(
            "Duration coefficient applied",
            f"{after_age:.4f} × {duration_coefficient:.4f} (duration coeff) = {running:.4f}",
            running,
        )
    )

    if additional_risks_coefficient > ZERO:
        steps.append(_additional_risks_step(running, additional_risks_coefficient))

    steps.append(CalculationStep("Multiply by trip days", f"× {days} days = {base_premium:.2f} {currency}", base_premium))

    if bundle_discount > ZERO:
        steps.append(_bundle_step(base_premium, bundle_discount, final_premium, currency))
    return steps
