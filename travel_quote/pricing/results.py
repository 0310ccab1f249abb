# travel_quote/pricing/results.py
"""
Per-request value objects produced by the pricing engine.

Nothing here is persisted: results are built for one request, serialised
into the response and dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from travel_quote.pricing.money import ZERO, jsonable
from travel_quote.reference.models import RiskBundle


class CalculationMode(str, Enum):
    MEDICAL_LEVEL = "MEDICAL_LEVEL"
    COUNTRY_DEFAULT = "COUNTRY_DEFAULT"


@dataclass(frozen=True)
class AgeResult:
    age: int
    coefficient: Decimal
    group_label: str
    fallback_used: bool = False


@dataclass(frozen=True)
class ModifiedRisk:
    risk_code: str
    base_coefficient: Decimal
    age_modifier: Decimal
    modified_coefficient: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_code": self.risk_code,
            "base_coefficient": jsonable(self.base_coefficient),
            "age_modifier": jsonable(self.age_modifier),
            "modified_coefficient": jsonable(self.modified_coefficient),
        }


@dataclass(frozen=True)
class AdditionalRisksResult:
    total_coefficient: Decimal
    per_risk: List[ModifiedRisk] = field(default_factory=list)


@dataclass(frozen=True)
class BundleDiscountResult:
    bundle: Optional[RiskBundle]
    discount_amount: Decimal = ZERO

    @property
    def applied(self) -> bool:
        return self.bundle is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.bundle is None:
            return {"bundle": None, "discount_amount": jsonable(self.discount_amount)}
        return {
            "bundle": {
                "code": self.bundle.code,
                "name": self.bundle.name,
                "discount_percentage": jsonable(self.bundle.discount_percentage),
                "required_risks": sorted(self.bundle.required_risk_codes),
            },
            "discount_amount": jsonable(self.discount_amount),
        }


@dataclass(frozen=True)
class RiskPremiumLine:
    risk_code: str
    risk_name: str
    premium: Decimal
    coefficient: Decimal
    age_modifier: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_code": self.risk_code,
            "risk_name": self.risk_name,
            "premium": jsonable(self.premium),
            "coefficient": jsonable(self.coefficient),
            "age_modifier": jsonable(self.age_modifier),
        }


@dataclass(frozen=True)
class CalculationStep:
    description: str
    formula: str
    result: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "formula": self.formula, "result": jsonable(self.result)}


@dataclass(frozen=True)
class PremiumResult:
    final_premium: Decimal
    base_rate: Decimal
    base_premium: Decimal
    age: int
    age_coefficient: Decimal
    age_group: str
    country_coefficient: Decimal
    duration_coefficient: Decimal
    additional_risks_coefficient: Decimal
    total_coefficient: Decimal
    days: int
    coverage_amount: Optional[Decimal]
    risk_breakdown: List[RiskPremiumLine]
    bundle_discount: BundleDiscountResult
    steps: List[CalculationStep]
    mode: CalculationMode
    payout_limit: Optional[Decimal]
    payout_limit_applied: bool
    currency: str = "EUR"
    additional_risks: List[ModifiedRisk] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "final_premium": jsonable(self.final_premium),
            "currency": self.currency,
            "mode": self.mode.value,
            "base_rate": jsonable(self.base_rate),
            "base_premium": jsonable(self.base_premium),
            "age": self.age,
            "age_coefficient": jsonable(self.age_coefficient),
            "age_group": self.age_group,
            "country_coefficient": jsonable(self.country_coefficient),
            "duration_coefficient": jsonable(self.duration_coefficient),
            "additional_risks_coefficient": jsonable(self.additional_risks_coefficient),
            "total_coefficient": jsonable(self.total_coefficient),
            "days": self.days,
            "coverage_amount": jsonable(self.coverage_amount),
            "payout_limit": jsonable(self.payout_limit),
            "payout_limit_applied": self.payout_limit_applied,
            "risk_breakdown": [line.to_dict() for line in self.risk_breakdown],
            "additional_risks": [r.to_dict() for r in self.additional_risks],
            "bundle_discount": self.bundle_discount.to_dict(),
            "steps": [s.to_dict() for s in self.steps],
        }
