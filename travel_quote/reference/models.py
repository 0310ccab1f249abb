# travel_quote/reference/models.py
"""
Reference-data entities.

Every entity is read-only for the engines and carries temporal validity:
active on `as_of` iff valid_from <= as_of and (valid_to is None or as_of <= valid_to).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional


class RiskGroup(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


@dataclass(frozen=True)
class Country:
    iso_code: str
    name: str
    risk_group: RiskGroup
    risk_coefficient: Decimal
    valid_from: date
    valid_to: Optional[date] = None


@dataclass(frozen=True)
class MedicalCoverageLevel:
    code: str
    daily_rate: Decimal
    coverage_amount: Decimal
    currency: str = "EUR"
    max_payout_amount: Optional[Decimal] = None
    valid_from: date = date.min
    valid_to: Optional[date] = None

    @property
    def effective_payout_limit(self) -> Decimal:
        if self.max_payout_amount is not None:
            return self.max_payout_amount
        return self.coverage_amount


@dataclass(frozen=True)
class RiskType:
    code: str
    name: str
    coefficient: Decimal
    is_mandatory: bool
    valid_from: date = date.min
    valid_to: Optional[date] = None


@dataclass(frozen=True)
class AgeCoefficient:
    age_from: int
    age_to: int
    coefficient: Decimal
    description: str
    valid_from: date = date.min
    valid_to: Optional[date] = None


@dataclass(frozen=True)
class DurationCoefficient:
    days_from: int
    days_to: int
    coefficient: Decimal
    description: str
    valid_from: date = date.min
    valid_to: Optional[date] = None


@dataclass(frozen=True)
class AgeRiskModifier:
    risk_code: str
    age_from: int
    age_to: int
    modifier: Decimal
    description: str = ""
    valid_from: date = date.min
    valid_to: Optional[date] = None


@dataclass(frozen=True)
class RiskBundle:
    code: str
    name: str
    required_risk_codes: FrozenSet[str]
    discount_percentage: Decimal
    valid_from: date = date.min
    valid_to: Optional[date] = None

    def is_applicable(self, selected: FrozenSet[str]) -> bool:
        return self.required_risk_codes <= selected


@dataclass(frozen=True)
class CountryDefaultDayPremium:
    country_iso_code: str
    amount: Decimal
    currency: str = "EUR"
    valid_from: date = date.min
    valid_to: Optional[date] = None


@dataclass(frozen=True)
class ConfigFlag:
    key: str
    value: bool
    valid_from: date = date.min
    valid_to: Optional[date] = None


@dataclass(frozen=True)
class RuleParameter:
    rule_name: str
    parameter_name: str
    value: str
    valid_from: date = date.min
    valid_to: Optional[date] = None
