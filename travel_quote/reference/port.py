# travel_quote/reference/port.py
from __future__ import annotations

from datetime import date
from typing import List, Optional, Protocol

from travel_quote.reference.models import (
    AgeCoefficient,
    AgeRiskModifier,
    Country,
    CountryDefaultDayPremium,
    DurationCoefficient,
    MedicalCoverageLevel,
    RiskBundle,
    RiskType,
    RuleParameter,
)


class ReferenceDataPort(Protocol):
    """
    Temporal lookups the engines read from.

    Every find_* returns the single record active on `as_of`, or None.
    """

    def find_country(self, iso_code: str, as_of: date) -> Optional[Country]: ...

    def find_medical_level(self, code: str, as_of: date) -> Optional[MedicalCoverageLevel]: ...

    def find_risk_type(self, code: str, as_of: date) -> Optional[RiskType]: ...

    def find_age_coefficient(self, age: int, as_of: date) -> Optional[AgeCoefficient]: ...

    def find_duration_coefficient(self, days: int, as_of: date) -> Optional[DurationCoefficient]: ...

    def find_age_risk_modifier(self, risk_code: str, age: int, as_of: date) -> Optional[AgeRiskModifier]: ...

    def find_country_default_day_premium(
        self, iso_code: str, as_of: date
    ) -> Optional[CountryDefaultDayPremium]: ...

    def find_all_active_bundles(self, as_of: date) -> List[RiskBundle]: ...

    def find_boolean_config(self, key: str, as_of: date, default: bool) -> bool: ...

    def find_rule_parameter(
        self, rule_name: str, parameter_name: str, as_of: date
    ) -> Optional[RuleParameter]: ...
