# travel_quote/pricing/config.py
"""
Calculation configuration.

Feature flags that change how a premium is computed live in the reference
data (table `config_flags`) so they can be switched per date:
- ageCoefficientEnabled: apply the age coefficient (default true)

A request may override the flag for itself (`apply_age_coefficient`).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from travel_quote.reference.port import ReferenceDataPort

logger = logging.getLogger(__name__)

AGE_COEFFICIENT_ENABLED_KEY = "ageCoefficientEnabled"


class CalculationConfigService:
    def __init__(self, reference: ReferenceDataPort) -> None:
        self.reference = reference

    def is_age_coefficient_enabled(self, as_of: date) -> bool:
        return self.reference.find_boolean_config(AGE_COEFFICIENT_ENABLED_KEY, as_of, True)

    def resolve_age_coefficient_enabled(self, request_override: Optional[bool], as_of: date) -> bool:
        """Per-request override wins; otherwise the flag active on `as_of`."""
        if request_override is not None:
            logger.debug("Age coefficient override from request: %s", request_override)
            return bool(request_override)
        return self.is_age_coefficient_enabled(as_of)
