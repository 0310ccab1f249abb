# travel_quote/pricing/engine.py
"""
Premium calculation facade.

Usage:
  engine = PremiumCalculationEngine(reference)
  result = engine.calculate(request)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict

from travel_quote.pricing.components import SharedCalculationComponents
from travel_quote.pricing.config import CalculationConfigService
from travel_quote.pricing.results import CalculationMode, PremiumResult
from travel_quote.pricing.strategies import (
    CountryDefaultStrategy,
    MedicalLevelStrategy,
    PremiumCalculationStrategy,
)
from travel_quote.reference.port import ReferenceDataPort

if TYPE_CHECKING:
    from travel_quote.quoting.schemas import PremiumRequest

logger = logging.getLogger(__name__)


class PremiumCalculationEngine:
    def __init__(self, reference: ReferenceDataPort) -> None:
        self.reference = reference
        components = SharedCalculationComponents(reference)
        config = CalculationConfigService(reference)
        self.strategies: Dict[CalculationMode, PremiumCalculationStrategy] = {
            CalculationMode.MEDICAL_LEVEL: MedicalLevelStrategy(reference, components, config),
            CalculationMode.COUNTRY_DEFAULT: CountryDefaultStrategy(reference, components, config),
        }

    def select_mode(self, request: "PremiumRequest") -> CalculationMode:
        """COUNTRY_DEFAULT only when asked for and a day premium exists on the agreement start date."""
        if not request.use_country_default_premium:
            return CalculationMode.MEDICAL_LEVEL

        as_of = request.agreement_date_from
        if self.reference.find_country_default_day_premium(request.country_iso_code, as_of) is not None:
            return CalculationMode.COUNTRY_DEFAULT

        logger.warning(
            "Country default premium requested but none found for %s on %s; using MEDICAL_LEVEL",
            request.country_iso_code,
            as_of,
        )
        return CalculationMode.MEDICAL_LEVEL

    def calculate(self, request: "PremiumRequest") -> PremiumResult:
        mode = self.select_mode(request)
        logger.info("Calculating premium in %s mode", mode.value)
        return self.strategies[mode].calculate(request)
