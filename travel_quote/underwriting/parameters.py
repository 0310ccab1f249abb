# travel_quote/underwriting/parameters.py
"""
Typed access to underwriting rule parameters stored as reference data.

A missing or unparsable value never fails a rule: the rule's own default is
used instead.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, TypeVar

from travel_quote.reference.port import ReferenceDataPort

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RuleParameterService:
    def __init__(self, reference: ReferenceDataPort) -> None:
        self.reference = reference

    def _get(self, rule_name: str, parameter_name: str, as_of: date, default: T, parse: Callable[[str], T]) -> T:
        param = self.reference.find_rule_parameter(rule_name, parameter_name, as_of)
        raw: Optional[str] = None if param is None else param.value
        if raw is None or raw.strip() == "":
            logger.debug("Parameter %s.%s not set on %s; using default %s", rule_name, parameter_name, as_of, default)
            return default
        try:
            return parse(raw.strip())
        except (ValueError, InvalidOperation):
            logger.warning(
                "Invalid value %r for parameter %s.%s; using default %s", raw, rule_name, parameter_name, default
            )
            return default

    def get_int(self, rule_name: str, parameter_name: str, as_of: date, default: int) -> int:
        return self._get(rule_name, parameter_name, as_of, default, int)

    def get_decimal(self, rule_name: str, parameter_name: str, as_of: date, default: Decimal) -> Decimal:
        return self._get(rule_name, parameter_name, as_of, default, Decimal)
