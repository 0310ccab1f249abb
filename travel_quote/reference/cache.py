# travel_quote/reference/cache.py
"""
TTL cache in front of a ReferenceDataPort.

Lookups are keyed by (lookup name, arguments), which always include the
as-of date. There is no invalidation signal: callers tolerate staleness up to
`ttl_seconds` after an administrative change.

Expired entries are dropped on every write, and at most `max_entries` are
kept (oldest written first out), so a long-lived process stays bounded.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from datetime import date
from typing import Any, Callable, Hashable, List, Optional, Tuple

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
from travel_quote.reference.port import ReferenceDataPort

logger = logging.getLogger(__name__)


class CachedReferenceData:
    def __init__(
        self,
        delegate: ReferenceDataPort,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 10_000,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.delegate = delegate
        self.ttl_seconds = float(ttl_seconds)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        # Insertion order == write time order, oldest first
        self._entries: "OrderedDict[Tuple[Hashable, ...], Tuple[float, Any]]" = OrderedDict()

    def _expire(self, now: float) -> None:
        # Caller holds the lock
        while self._entries:
            key, (written, _) = next(iter(self._entries.items()))
            if now - written < self.ttl_seconds and len(self._entries) <= self.max_entries:
                break
            del self._entries[key]

    def _cached(self, name: str, args: Tuple[Hashable, ...], loader: Callable[[], Any]) -> Any:
        key = (name,) + args
        now = self._clock()
        with self._lock:
            hit = self._entries.get(key)
            if hit is not None and now - hit[0] < self.ttl_seconds:
                return hit[1]

        # Load outside the lock; two threads racing on a miss both read the same snapshot.
        logger.debug("Reference cache miss: %s", key)
        value = loader()
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (now, value)
            self._expire(now)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def find_country(self, iso_code: str, as_of: date) -> Optional[Country]:
        return self._cached("country", (iso_code, as_of), lambda: self.delegate.find_country(iso_code, as_of))

    def find_medical_level(self, code: str, as_of: date) -> Optional[MedicalCoverageLevel]:
        return self._cached("medical_level", (code, as_of), lambda: self.delegate.find_medical_level(code, as_of))

    def find_risk_type(self, code: str, as_of: date) -> Optional[RiskType]:
        return self._cached("risk_type", (code, as_of), lambda: self.delegate.find_risk_type(code, as_of))

    def find_age_coefficient(self, age: int, as_of: date) -> Optional[AgeCoefficient]:
        return self._cached("age_coefficient", (age, as_of), lambda: self.delegate.find_age_coefficient(age, as_of))

    def find_duration_coefficient(self, days: int, as_of: date) -> Optional[DurationCoefficient]:
        return self._cached(
            "duration_coefficient", (days, as_of), lambda: self.delegate.find_duration_coefficient(days, as_of)
        )

    def find_age_risk_modifier(self, risk_code: str, age: int, as_of: date) -> Optional[AgeRiskModifier]:
        return self._cached(
            "age_risk_modifier",
            (risk_code, age, as_of),
            lambda: self.delegate.find_age_risk_modifier(risk_code, age, as_of),
        )

    def find_country_default_day_premium(self, iso_code: str, as_of: date) -> Optional[CountryDefaultDayPremium]:
        return self._cached(
            "country_default_day_premium",
            (iso_code, as_of),
            lambda: self.delegate.find_country_default_day_premium(iso_code, as_of),
        )

    def find_all_active_bundles(self, as_of: date) -> List[RiskBundle]:
        bundles = self._cached("bundles", (as_of,), lambda: tuple(self.delegate.find_all_active_bundles(as_of)))
        return list(bundles)

    def find_boolean_config(self, key: str, as_of: date, default: bool) -> bool:
        return self._cached(
            "boolean_config", (key, as_of, default), lambda: self.delegate.find_boolean_config(key, as_of, default)
        )

    def find_rule_parameter(self, rule_name: str, parameter_name: str, as_of: date) -> Optional[RuleParameter]:
        return self._cached(
            "rule_parameter",
            (rule_name, parameter_name, as_of),
            lambda: self.delegate.find_rule_parameter(rule_name, parameter_name, as_of),
        )
