# travel_quote/reference/frames.py
"""
pandas-backed reference-data store.

Each entity kind is one table (one CSV file in data/reference/):

  countries, medical_levels, risk_types, age_coefficients,
  duration_coefficients, age_risk_modifiers, risk_bundles,
  country_default_day_premiums, config_flags, rule_parameters

Every table carries valid_from / valid_to columns (valid_to blank = open-ended,
both ends inclusive). Lookups filter the table down to rows active on the
as-of date and then to the requested key.

Usage:
  store = FrameReferenceData.from_dir("data/reference")
  store = FrameReferenceData.from_records({"countries": [{...}, ...]})
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from travel_quote.errors import ReferenceDataConflictError
from travel_quote.pricing.money import to_decimal
from travel_quote.reference.models import (
    AgeCoefficient,
    AgeRiskModifier,
    ConfigFlag,
    Country,
    CountryDefaultDayPremium,
    DurationCoefficient,
    MedicalCoverageLevel,
    RiskBundle,
    RiskGroup,
    RiskType,
    RuleParameter,
)
from travel_quote.utils.io import read_df

logger = logging.getLogger(__name__)

VALIDITY_COLUMNS = ["valid_from", "valid_to"]

# Required columns per table (validity columns are added on top)
TABLES: Dict[str, List[str]] = {
    "countries": ["iso_code", "name", "risk_group", "risk_coefficient"],
    "medical_levels": ["code", "daily_rate", "coverage_amount", "currency", "max_payout_amount"],
    "risk_types": ["code", "name", "coefficient", "is_mandatory"],
    "age_coefficients": ["age_from", "age_to", "coefficient", "description"],
    "duration_coefficients": ["days_from", "days_to", "coefficient", "description"],
    "age_risk_modifiers": ["risk_code", "age_from", "age_to", "modifier", "description"],
    "risk_bundles": ["code", "name", "required_risk_codes", "discount_percentage"],
    "country_default_day_premiums": ["country_iso_code", "amount", "currency"],
    "config_flags": ["key", "value"],
    "rule_parameters": ["rule_name", "parameter_name", "value"],
}

# Columns that hold business codes (compared upper-case)
CODE_COLUMNS = {"iso_code", "code", "risk_code", "country_iso_code"}
INT_COLUMNS = {"age_from", "age_to", "days_from", "days_to"}
OPTIONAL_COLUMNS = {"max_payout_amount", "description", "currency"}

# Natural key per table, used in conflict messages and by the overlap checks
KEY_COLUMNS: Dict[str, List[str]] = {
    "countries": ["iso_code"],
    "medical_levels": ["code"],
    "risk_types": ["code"],
    "age_coefficients": ["age_from", "age_to"],
    "duration_coefficients": ["days_from", "days_to"],
    "age_risk_modifiers": ["risk_code", "age_from", "age_to"],
    "risk_bundles": ["code"],
    "country_default_day_premiums": ["country_iso_code"],
    "config_flags": ["key"],
    "rule_parameters": ["rule_name", "parameter_name"],
}

_BOOL_MAP = {
    "true": True,
    "false": False,
    "yes": True,
    "no": False,
    "1": True,
    "0": False,
    True: True,
    False: False,
    1: True,
    0: False,
}


def _is_blank(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, float) and np.isnan(val):
        return True
    if isinstance(val, str) and val.strip() == "":
        return True
    return val is pd.NaT


def parse_bool(val: Any) -> Optional[bool]:
    if _is_blank(val):
        return None
    if isinstance(val, str):
        return _BOOL_MAP.get(val.strip().lower())
    return _BOOL_MAP.get(val)


def _dec(val: Any) -> Decimal:
    if isinstance(val, str):
        return Decimal(val.strip())
    return to_decimal(val)


def _opt_dec(val: Any) -> Optional[Decimal]:
    return None if _is_blank(val) else _dec(val)


def _to_date(val: Any) -> Optional[date]:
    if _is_blank(val) or pd.isna(val):
        return None
    return pd.Timestamp(val).date()


def _text(val: Any, default: str = "") -> str:
    return default if _is_blank(val) else str(val).strip()


def _parse_codes(val: Any) -> frozenset:
    if _is_blank(val):
        return frozenset()
    if isinstance(val, str):
        parts: Iterable[str] = val.split("|")
    else:
        parts = val
    return frozenset(str(p).strip().upper() for p in parts if str(p).strip())


def _normalise(name: str, df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Check columns, parse validity dates and upper-case codes."""
    required = TABLES[name]
    if df is None or (df.empty and len(df.columns) == 0):
        return pd.DataFrame(
            {
                **{c: pd.Series(dtype="object") for c in required},
                "valid_from": pd.Series(dtype="datetime64[ns]"),
                "valid_to": pd.Series(dtype="datetime64[ns]"),
            }
        )

    out = df.copy()
    for col in OPTIONAL_COLUMNS & set(required):
        if col not in out.columns:
            out[col] = None
    if "valid_to" not in out.columns:
        out["valid_to"] = None

    missing = [c for c in required + ["valid_from"] if c not in out.columns]
    if missing:
        raise KeyError(f"Reference table '{name}' missing columns: {missing}. Found: {list(out.columns)}")

    for col in VALIDITY_COLUMNS:
        out[col] = pd.to_datetime(out[col].map(lambda v: None if _is_blank(v) else v), errors="raise")

    for col in required:
        if col in CODE_COLUMNS:
            out[col] = out[col].astype(str).str.strip().str.upper()
        elif col in INT_COLUMNS:
            out[col] = pd.to_numeric(out[col], errors="raise").astype("int64")

    return out.reset_index(drop=True)


class FrameReferenceData:
    """ReferenceDataPort over in-memory DataFrames."""

    def __init__(self, frames: Mapping[str, pd.DataFrame], *, strict: bool = True) -> None:
        unknown = sorted(set(frames) - set(TABLES))
        if unknown:
            raise KeyError(f"Unknown reference tables: {unknown}")
        self._frames: Dict[str, pd.DataFrame] = {name: _normalise(name, frames.get(name)) for name in TABLES}
        self.strict = strict

    # -----------------------------
    # Construction
    # -----------------------------
    @classmethod
    def from_dir(cls, path: Union[str, Path], *, strict: bool = True) -> "FrameReferenceData":
        """Load every <table>.csv found in `path`; absent files become empty tables."""
        path = Path(path)
        if not path.is_dir():
            raise FileNotFoundError(f"Reference data directory not found: {path}")

        frames: Dict[str, pd.DataFrame] = {}
        for name in TABLES:
            for suffix in (".csv", ".parquet"):
                candidate = path / f"{name}{suffix}"
                if candidate.exists():
                    frames[name] = read_df(candidate, as_text=True)
                    break
            else:
                logger.warning("Reference table '%s' not found in %s; using empty table", name, path)

        logger.info("Loaded reference data from %s (%d tables)", path, len(frames))
        return cls(frames, strict=strict)

    @classmethod
    def from_records(
        cls, records: Mapping[str, List[Dict[str, Any]]], *, strict: bool = True
    ) -> "FrameReferenceData":
        return cls({name: pd.DataFrame(rows) for name, rows in records.items()}, strict=strict)

    def table(self, name: str) -> pd.DataFrame:
        return self._frames[name].copy()

    @property
    def table_counts(self) -> Dict[str, int]:
        return {name: int(len(df)) for name, df in self._frames.items()}

    # -----------------------------
    # Filtering helpers
    # -----------------------------
    def _active(self, name: str, as_of: date) -> pd.DataFrame:
        df = self._frames[name]
        ts = pd.Timestamp(as_of)
        mask = (df["valid_from"] <= ts) & (df["valid_to"].isna() | (df["valid_to"] >= ts))
        return df.loc[mask]

    def _single(self, name: str, key: Any, rows: pd.DataFrame, as_of: date) -> Optional[pd.Series]:
        if rows.empty:
            return None
        if len(rows) > 1:
            msg = f"{len(rows)} active '{name}' records for {key} on {as_of}"
            if self.strict:
                raise ReferenceDataConflictError(msg)
            logger.warning("%s; using the most recent one", msg)
            rows = rows.sort_values("valid_from", ascending=False, kind="mergesort")
        return rows.iloc[0]

    @staticmethod
    def _in_band(rows: pd.DataFrame, low: str, high: str, value: int) -> pd.DataFrame:
        return rows.loc[(rows[low] <= value) & (rows[high] >= value)]

    # -----------------------------
    # ReferenceDataPort
    # -----------------------------
    def find_country(self, iso_code: str, as_of: date) -> Optional[Country]:
        rows = self._active("countries", as_of)
        key = iso_code.strip().upper()
        row = self._single("countries", key, rows.loc[rows["iso_code"] == key], as_of)
        if row is None:
            return None
        return Country(
            iso_code=row["iso_code"],
            name=_text(row["name"], row["iso_code"]),
            risk_group=RiskGroup(_text(row["risk_group"]).upper()),
            risk_coefficient=_dec(row["risk_coefficient"]),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_medical_level(self, code: str, as_of: date) -> Optional[MedicalCoverageLevel]:
        rows = self._active("medical_levels", as_of)
        key = code.strip().upper()
        row = self._single("medical_levels", key, rows.loc[rows["code"] == key], as_of)
        if row is None:
            return None
        return MedicalCoverageLevel(
            code=row["code"],
            daily_rate=_dec(row["daily_rate"]),
            coverage_amount=_dec(row["coverage_amount"]),
            currency=_text(row["currency"], "EUR"),
            max_payout_amount=_opt_dec(row["max_payout_amount"]),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_risk_type(self, code: str, as_of: date) -> Optional[RiskType]:
        rows = self._active("risk_types", as_of)
        key = code.strip().upper()
        row = self._single("risk_types", key, rows.loc[rows["code"] == key], as_of)
        if row is None:
            return None
        return RiskType(
            code=row["code"],
            name=_text(row["name"], row["code"]),
            coefficient=_dec(row["coefficient"]),
            is_mandatory=bool(parse_bool(row["is_mandatory"])),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_age_coefficient(self, age: int, as_of: date) -> Optional[AgeCoefficient]:
        rows = self._in_band(self._active("age_coefficients", as_of), "age_from", "age_to", age)
        row = self._single("age_coefficients", f"age {age}", rows, as_of)
        if row is None:
            return None
        return AgeCoefficient(
            age_from=int(row["age_from"]),
            age_to=int(row["age_to"]),
            coefficient=_dec(row["coefficient"]),
            description=_text(row["description"]),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_duration_coefficient(self, days: int, as_of: date) -> Optional[DurationCoefficient]:
        rows = self._in_band(self._active("duration_coefficients", as_of), "days_from", "days_to", days)
        row = self._single("duration_coefficients", f"{days} days", rows, as_of)
        if row is None:
            return None
        return DurationCoefficient(
            days_from=int(row["days_from"]),
            days_to=int(row["days_to"]),
            coefficient=_dec(row["coefficient"]),
            description=_text(row["description"]),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_age_risk_modifier(self, risk_code: str, age: int, as_of: date) -> Optional[AgeRiskModifier]:
        rows = self._active("age_risk_modifiers", as_of)
        key = risk_code.strip().upper()
        rows = self._in_band(rows.loc[rows["risk_code"] == key], "age_from", "age_to", age)
        row = self._single("age_risk_modifiers", f"{key} age {age}", rows, as_of)
        if row is None:
            return None
        return AgeRiskModifier(
            risk_code=row["risk_code"],
            age_from=int(row["age_from"]),
            age_to=int(row["age_to"]),
            modifier=_dec(row["modifier"]),
            description=_text(row["description"]),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_country_default_day_premium(
        self, iso_code: str, as_of: date
    ) -> Optional[CountryDefaultDayPremium]:
        rows = self._active("country_default_day_premiums", as_of)
        key = iso_code.strip().upper()
        row = self._single(
            "country_default_day_premiums", key, rows.loc[rows["country_iso_code"] == key], as_of
        )
        if row is None:
            return None
        return CountryDefaultDayPremium(
            country_iso_code=row["country_iso_code"],
            amount=_dec(row["amount"]),
            currency=_text(row["currency"], "EUR"),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_all_active_bundles(self, as_of: date) -> List[RiskBundle]:
        rows = self._active("risk_bundles", as_of)
        duplicated = rows["code"][rows["code"].duplicated()].unique().tolist()
        if duplicated and self.strict:
            raise ReferenceDataConflictError(f"Multiple active 'risk_bundles' records for {duplicated} on {as_of}")
        if duplicated:
            logger.warning("Multiple active bundles for %s on %s; using the most recent", duplicated, as_of)
            rows = rows.sort_values("valid_from", ascending=False, kind="mergesort").drop_duplicates("code")

        bundles = [
            RiskBundle(
                code=row["code"],
                name=_text(row["name"], row["code"]),
                required_risk_codes=_parse_codes(row["required_risk_codes"]),
                discount_percentage=_dec(row["discount_percentage"]),
                valid_from=_to_date(row["valid_from"]),
                valid_to=_to_date(row["valid_to"]),
            )
            for _, row in rows.iterrows()
        ]
        return sorted(bundles, key=lambda b: b.code)

    def find_config_flag(self, key: str, as_of: date) -> Optional[ConfigFlag]:
        rows = self._active("config_flags", as_of)
        row = self._single("config_flags", key, rows.loc[rows["key"].astype(str).str.strip() == key], as_of)
        if row is None:
            return None
        value = parse_bool(row["value"])
        if value is None:
            raise ValueError(f"Config flag '{key}' has non-boolean value: {row['value']!r}")
        return ConfigFlag(
            key=key,
            value=value,
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )

    def find_boolean_config(self, key: str, as_of: date, default: bool) -> bool:
        try:
            flag = self.find_config_flag(key, as_of)
        except ValueError as e:
            logger.warning("%s; using default %s", e, default)
            return default
        if flag is None:
            logger.debug("Config '%s' not found for %s, using default %s", key, as_of, default)
            return default
        return flag.value

    def find_rule_parameter(self, rule_name: str, parameter_name: str, as_of: date) -> Optional[RuleParameter]:
        rows = self._active("rule_parameters", as_of)
        rows = rows.loc[
            (rows["rule_name"].astype(str).str.strip() == rule_name)
            & (rows["parameter_name"].astype(str).str.strip() == parameter_name)
        ]
        row = self._single("rule_parameters", f"{rule_name}.{parameter_name}", rows, as_of)
        if row is None:
            return None
        return RuleParameter(
            rule_name=rule_name,
            parameter_name=parameter_name,
            value=_text(row["value"]),
            valid_from=_to_date(row["valid_from"]),
            valid_to=_to_date(row["valid_to"]),
        )


def find_overlaps(table: pd.DataFrame, name: str) -> List[Dict[str, Any]]:
    """
    Return pairs of records that share a key and overlap in time.

    Band tables (age/day ranges) also count overlapping ranges as a shared key.
    """
    df = _normalise(name, table)
    far_future = pd.Timestamp(datetime(9999, 12, 31))
    keys = KEY_COLUMNS[name]
    band = {
        "age_coefficients": ("age_from", "age_to"),
        "duration_coefficients": ("days_from", "days_to"),
        "age_risk_modifiers": ("age_from", "age_to"),
    }.get(name)
    group_keys = [k for k in keys if band is None or k not in band]

    overlaps: List[Dict[str, Any]] = []
    records = df.to_dict("records")
    for i, a in enumerate(records):
        for b in records[i + 1:]:
            if any(a[k] != b[k] for k in group_keys):
                continue
            if band is not None and (a[band[0]] > b[band[1]] or b[band[0]] > a[band[1]]):
                continue
            a_end = far_future if pd.isna(a["valid_to"]) else a["valid_to"]
            b_end = far_future if pd.isna(b["valid_to"]) else b["valid_to"]
            if a["valid_from"] <= b_end and b["valid_from"] <= a_end:
                overlaps.append({"table": name, "a": {k: a[k] for k in keys}, "b": {k: b[k] for k in keys}})
    return overlaps
