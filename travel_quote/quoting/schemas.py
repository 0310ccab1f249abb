# travel_quote/quoting/schemas.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from travel_quote.errors import InvalidInputError
from travel_quote.pricing.money import jsonable
from travel_quote.pricing.results import PremiumResult
from travel_quote.underwriting.domain import UnderwritingResult


def _pick(payload: Mapping[str, Any], *keys: str) -> Any:
    # snake_case first, then the camelCase names used by older clients
    for k in keys:
        if k in payload and payload[k] is not None:
            return payload[k]
    return None


def _parse_date(value: Any, name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise InvalidInputError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}") from e


def _parse_flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


@dataclass(frozen=True)
class PremiumRequest:
    person_birth_date: date
    agreement_date_from: date
    agreement_date_to: date
    country_iso_code: str
    medical_risk_limit_level: Optional[str] = None
    selected_risks: Tuple[str, ...] = ()
    use_country_default_premium: bool = False
    apply_age_coefficient: Optional[bool] = None
    person_first_name: Optional[str] = None
    person_last_name: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PremiumRequest":
        """
        Build a request from a JSON-like dict.

        Dates are ISO strings; codes are upper-cased. Only types are checked here,
        the business checks happen in underwriting and pricing.
        """
        birth = _parse_date(_pick(payload, "person_birth_date", "personBirthDate"), "person_birth_date")
        date_from = _parse_date(_pick(payload, "agreement_date_from", "agreementDateFrom"), "agreement_date_from")
        date_to = _parse_date(_pick(payload, "agreement_date_to", "agreementDateTo"), "agreement_date_to")
        if date_from is None or date_to is None:
            raise InvalidInputError("agreement_date_from and agreement_date_to are required")

        country = _pick(payload, "country_iso_code", "countryIsoCode")
        if not country or not str(country).strip():
            raise InvalidInputError("country_iso_code is required")

        level = _pick(payload, "medical_risk_limit_level", "medicalRiskLimitLevel")
        risks = _pick(payload, "selected_risks", "selectedRisks") or []
        if isinstance(risks, str):
            risks = [risks]

        return cls(
            person_birth_date=birth,
            agreement_date_from=date_from,
            agreement_date_to=date_to,
            country_iso_code=str(country).strip().upper(),
            medical_risk_limit_level=str(level).strip().upper() if level else None,
            selected_risks=tuple(str(r).strip().upper() for r in risks if r is not None and str(r).strip()),
            use_country_default_premium=bool(
                _parse_flag(_pick(payload, "use_country_default_premium", "useCountryDefaultPremium"))
            ),
            apply_age_coefficient=_parse_flag(_pick(payload, "apply_age_coefficient", "applyAgeCoefficient")),
            person_first_name=_pick(payload, "person_first_name", "personFirstName"),
            person_last_name=_pick(payload, "person_last_name", "personLastName"),
        )


@dataclass(frozen=True)
class DiscountOutcome:
    premium_before: Decimal
    discount_amount: Decimal
    premium_after: Decimal
    applied_codes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "premium_before": jsonable(self.premium_before),
            "discount_amount": jsonable(self.discount_amount),
            "premium_after": jsonable(self.premium_after),
            "applied_codes": list(self.applied_codes),
        }


class QuoteStatus:
    SUCCESS = "SUCCESS"
    REQUIRES_REVIEW = "REQUIRES_REVIEW"
    DECLINED = "DECLINED"
    SYSTEM_ERROR = "SYSTEM_ERROR"


@dataclass(frozen=True)
class QuoteOutcome:
    status: str
    underwriting: UnderwritingResult
    premium: Optional[PremiumResult] = None
    discount: Optional[DiscountOutcome] = None
    total_premium: Optional[Decimal] = None
    # Stand-alone premium per optional risk (inclusive-day convention)
    risk_premiums: Dict[str, Decimal] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "underwriting": self.underwriting.to_dict(),
            "premium": self.premium.to_dict() if self.premium is not None else None,
            "discount": self.discount.to_dict() if self.discount is not None else None,
            "total_premium": jsonable(self.total_premium),
            "risk_premiums": {code: jsonable(amount) for code, amount in self.risk_premiums.items()},
            "errors": list(self.errors),
        }
