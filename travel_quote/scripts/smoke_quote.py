# travel_quote/scripts/smoke_quote.py
"""
Print a few quotes computed from the shipped reference data.

Run:
  python -m travel_quote.scripts.smoke_quote
"""

from __future__ import annotations

import json

from travel_quote.quoting.service import QuoteService, get_reference_data
from travel_quote.quoting.schemas import PremiumRequest
from travel_quote.utils.logging import configure_logging

EXAMPLES = {
    "spain_week": {
        "person_birth_date": "1990-05-14",
        "agreement_date_from": "2025-07-01",
        "agreement_date_to": "2025-07-08",
        "country_iso_code": "ES",
        "medical_risk_limit_level": "LEVEL_10000",
    },
    "active_traveler_bundle": {
        "person_birth_date": "1985-02-01",
        "agreement_date_from": "2025-08-10",
        "agreement_date_to": "2025-08-24",
        "country_iso_code": "TH",
        "medical_risk_limit_level": "LEVEL_50000",
        "selected_risks": ["SPORT_ACTIVITIES", "ACCIDENT_COVERAGE"],
    },
    "country_default": {
        "person_birth_date": "1978-11-30",
        "agreement_date_from": "2025-09-01",
        "agreement_date_to": "2025-09-11",
        "country_iso_code": "DE",
        "use_country_default_premium": True,
    },
    "declined_senior_high_cover": {
        "person_birth_date": "1949-03-01",
        "agreement_date_from": "2025-06-01",
        "agreement_date_to": "2025-06-15",
        "country_iso_code": "ES",
        "medical_risk_limit_level": "LEVEL_500000",
    },
}


def main() -> None:
    configure_logging("WARNING")
    svc = QuoteService(get_reference_data())

    for name, payload in EXAMPLES.items():
        outcome = svc.quote(PremiumRequest.from_dict(payload))
        print(f"[OK] {name}: {outcome.status} total={outcome.total_premium}")
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
