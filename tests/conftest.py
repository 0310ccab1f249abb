"""
Pytest configuration and fixtures for the Travel Quote Engine
"""
import copy
from datetime import date
from pathlib import Path

import pytest

from travel_quote.quoting.schemas import PremiumRequest
from travel_quote.reference.frames import FrameReferenceData

SEED_DIR = Path(__file__).resolve().parents[1] / "data" / "reference"

FROM = "2020-01-01"

BASE_RECORDS = {
    "countries": [
        {"iso_code": "ES", "name": "Spain", "risk_group": "LOW", "risk_coefficient": "1.00", "valid_from": FROM},
        {"iso_code": "TH", "name": "Thailand", "risk_group": "MEDIUM", "risk_coefficient": "1.30", "valid_from": FROM},
        {"iso_code": "IN", "name": "India", "risk_group": "HIGH", "risk_coefficient": "1.80", "valid_from": FROM},
        {"iso_code": "AF", "name": "Afghanistan", "risk_group": "VERY_HIGH", "risk_coefficient": "2.50", "valid_from": FROM},
    ],
    "medical_levels": [
        {"code": "LEVEL_10000", "daily_rate": "2.00", "coverage_amount": "10000", "currency": "EUR", "valid_from": FROM},
        {"code": "LEVEL_50000", "daily_rate": "4.50", "coverage_amount": "50000", "currency": "EUR", "valid_from": FROM},
        {"code": "LEVEL_150000", "daily_rate": "9.00", "coverage_amount": "150000", "currency": "EUR", "valid_from": FROM},
        {"code": "LEVEL_250000", "daily_rate": "15.00", "coverage_amount": "250000", "currency": "EUR", "valid_from": FROM},
        {
            "code": "LEVEL_500000",
            "daily_rate": "20.00",
            "coverage_amount": "500000",
            "currency": "EUR",
            "max_payout_amount": "400000",
            "valid_from": FROM,
        },
    ],
    "risk_types": [
        {"code": "TRAVEL_MEDICAL", "name": "Medical Coverage", "coefficient": "0", "is_mandatory": "true", "valid_from": FROM},
        {"code": "SPORT_ACTIVITIES", "name": "Sport Activities", "coefficient": "0.30", "is_mandatory": "false", "valid_from": FROM},
        {"code": "EXTREME_SPORT", "name": "Extreme Sport", "coefficient": "0.60", "is_mandatory": "false", "valid_from": FROM},
        {"code": "ACCIDENT_COVERAGE", "name": "Accident Coverage", "coefficient": "0.20", "is_mandatory": "false", "valid_from": FROM},
        {"code": "CIVIL_LIABILITY", "name": "Civil Liability", "coefficient": "0.10", "is_mandatory": "false", "valid_from": FROM},
        {"code": "LUGGAGE_LOSS", "name": "Luggage Loss", "coefficient": "0.10", "is_mandatory": "false", "valid_from": FROM},
    ],
    "age_coefficients": [
        {"age_from": 0, "age_to": 5, "coefficient": "1.10", "description": "Infants and toddlers", "valid_from": FROM},
        {"age_from": 6, "age_to": 17, "coefficient": "0.90", "description": "Children and teenagers", "valid_from": FROM},
        {"age_from": 18, "age_to": 30, "coefficient": "1.00", "description": "Young adults", "valid_from": FROM},
        {"age_from": 31, "age_to": 40, "coefficient": "1.10", "description": "Adults", "valid_from": FROM},
        {"age_from": 41, "age_to": 50, "coefficient": "1.30", "description": "Middle-aged", "valid_from": FROM},
        {"age_from": 51, "age_to": 60, "coefficient": "1.60", "description": "Senior", "valid_from": FROM},
        {"age_from": 61, "age_to": 70, "coefficient": "2.00", "description": "Elderly", "valid_from": FROM},
        {"age_from": 71, "age_to": 80, "coefficient": "2.50", "description": "Very elderly", "valid_from": FROM},
    ],
    "duration_coefficients": [
        {"days_from": 0, "days_to": 10, "coefficient": "1.00", "description": "Short trip", "valid_from": FROM},
        {"days_from": 11, "days_to": 30, "coefficient": "0.95", "description": "Standard trip", "valid_from": FROM},
        {"days_from": 31, "days_to": 60, "coefficient": "0.90", "description": "Long trip", "valid_from": FROM},
        {"days_from": 61, "days_to": 90, "coefficient": "0.85", "description": "Extended trip", "valid_from": FROM},
        {"days_from": 91, "days_to": 180, "coefficient": "0.80", "description": "Long stay", "valid_from": FROM},
        {"days_from": 181, "days_to": 365, "coefficient": "0.75", "description": "Annual stay", "valid_from": FROM},
    ],
    "age_risk_modifiers": [
        {"risk_code": "SPORT_ACTIVITIES", "age_from": 0, "age_to": 40, "modifier": "1.00", "valid_from": FROM},
        {"risk_code": "SPORT_ACTIVITIES", "age_from": 41, "age_to": 60, "modifier": "1.20", "valid_from": FROM},
        {"risk_code": "SPORT_ACTIVITIES", "age_from": 61, "age_to": 80, "modifier": "1.50", "valid_from": FROM},
        {"risk_code": "EXTREME_SPORT", "age_from": 0, "age_to": 30, "modifier": "1.00", "valid_from": FROM},
        {"risk_code": "EXTREME_SPORT", "age_from": 31, "age_to": 50, "modifier": "1.30", "valid_from": FROM},
        {"risk_code": "EXTREME_SPORT", "age_from": 51, "age_to": 70, "modifier": "1.80", "valid_from": FROM},
        {"risk_code": "EXTREME_SPORT", "age_from": 71, "age_to": 80, "modifier": "2.50", "valid_from": FROM},
        {"risk_code": "ACCIDENT_COVERAGE", "age_from": 0, "age_to": 60, "modifier": "1.00", "valid_from": FROM},
        {"risk_code": "ACCIDENT_COVERAGE", "age_from": 61, "age_to": 80, "modifier": "1.20", "valid_from": FROM},
    ],
    "risk_bundles": [
        {
            "code": "ACTIVE_TRAVELER",
            "name": "Active Traveler",
            "required_risk_codes": "SPORT_ACTIVITIES|ACCIDENT_COVERAGE",
            "discount_percentage": "15",
            "valid_from": FROM,
        },
        {
            "code": "ADVENTURE_PACK",
            "name": "Adventure Pack",
            "required_risk_codes": "EXTREME_SPORT|ACCIDENT_COVERAGE|CIVIL_LIABILITY",
            "discount_percentage": "20",
            "valid_from": FROM,
        },
    ],
    "country_default_day_premiums": [
        {"country_iso_code": "ES", "amount": "4.50", "currency": "EUR", "valid_from": FROM},
    ],
    "config_flags": [
        {"key": "ageCoefficientEnabled", "value": "true", "valid_from": FROM},
    ],
    "rule_parameters": [],
}


@pytest.fixture
def records():
    """A fresh, mutable copy of the in-memory reference tables"""
    return copy.deepcopy(BASE_RECORDS)


@pytest.fixture
def make_reference(records):
    """Build a store from the base tables with some tables replaced"""

    def _make(strict=True, **tables):
        data = dict(records)
        data.update(tables)
        return FrameReferenceData.from_records(data, strict=strict)

    return _make


@pytest.fixture
def reference(make_reference):
    return make_reference()


@pytest.fixture
def make_request():
    """Scenario A defaults: age 30, Spain, LEVEL_10000, 7 days"""

    def _make(**overrides):
        fields = {
            "person_birth_date": date(1995, 1, 1),
            "agreement_date_from": date(2025, 6, 1),
            "agreement_date_to": date(2025, 6, 8),
            "country_iso_code": "ES",
            "medical_risk_limit_level": "LEVEL_10000",
            "selected_risks": (),
            "person_first_name": "Ana",
            "person_last_name": "Lopez",
        }
        fields.update(overrides)
        fields["selected_risks"] = tuple(fields["selected_risks"])
        return PremiumRequest(**fields)

    return _make


@pytest.fixture
def seed_dir():
    return SEED_DIR
