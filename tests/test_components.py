"""
Tests for the shared calculation components: age, duration, additional risks,
bundle discounts and the per-risk breakdown.
"""
import logging
from datetime import date
from decimal import Decimal

import pytest

from travel_quote.errors import InvalidInputError, ReferenceNotFoundError
from travel_quote.pricing.components import (
    FALLBACK_AGE_BANDS,
    SharedCalculationComponents,
    full_years,
)
from travel_quote.pricing.money import round2

AS_OF = date(2025, 6, 1)


@pytest.fixture
def components(reference):
    return SharedCalculationComponents(reference)


class TestAge:
    def test_full_years_counts_birthday_on_as_of(self):
        assert full_years(date(1995, 6, 1), AS_OF) == 30
        assert full_years(date(1995, 6, 2), AS_OF) == 29

    def test_band_coefficient_and_label(self, components):
        result = components.resolve_age(date(1980, 1, 1), AS_OF)
        assert result.age == 45
        assert result.coefficient == Decimal("1.30")
        assert result.group_label == "Middle-aged"
        assert result.fallback_used is False

    @pytest.mark.parametrize(
        "birth, expected_age, expected_coeff",
        [
            (date(2025, 6, 1), 0, Decimal("1.10")),
            (date(1945, 6, 1), 80, Decimal("2.50")),
            (date(2007, 6, 1), 18, Decimal("1.00")),
            (date(2007, 6, 2), 17, Decimal("0.90")),
        ],
    )
    def test_band_edges(self, components, birth, expected_age, expected_coeff):
        result = components.resolve_age(birth, AS_OF)
        assert result.age == expected_age
        assert result.coefficient == expected_coeff

    def test_age_above_80_rejected(self, components):
        with pytest.raises(InvalidInputError):
            components.resolve_age(date(1944, 6, 1), AS_OF)

    def test_birth_after_as_of_rejected(self, components):
        with pytest.raises(InvalidInputError):
            components.resolve_age(date(2025, 6, 2), AS_OF)

    def test_missing_birth_date_rejected(self, components):
        with pytest.raises(InvalidInputError):
            components.resolve_age(None, AS_OF)

    def test_disabled_coefficient_is_one(self, components):
        result = components.resolve_age(date(1960, 1, 1), AS_OF, coefficient_enabled=False)
        assert result.age == 65
        assert result.coefficient == Decimal("1")
        assert result.group_label == "Elderly"

    def test_fallback_table_when_no_band(self, make_reference, caplog):
        components = SharedCalculationComponents(make_reference(age_coefficients=[]))
        with caplog.at_level(logging.WARNING):
            result = components.resolve_age(date(1960, 1, 1), AS_OF)

        assert result.fallback_used is True
        assert result.coefficient == Decimal("2.00")
        assert result.group_label == "Elderly"
        assert "built-in" in caplog.text

    def test_fallback_table_matches_seed_bands(self):
        bands = [(lo, hi) for lo, hi, _, _ in FALLBACK_AGE_BANDS]
        assert bands[0][0] == 0 and bands[-1][1] == 80
        for (_, prev_hi), (lo, _) in zip(bands, bands[1:]):
            assert lo == prev_hi + 1


class TestDuration:
    def test_exclusive_and_inclusive_day_counts(self, components):
        assert components.count_days(date(2025, 6, 1), date(2025, 6, 8)) == 7
        assert components.count_days(date(2025, 6, 1), date(2025, 6, 8), inclusive=True) == 8

    def test_end_before_start_rejected(self, components):
        with pytest.raises(InvalidInputError):
            components.count_days(date(2025, 6, 8), date(2025, 6, 1))

    def test_duration_band(self, components):
        days, coeff = components.resolve_duration(date(2025, 6, 1), date(2025, 6, 15), AS_OF)
        assert days == 14
        assert coeff == Decimal("0.95")

    def test_missing_band_defaults_to_one(self, components, caplog):
        with caplog.at_level(logging.WARNING):
            days, coeff = components.resolve_duration(date(2025, 1, 1), date(2026, 6, 1), AS_OF)
        assert days > 365
        assert coeff == Decimal("1")
        assert "No duration coefficient" in caplog.text


class TestAdditionalRisks:
    def test_sum_of_age_modified_coefficients(self, components):
        result = components.resolve_additional_risks(["SPORT_ACTIVITIES", "EXTREME_SPORT"], 45, AS_OF)
        # 0.30 * 1.20 + 0.60 * 1.30
        assert result.total_coefficient == Decimal("0.30") * Decimal("1.20") + Decimal("0.60") * Decimal("1.30")
        assert [r.risk_code for r in result.per_risk] == ["SPORT_ACTIVITIES", "EXTREME_SPORT"]

    def test_mandatory_risk_never_counts(self, components):
        result = components.resolve_additional_risks(["TRAVEL_MEDICAL"], 30, AS_OF)
        assert result.total_coefficient == Decimal("0")
        assert result.per_risk == []

    def test_unknown_codes_skipped_and_duplicates_counted_once(self, components):
        result = components.resolve_additional_risks(
            ["SPORT_ACTIVITIES", "sport_activities", "NO_SUCH_RISK"], 30, AS_OF
        )
        assert result.total_coefficient == Decimal("0.30")
        assert len(result.per_risk) == 1

    def test_modifier_defaults_to_one(self, components):
        result = components.resolve_additional_risks(["CIVIL_LIABILITY"], 70, AS_OF)
        assert result.per_risk[0].age_modifier == Decimal("1")
        assert result.total_coefficient == Decimal("0.10")

    def test_older_applicant_gets_higher_extreme_sport_coefficient(self, components):
        young = components.resolve_additional_risks(["EXTREME_SPORT"], 25, AS_OF)
        older = components.resolve_additional_risks(["EXTREME_SPORT"], 65, AS_OF)
        assert older.per_risk[0].modified_coefficient > young.per_risk[0].modified_coefficient


class TestBundleDiscount:
    def test_exact_match(self, components):
        result = components.resolve_bundle_discount(["SPORT_ACTIVITIES", "ACCIDENT_COVERAGE"], Decimal("21.00"), AS_OF)
        assert result.bundle.code == "ACTIVE_TRAVELER"
        assert result.discount_amount == Decimal("3.15")

    def test_highest_percentage_wins(self, components):
        selected = ["SPORT_ACTIVITIES", "ACCIDENT_COVERAGE", "EXTREME_SPORT", "CIVIL_LIABILITY"]
        result = components.resolve_bundle_discount(selected, Decimal("100.00"), AS_OF)
        assert result.bundle.code == "ADVENTURE_PACK"
        assert result.discount_amount == Decimal("20.00")

    def test_no_bundle(self, components):
        result = components.resolve_bundle_discount(["SPORT_ACTIVITIES"], Decimal("50.00"), AS_OF)
        assert result.bundle is None
        assert result.discount_amount == Decimal("0.00")
        assert result.applied is False

    def test_tie_broken_by_code(self, make_reference):
        bundles = [
            {"code": "B_PACK", "name": "B", "required_risk_codes": "LUGGAGE_LOSS", "discount_percentage": "5", "valid_from": "2020-01-01"},
            {"code": "A_PACK", "name": "A", "required_risk_codes": "LUGGAGE_LOSS", "discount_percentage": "5", "valid_from": "2020-01-01"},
        ]
        components = SharedCalculationComponents(make_reference(risk_bundles=bundles))
        result = components.resolve_bundle_discount(["LUGGAGE_LOSS"], Decimal("10.00"), AS_OF)
        assert result.bundle.code == "A_PACK"

    def test_empty_requirement_applies_to_any_selection(self, make_reference):
        bundles = [{"code": "EMPTY", "name": "Empty", "required_risk_codes": "", "discount_percentage": "50", "valid_from": "2020-01-01"}]
        components = SharedCalculationComponents(make_reference(risk_bundles=bundles))
        result = components.resolve_bundle_discount(["LUGGAGE_LOSS"], Decimal("10.00"), AS_OF)
        assert result.bundle.code == "EMPTY"
        assert result.discount_amount == Decimal("5.00")

        nothing_selected = components.resolve_bundle_discount([], Decimal("10.00"), AS_OF)
        assert nothing_selected.bundle.code == "EMPTY"

    def test_discount_rounds_half_up(self, components):
        result = components.resolve_bundle_discount(["SPORT_ACTIVITIES", "ACCIDENT_COVERAGE"], Decimal("10.10"), AS_OF)
        # 10.10 * 0.15 = 1.515
        assert result.discount_amount == Decimal("1.52")


class TestRiskBreakdown:
    def test_mandatory_line_then_selected_risks(self, components):
        lines = components.build_risk_breakdown(
            ["SPORT_ACTIVITIES", "ACCIDENT_COVERAGE", "TRAVEL_MEDICAL"],
            Decimal("2.00"),
            Decimal("1.00"),
            Decimal("1.00"),
            Decimal("1.00"),
            7,
            30,
            AS_OF,
        )
        assert [l.risk_code for l in lines] == ["TRAVEL_MEDICAL", "SPORT_ACTIVITIES", "ACCIDENT_COVERAGE"]
        assert lines[0].premium == Decimal("14.00")
        assert lines[0].coefficient == Decimal("0")
        assert lines[1].premium == Decimal("4.20")
        assert lines[2].premium == Decimal("2.80")

    def test_line_uses_age_modifier(self, components):
        lines = components.build_risk_breakdown(
            ["SPORT_ACTIVITIES"], Decimal("2.00"), Decimal("1.30"), Decimal("1.00"), Decimal("1.00"), 7, 45, AS_OF
        )
        base = round2(Decimal("2.00") * Decimal("1.30") * 7)
        assert lines[1].age_modifier == Decimal("1.20")
        assert lines[1].premium == round2(base * Decimal("0.30") * Decimal("1.20"))

    def test_missing_mandatory_risk(self, make_reference, records):
        risks = [r for r in records["risk_types"] if r["code"] != "TRAVEL_MEDICAL"]
        components = SharedCalculationComponents(make_reference(risk_types=risks))
        with pytest.raises(ReferenceNotFoundError):
            components.build_risk_breakdown([], Decimal("2"), Decimal("1"), Decimal("1"), Decimal("1"), 7, 30, AS_OF)
