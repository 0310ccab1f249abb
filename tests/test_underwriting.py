"""
Tests for the underwriting rules, the rule parameters and decision aggregation.
"""
import logging
from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import pytest

from travel_quote.underwriting.domain import (
    RuleResult,
    RuleSeverity,
    UnderwritingDecision,
)
from travel_quote.underwriting.engine import UnderwritingRuleEngine, decide
from travel_quote.underwriting.parameters import RuleParameterService
from travel_quote.underwriting.rules import (
    AdditionalRisksRule,
    AgeRule,
    CountryRiskRule,
    MedicalCoverageRule,
    TripDurationRule,
    default_rules,
)

AS_OF = date(2025, 6, 1)


def _param(rule, name, value):
    return {"rule_name": rule, "parameter_name": name, "value": value, "valid_from": "2020-01-01"}


@pytest.fixture
def engine(reference):
    return UnderwritingRuleEngine(default_rules(reference))


class TestRuleSeverity:
    def test_ordering(self):
        assert RuleSeverity.PASS < RuleSeverity.WARNING < RuleSeverity.REVIEW_REQUIRED < RuleSeverity.BLOCKING
        assert max([RuleSeverity.WARNING, RuleSeverity.BLOCKING, RuleSeverity.PASS]) is RuleSeverity.BLOCKING


class TestAgeRule:
    @pytest.mark.parametrize(
        "birth, severity",
        [
            (date(1995, 1, 1), RuleSeverity.PASS),
            (date(1950, 6, 1), RuleSeverity.REVIEW_REQUIRED),
            (date(1945, 6, 1), RuleSeverity.REVIEW_REQUIRED),
            (date(1944, 6, 1), RuleSeverity.BLOCKING),
        ],
    )
    def test_thresholds(self, reference, make_request, birth, severity):
        result = AgeRule(reference).evaluate(make_request(person_birth_date=birth), AS_OF)
        assert result.severity is severity

    def test_parameter_from_reference_data(self, make_reference, make_request):
        ref = make_reference(rule_parameters=[_param("AgeRule", "MAX_AGE", "70")])
        result = AgeRule(ref).evaluate(make_request(person_birth_date=date(1953, 1, 1)), AS_OF)
        assert result.severity is RuleSeverity.BLOCKING
        assert "maximum allowed age of 70" in result.message


class TestCountryRiskRule:
    @pytest.mark.parametrize(
        "iso, severity",
        [
            ("ES", RuleSeverity.PASS),
            ("TH", RuleSeverity.WARNING),
            ("IN", RuleSeverity.REVIEW_REQUIRED),
            ("AF", RuleSeverity.BLOCKING),
        ],
    )
    def test_risk_groups(self, reference, make_request, iso, severity):
        result = CountryRiskRule(reference).evaluate(make_request(country_iso_code=iso), AS_OF)
        assert result.severity is severity


class TestMedicalCoverageRule:
    def test_senior_with_high_coverage_blocked(self, reference, make_request):
        request = make_request(person_birth_date=date(1950, 1, 1), medical_risk_limit_level="LEVEL_250000")
        result = MedicalCoverageRule(reference).evaluate(request, AS_OF)
        assert result.severity is RuleSeverity.BLOCKING

    def test_review_band(self, reference, make_request):
        request = make_request(person_birth_date=date(1953, 1, 1), medical_risk_limit_level="LEVEL_150000")
        result = MedicalCoverageRule(reference).evaluate(request, AS_OF)
        assert result.severity is RuleSeverity.REVIEW_REQUIRED

    def test_coverage_at_threshold_passes(self, reference, make_request):
        request = make_request(person_birth_date=date(1945, 6, 1), medical_risk_limit_level="LEVEL_50000")
        assert MedicalCoverageRule(reference).evaluate(request, AS_OF).severity is RuleSeverity.PASS

    def test_no_level_passes(self, reference, make_request):
        request = make_request(medical_risk_limit_level=None, use_country_default_premium=True)
        assert MedicalCoverageRule(reference).evaluate(request, AS_OF).severity is RuleSeverity.PASS


class TestAdditionalRisksRule:
    def test_only_extreme_sport_is_checked(self, reference, make_request):
        request = make_request(person_birth_date=date(1946, 1, 1), selected_risks=["SPORT_ACTIVITIES"])
        assert AdditionalRisksRule(reference).evaluate(request, AS_OF).severity is RuleSeverity.PASS

    @pytest.mark.parametrize(
        "birth, iso, severity",
        [
            (date(1995, 1, 1), "ES", RuleSeverity.PASS),
            (date(1960, 1, 1), "ES", RuleSeverity.REVIEW_REQUIRED),
            (date(1950, 1, 1), "ES", RuleSeverity.BLOCKING),
            (date(1995, 1, 1), "AF", RuleSeverity.BLOCKING),
        ],
    )
    def test_extreme_sport(self, reference, make_request, birth, iso, severity):
        request = make_request(person_birth_date=birth, country_iso_code=iso, selected_risks=["EXTREME_SPORT"])
        assert AdditionalRisksRule(reference).evaluate(request, AS_OF).severity is severity


class TestTripDurationRule:
    @pytest.mark.parametrize(
        "date_to, severity",
        [
            (date(2025, 8, 30), RuleSeverity.PASS),
            (date(2025, 9, 4), RuleSeverity.REVIEW_REQUIRED),
            (date(2025, 11, 29), RuleSeverity.BLOCKING),
        ],
    )
    def test_thresholds(self, reference, make_request, date_to, severity):
        result = TripDurationRule(reference).evaluate(make_request(agreement_date_to=date_to), AS_OF)
        assert result.severity is severity


class TestRuleParameterService:
    def test_missing_parameter_uses_default(self, reference, caplog):
        with caplog.at_level(logging.DEBUG):
            value = RuleParameterService(reference).get_int("AgeRule", "MAX_AGE", AS_OF, 80)
        assert value == 80
        assert "not set" in caplog.text

    def test_invalid_parameter_uses_default(self, make_reference, caplog):
        ref = make_reference(rule_parameters=[_param("AgeRule", "MAX_AGE", "eighty")])
        with caplog.at_level(logging.WARNING):
            value = RuleParameterService(ref).get_int("AgeRule", "MAX_AGE", AS_OF, 80)
        assert value == 80
        assert "Invalid value" in caplog.text

    def test_decimal_parameter(self, make_reference):
        ref = make_reference(rule_parameters=[_param("MedicalCoverageRule", "BLOCKING_COVERAGE_THRESHOLD", "150000.50")])
        value = RuleParameterService(ref).get_decimal(
            "MedicalCoverageRule", "BLOCKING_COVERAGE_THRESHOLD", AS_OF, Decimal("200000")
        )
        assert value == Decimal("150000.50")


class TestUnderwritingEngine:
    def test_senior_with_high_coverage_declined(self, engine, make_request):
        request = make_request(person_birth_date=date(1950, 1, 1), medical_risk_limit_level="LEVEL_250000")
        result = engine.evaluate(request)

        assert result.decision is UnderwritingDecision.DECLINED
        assert "too high for age 75" in result.reason

    def test_clean_application_approved(self, engine, make_request):
        result = engine.evaluate(make_request())
        assert result.decision is UnderwritingDecision.APPROVED
        assert result.reason is None
        assert len(result.rule_results) == 5

    def test_warnings_do_not_change_decision(self, engine, make_request):
        result = engine.evaluate(make_request(country_iso_code="TH"))
        assert result.decision is UnderwritingDecision.APPROVED
        assert [w.rule_name for w in result.warnings] == ["CountryRiskRule"]

    def test_blocking_dominates_review(self, engine, make_request):
        request = make_request(person_birth_date=date(1949, 1, 1), country_iso_code="AF")
        result = engine.evaluate(request)

        severities = {r.rule_name: r.severity for r in result.rule_results}
        assert severities["AgeRule"] is RuleSeverity.REVIEW_REQUIRED
        assert severities["CountryRiskRule"] is RuleSeverity.BLOCKING
        assert result.decision is UnderwritingDecision.DECLINED

    def test_review_reasons_joined(self, engine, make_request):
        request = make_request(
            person_birth_date=date(1949, 1, 1),
            country_iso_code="IN",
            agreement_date_to=date(2025, 9, 4),
        )
        result = engine.evaluate(request)
        assert result.decision is UnderwritingDecision.REQUIRES_REVIEW
        assert result.reason.count("; ") == 2

    def test_rules_run_in_priority_order(self, reference, make_request):
        rules = list(reversed(default_rules(reference)))
        result = UnderwritingRuleEngine(rules).evaluate(make_request())
        assert [r.rule_name for r in result.rule_results] == [
            "AgeRule",
            "CountryRiskRule",
            "MedicalCoverageRule",
            "AdditionalRisksRule",
            "TripDurationRule",
        ]

    def test_failing_rule_becomes_blocking(self, reference, make_request, caplog):
        broken = Mock()
        broken.rule_name = "BrokenRule"
        broken.priority = 15
        broken.evaluate.side_effect = RuntimeError("boom")
        engine = UnderwritingRuleEngine(default_rules(reference) + [broken])

        with caplog.at_level(logging.ERROR):
            result = engine.evaluate(make_request())

        assert result.decision is UnderwritingDecision.DECLINED
        failed = [r for r in result.rule_results if r.rule_name == "BrokenRule"][0]
        assert failed.severity is RuleSeverity.BLOCKING
        assert failed.message == "Error evaluating rule: boom"
        assert len(result.rule_results) == 6
        assert "Rule evaluation failed: BrokenRule: boom" in caplog.text
        assert any(r.exc_info for r in caplog.records if "BrokenRule" in r.getMessage())

    def test_unknown_country_fails_closed(self, engine, make_request):
        result = engine.evaluate(make_request(country_iso_code="ZZ"))
        assert result.decision is UnderwritingDecision.DECLINED
        assert "Country not found: ZZ" in result.reason

    def test_as_of_defaults_to_agreement_start(self, make_request):
        rule = Mock()
        rule.rule_name = "Spy"
        rule.priority = 1
        rule.evaluate.return_value = RuleResult.passed("Spy")
        request = make_request()

        UnderwritingRuleEngine([rule]).evaluate(request)
        rule.evaluate.assert_called_once_with(request, request.agreement_date_from)

    def test_decide_with_no_results_approves(self):
        assert decide([]).decision is UnderwritingDecision.APPROVED

    def test_decide_uses_worst_severity(self):
        results = [
            RuleResult.warning("A", "watch"),
            RuleResult.review_required("B", "check me"),
            RuleResult.passed("C"),
        ]
        outcome = decide(results)
        assert outcome.decision is UnderwritingDecision.REQUIRES_REVIEW
        assert outcome.reason == "check me"

        outcome = decide(results + [RuleResult.blocking("D", "stop")])
        assert outcome.decision is UnderwritingDecision.DECLINED
        assert outcome.reason == "stop"
