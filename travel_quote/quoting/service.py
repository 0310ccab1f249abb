# travel_quote/quoting/service.py
"""
End-to-end quote service for the Travel Quote Engine.

Single source of truth:
- request -> underwriting decision
- APPROVED decision -> premium (MEDICAL_LEVEL or COUNTRY_DEFAULT)
- premium -> downstream discounts -> total

Pricing is only ever reached through an APPROVED underwriting result.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, Sequence

from travel_quote.errors import ReferenceNotFoundError, UnderwritingNotApprovedError
from travel_quote.pricing.engine import PremiumCalculationEngine
from travel_quote.pricing.money import ZERO, round2
from travel_quote.pricing.results import PremiumResult
from travel_quote.pricing.risk_calculators import itemise_risk_premiums
from travel_quote.quoting.schemas import DiscountOutcome, PremiumRequest, QuoteOutcome, QuoteStatus
from travel_quote.reference.cache import CachedReferenceData
from travel_quote.reference.frames import FrameReferenceData
from travel_quote.reference.port import ReferenceDataPort
from travel_quote.underwriting.domain import UnderwritingDecision, UnderwritingResult
from travel_quote.underwriting.engine import UnderwritingRuleEngine
from travel_quote.underwriting.rules import UnderwritingRule, default_rules
from travel_quote.utils.config import get_aws_config, get_engine_config
from travel_quote.utils.reference_store import ensure_reference_downloaded

logger = logging.getLogger(__name__)


# -----------------------------
# Discounts applied after pricing
# -----------------------------
class DiscountPort(Protocol):
    def apply(self, request: PremiumRequest, premium: PremiumResult) -> DiscountOutcome:
        ...


class NoDiscounts:
    """Default discount stage: premium passes through unchanged."""

    def apply(self, request: PremiumRequest, premium: PremiumResult) -> DiscountOutcome:
        amount = premium.final_premium
        return DiscountOutcome(premium_before=amount, discount_amount=round2(ZERO), premium_after=amount)


# -----------------------------
# Reference data (cached per process)
# -----------------------------
# In-process cache (useful for FastAPI startup + AWS Lambda warm invocations)
_CACHED_REFERENCE: Optional[CachedReferenceData] = None


def load_reference_data() -> CachedReferenceData:
    cfg = get_engine_config()
    if cfg.reference_s3_uri:
        ensure_reference_downloaded(
            reference_s3_uri=cfg.reference_s3_uri,
            local_dir=cfg.reference_dir,
            aws_region=get_aws_config().region,
        )
    store = FrameReferenceData.from_dir(cfg.reference_dir, strict=cfg.strict_reference)
    return CachedReferenceData(store, ttl_seconds=cfg.cache_ttl_seconds)


def get_reference_data(force_reload: bool = False) -> CachedReferenceData:
    """
    Load and cache the reference store (CSV directory, optionally synced from S3).
    """
    global _CACHED_REFERENCE
    if force_reload or _CACHED_REFERENCE is None:
        _CACHED_REFERENCE = load_reference_data()
    return _CACHED_REFERENCE


# -----------------------------
# Service
# -----------------------------
class QuoteService:
    def __init__(
        self,
        reference: ReferenceDataPort,
        rules: Optional[Sequence[UnderwritingRule]] = None,
        discounts: Optional[DiscountPort] = None,
    ) -> None:
        self.reference = reference
        self.underwriting = UnderwritingRuleEngine(rules if rules is not None else default_rules(reference))
        self.pricing = PremiumCalculationEngine(reference)
        self.discounts: DiscountPort = discounts or NoDiscounts()

    def underwrite(self, request: PremiumRequest, as_of: Optional[date] = None) -> UnderwritingResult:
        started = time.perf_counter()
        result = self.underwriting.evaluate(request, as_of)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info("Underwriting %s in %.1f ms", result.decision.value, elapsed_ms)
        return result

    def calculate_premium(self, request: PremiumRequest, underwriting: UnderwritingResult) -> PremiumResult:
        if underwriting.decision is not UnderwritingDecision.APPROVED:
            raise UnderwritingNotApprovedError(
                f"Premium requires an APPROVED underwriting decision, got {underwriting.decision.value}"
            )
        return self.pricing.calculate(request)

    def quote(self, request: PremiumRequest) -> QuoteOutcome:
        """
        Full quote:
          request -> underwriting -> (approved) premium -> discounts -> QuoteOutcome
        """
        underwriting = self.underwrite(request)
        if underwriting.decision is UnderwritingDecision.DECLINED:
            return QuoteOutcome(status=QuoteStatus.DECLINED, underwriting=underwriting)
        if underwriting.decision is UnderwritingDecision.REQUIRES_REVIEW:
            return QuoteOutcome(status=QuoteStatus.REQUIRES_REVIEW, underwriting=underwriting)

        try:
            premium = self.calculate_premium(request, underwriting)
            risk_premiums = self.itemise(request)
        except ReferenceNotFoundError as e:
            logger.error("Reference data missing while pricing: %s", e)
            return QuoteOutcome(status=QuoteStatus.SYSTEM_ERROR, underwriting=underwriting, errors=[str(e)])

        discount = self.discounts.apply(request, premium)
        return QuoteOutcome(
            status=QuoteStatus.SUCCESS,
            underwriting=underwriting,
            premium=premium,
            discount=discount,
            total_premium=discount.premium_after,
            risk_premiums=risk_premiums,
        )

    def itemise(self, request: PremiumRequest) -> Dict[str, Decimal]:
        """Per-risk premiums; country-default quotes without a level have none."""
        if not request.medical_risk_limit_level:
            return {}
        return itemise_risk_premiums(self.reference, request)


def quote_from_dict(payload: Dict[str, Any], *, service: Optional[QuoteService] = None) -> Dict[str, Any]:
    """
    Convenience: returns a JSON-ready dict.
    """
    svc = service or QuoteService(get_reference_data())
    return svc.quote(PremiumRequest.from_dict(payload)).to_dict()
