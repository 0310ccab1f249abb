# travel_quote/api/app.py
"""
FastAPI service for the Travel Quote Engine (thin API wrapper).

Endpoints:
- GET  /health
- POST /underwrite -> underwriting decision with per-rule results
- POST /quote      -> underwriting + premium + discounts
- POST /premium    -> premium only; 409 unless underwriting approves

The API layer stays thin:
- validates input types
- calls travel_quote.quoting.service
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from travel_quote.errors import (
    InvalidInputError,
    ReferenceDataConflictError,
    ReferenceNotFoundError,
    UnderwritingNotApprovedError,
)
from travel_quote.quoting.schemas import PremiumRequest
from travel_quote.quoting.service import QuoteService, get_reference_data
from travel_quote.utils.logging import configure_logging

app = FastAPI(title="Travel Quote Engine", version="0.1.0")


# Load reference data once at startup (better than module import-time for tests/reload)
@app.on_event("startup")
def _startup() -> None:
    configure_logging()
    get_reference_data()


def get_service() -> QuoteService:
    return QuoteService(get_reference_data())


# -----------------------------
# Schemas
# -----------------------------
class QuoteInput(BaseModel):
    person_first_name: Optional[str] = None
    person_last_name: Optional[str] = None
    person_birth_date: date
    agreement_date_from: date
    agreement_date_to: date
    country_iso_code: str
    medical_risk_limit_level: Optional[str] = None
    selected_risks: List[str] = Field(default_factory=list)
    use_country_default_premium: bool = False
    apply_age_coefficient: Optional[bool] = None

    def to_request(self) -> PremiumRequest:
        return PremiumRequest.from_dict(self.model_dump())


# -----------------------------
# Error mapping
# -----------------------------
@app.exception_handler(InvalidInputError)
async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"status": "INVALID_INPUT", "errors": [str(exc)]})


@app.exception_handler(ReferenceNotFoundError)
@app.exception_handler(ReferenceDataConflictError)
async def _system_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"status": "SYSTEM_ERROR", "errors": [str(exc)]})


@app.exception_handler(UnderwritingNotApprovedError)
async def _not_approved(request: Request, exc: UnderwritingNotApprovedError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"status": "NOT_APPROVED", "errors": [str(exc)]})


# -----------------------------
# Routes
# -----------------------------
@app.get("/health")
def health() -> Dict[str, Any]:
    ref = get_reference_data()
    return {"status": "ok", "reference_tables": len(ref.delegate.table_counts)}


@app.post("/underwrite")
def underwrite(body: QuoteInput) -> Dict[str, Any]:
    return get_service().underwrite(body.to_request()).to_dict()


@app.post("/quote")
def quote(body: QuoteInput) -> Dict[str, Any]:
    return get_service().quote(body.to_request()).to_dict()


@app.post("/premium")
def premium(body: QuoteInput) -> Dict[str, Any]:
    svc = get_service()
    req = body.to_request()
    underwriting = svc.underwrite(req)
    out = svc.calculate_premium(req, underwriting).to_dict()
    out["underwriting"] = underwriting.to_dict()
    return out
