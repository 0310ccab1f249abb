# travel_quote/api/lambda_handler.py
"""
AWS Lambda handler for FastAPI using Mangum (ASGI adapter).

How it works:
- API Gateway invokes Lambda
- Mangum translates the event into an ASGI request
- FastAPI handles routing (/health, /underwrite, /quote, /premium)
- Response is returned back to API Gateway

Reference data loading:
- get_reference_data() runs at import time (cold start) so the tables are ready.
- When REFERENCE_S3_URI is set the CSVs are synced into REFERENCE_DATA_DIR first
  (use a /tmp path on Lambda and grant s3:ListBucket + s3:GetObject).
"""

from __future__ import annotations

import os

from mangum import Mangum

from travel_quote.api.app import app
from travel_quote.quoting.service import get_reference_data
from travel_quote.utils.logging import configure_logging

configure_logging()

# Warm up / pre-load reference data at cold start for lower first-request latency.
_PRELOAD_REFERENCE = os.getenv("PRELOAD_REFERENCE", "true").lower() in {"1", "true", "yes"}

if _PRELOAD_REFERENCE:
    get_reference_data()


# Mangum handler
handler = Mangum(app)
