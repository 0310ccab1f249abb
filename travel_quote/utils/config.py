# travel_quote/utils/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    return v if v is not None and v != "" else default


def _env_bool(key: str, default: bool) -> bool:
    v = _env(key)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class ProjectPaths:
    root: Path
    data_dir: Path
    reference_dir: Path


def get_project_root() -> Path:
    """
    Resolve repo root robustly.
    Assumes this file lives at: <root>/travel_quote/utils/config.py
    """
    return Path(__file__).resolve().parents[2]


def get_paths() -> ProjectPaths:
    root = get_project_root()
    data_dir = root / "data"
    return ProjectPaths(
        root=root,
        data_dir=data_dir,
        reference_dir=data_dir / "reference",
    )


@dataclass(frozen=True)
class AwsConfig:
    region: str


def get_aws_config() -> AwsConfig:
    """
    AWS settings for the reference-data sync (bucket and prefix come from
    REFERENCE_S3_URI).

    Env:
      AWS_REGION (default: eu-west-2)
    """
    return AwsConfig(
        region=_env("AWS_REGION", "eu-west-2") or "eu-west-2",
    )


@dataclass(frozen=True)
class EngineConfig:
    reference_dir: Path
    reference_s3_uri: Optional[str]
    cache_ttl_seconds: float
    strict_reference: bool
    log_level: str


def get_engine_config() -> EngineConfig:
    """
    Reference data and runtime settings.

    Env:
      REFERENCE_DATA_DIR          (default: <root>/data/reference)
      REFERENCE_S3_URI            (optional, s3://bucket/prefix/ holding the CSVs)
      REFERENCE_CACHE_TTL_SECONDS (default: 300)
      REFERENCE_STRICT            (default: true; overlapping records raise)
      LOG_LEVEL                   (default: INFO)
    """
    ttl_raw = _env("REFERENCE_CACHE_TTL_SECONDS", "300") or "300"
    try:
        ttl = float(ttl_raw)
    except ValueError as e:
        raise ValueError(f"REFERENCE_CACHE_TTL_SECONDS must be a number, got: {ttl_raw}") from e

    ref_dir = _env("REFERENCE_DATA_DIR")
    return EngineConfig(
        reference_dir=Path(ref_dir) if ref_dir else get_paths().reference_dir,
        reference_s3_uri=_env("REFERENCE_S3_URI"),
        cache_ttl_seconds=ttl,
        strict_reference=_env_bool("REFERENCE_STRICT", True),
        log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
