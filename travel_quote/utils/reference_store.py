# travel_quote/utils/reference_store.py
"""
Fetch reference-data CSVs from S3 into a local directory.

REFERENCE_S3_URI points at a prefix (s3://bucket/path/reference/); every
<table>.csv found under it is downloaded. Files already present locally are
kept unless `overwrite=True`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from travel_quote.utils.io import ensure_dir, s3_download_file, s3_list_keys

logger = logging.getLogger(__name__)


def parse_s3_uri(uri: str) -> Tuple[str, str]:
    p = urlparse(uri)
    if p.scheme != "s3" or not p.netloc:
        raise ValueError(f"REFERENCE_S3_URI must be s3://bucket/prefix, got: {uri}")
    return p.netloc, p.path.lstrip("/")


def ensure_reference_downloaded(
    *,
    reference_s3_uri: str,
    local_dir: Path,
    aws_region: Optional[str] = None,
    overwrite: bool = False,
) -> List[Path]:
    """
    Ensure the reference CSVs exist in local_dir. Returns the local paths.
    """
    bucket, prefix = parse_s3_uri(reference_s3_uri)
    local_dir = Path(local_dir)
    ensure_dir(local_dir)

    downloaded: List[Path] = []
    for key in s3_list_keys(bucket, prefix, region=aws_region):
        name = key.rsplit("/", 1)[-1]
        if not name.lower().endswith(".csv"):
            continue
        target = local_dir / name
        if target.exists() and target.stat().st_size > 0 and not overwrite:
            downloaded.append(target)
            continue
        s3_download_file(bucket, key, target, region=aws_region)
        downloaded.append(target)

    logger.info("Reference data from s3://%s/%s -> %s (%d files)", bucket, prefix, local_dir, len(downloaded))
    return downloaded
