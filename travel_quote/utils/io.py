# travel_quote/utils/io.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

import boto3
import pandas as pd


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_df(path: Union[str, Path], *, as_text: bool = False) -> pd.DataFrame:
    """
    Read a CSV or Parquet table.

    as_text=True keeps every CSV cell as a string (blank -> ""), so codes like
    "NA" and decimals like "1.10" survive untouched until the caller parses them.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suf = path.suffix.lower()
    if suf == ".csv":
        if as_text:
            return pd.read_csv(path, dtype=str, keep_default_na=False)
        return pd.read_csv(path)
    if suf == ".parquet":
        return pd.read_parquet(path)
    raise ValueError(f"Unsupported dataframe format: {suf}")


# ---------------------------
# S3 support
# ---------------------------
def _boto3_client(service: str, region: Optional[str] = None):
    return boto3.client(service, region_name=region)


def s3_list_keys(bucket: str, prefix: str, region: Optional[str] = None) -> List[str]:
    s3 = _boto3_client("s3", region=region)
    keys: List[str] = []
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        for obj in page.get("Contents", []):
            keys.append(obj["Key"])
    return keys


def s3_download_file(
    bucket: str, key: str, local_path: Path, region: Optional[str] = None
) -> None:
    local_path = Path(local_path)
    ensure_dir(local_path.parent)
    s3 = _boto3_client("s3", region=region)
    s3.download_file(bucket, key, str(local_path))
