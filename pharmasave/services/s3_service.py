import logging
from typing import List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from pharmasave.core.config import settings

logger = logging.getLogger(__name__)


def _get_s3_client():
    client_kwargs = {}
    if settings.AWS_REGION:
        client_kwargs["region_name"] = settings.AWS_REGION
    if settings.AWS_S3_ENDPOINT_URL:
        client_kwargs["endpoint_url"] = settings.AWS_S3_ENDPOINT_URL
    if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
        client_kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
        client_kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
    return boto3.client("s3", **client_kwargs)


def upload_bytes(bucket: str, key: str, data: bytes, content_type: Optional[str] = None) -> str:
    """
    Upload raw bytes to S3 and return an s3:// URI.
    """
    if not bucket or str(bucket).strip() == "":
        raise RuntimeError("S3 bucket is empty. Set the bucket name or disable USE_S3_UPLOADS.")
    s3 = _get_s3_client()
    extra_args = {}
    if content_type:
        extra_args["ContentType"] = content_type
    try:
        s3.put_object(Bucket=bucket, Key=key, Body=data, **extra_args)
    except (BotoCoreError, ClientError) as e:
        raise RuntimeError(f"Failed to upload to S3 s3://{bucket}/{key}: {e}")
    return f"s3://{bucket}/{key}"


def list_keys(bucket: str, prefix: str) -> List[str]:
    """List object keys directly under ``prefix`` (non-recursive, like a folder listing)."""
    s3 = _get_s3_client()
    prefix = prefix.rstrip("/") + "/"
    keys: List[str] = []
    try:
        paginator = s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix, Delimiter="/"):
            for obj in page.get("Contents", []):
                keys.append(obj["Key"])
    except (BotoCoreError, ClientError) as e:
        raise RuntimeError(f"Failed to list s3://{bucket}/{prefix}: {e}")
    return keys


def delete_keys(bucket: str, keys: List[str]) -> Tuple[int, List[str]]:
    """
    Delete keys from a bucket.
    Returns (deleted_count, error_messages); a failed key never aborts the batch.
    """
    if not keys:
        return 0, []
    s3 = _get_s3_client()
    try:
        response = s3.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": False},
        )
    except (BotoCoreError, ClientError) as e:
        return 0, [f"Failed to delete {len(keys)} objects from {bucket}: {e}"]
    errors = [f"Failed to delete {err.get('Key')}: {err.get('Message')}" for err in response.get("Errors", [])]
    return len(response.get("Deleted", [])), errors


def verify_s3_configuration() -> Tuple[bool, str]:
    """
    Verify bucket access at startup.
    Returns (ok, message); when uploads are disabled returns (True, "S3 uploads disabled").
    """
    if not settings.USE_S3_UPLOADS:
        return True, "S3 uploads disabled"
    s3 = _get_s3_client()
    for bucket in settings.storage_buckets:
        try:
            s3.head_bucket(Bucket=bucket)
        except (BotoCoreError, ClientError) as e:
            return False, f"HeadBucket failed for '{bucket}': {e}"
    return True, f"S3 verified (buckets={', '.join(settings.storage_buckets)})"
