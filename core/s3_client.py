# core/s3_client.py

import os
import boto3
from typing import Tuple

DOCUMENT_PREFIX = "documents"
PRESIGNED_URL_EXPIRY_SECONDS = 3600  # 1 hour


def get_s3() -> Tuple[boto3.client, str, str]:
    """
    (s3_client, bucket, region) for the document bucket.
    Raises RuntimeError when AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY or
    AWS_BUCKET_NAME is missing.
    """
    bucket = os.getenv("AWS_BUCKET_NAME")
    region = os.getenv("AWS_REGION", "us-east-1")
    credentials = {
        "aws_access_key_id": os.getenv("AWS_ACCESS_KEY_ID"),
        "aws_secret_access_key": os.getenv("AWS_SECRET_ACCESS_KEY"),
    }

    missing = [name for name, value in (
        ("AWS_ACCESS_KEY_ID", credentials["aws_access_key_id"]),
        ("AWS_SECRET_ACCESS_KEY", credentials["aws_secret_access_key"]),
        ("AWS_BUCKET_NAME", bucket),
    ) if not value]
    if missing:
        raise RuntimeError(f"Document storage not configured (missing {', '.join(missing)})")

    return boto3.client("s3", region_name=region, **credentials), bucket, region


def document_key(entity_type: str, entity_id: str, filename: str) -> str:
    return f"{DOCUMENT_PREFIX}/{entity_type}/{entity_id}/{filename}"


def put_document(s3, bucket: str, key: str, content: bytes, content_type: str):
    s3.put_object(
        Bucket=bucket,
        Key=key,
        Body=content,
        ContentType=content_type or "application/octet-stream",
    )


def presigned_download_url(s3, bucket: str, key: str, expires_in: int = PRESIGNED_URL_EXPIRY_SECONDS) -> str:
    return s3.generate_presigned_url(
        "get_object",
        Params={"Bucket": bucket, "Key": key},
        ExpiresIn=expires_in,
    )
