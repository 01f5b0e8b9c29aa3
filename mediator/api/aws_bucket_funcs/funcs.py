"""
S3 Utilities — Client Init • Case File Upload • Presigned Download
==================================================================

Purpose
-------
Small helper module for interacting with Amazon S3:
- Initialize an S3 client with Signature V4
- Build the object key for a case file
- Upload a case file (sets ContentType + ContentDisposition)
- Generate a presigned URL for downloads

Configuration (from `mediator.database.config.config.settings`)
---------------------------------------------------------------
- AWS_ACCESS_KEY : Access key ID
- AWS_SECRET_KEY : Secret access key
- REGION         : AWS region (e.g., "eu-central-1")
- BUCKET_NAME    : Target S3 bucket
- PRESIGNED_URL_EXPIRES : Lifetime of download links in seconds

Security Notes
--------------
- Presigned URLs grant temporary access; choose sensible expirations and never expose bucket names/keys unnecessarily.
"""

import boto3
import botocore.config
import os
import secrets
import time
from typing import BinaryIO, Optional
from mediator.database.config.config import settings


def get_client():
    """
    Initialize and return a low-level S3 client configured for Signature V4.

    Uses:
        - settings.AWS_ACCESS_KEY
        - settings.AWS_SECRET_KEY
        - settings.REGION

    Returns:
        botocore.client.S3: An S3 client ready for object operations.
    """
    s3_client = boto3.client(
        "s3",
        aws_access_key_id=settings.AWS_ACCESS_KEY,
        aws_secret_access_key=settings.AWS_SECRET_KEY,
        region_name=settings.REGION,
        config=botocore.config.Config(signature_version="s3v4"),
    )
    return s3_client


def case_file_key(case_id, file_name: str) -> str:
    """
    Object key for an upload: ``case-files/<case_id>/<millis>-<random>.<ext>``.

    The original file name is kept only in the database row; the key never
    contains user-chosen text other than the extension.
    """
    _, ext = os.path.splitext(file_name or "")
    ext = ext.lower().lstrip(".")
    name = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"
    return f"case-files/{case_id}/{name}.{ext}" if ext else f"case-files/{case_id}/{name}"


### Server-side
def upload(fileobj: BinaryIO, key: str, s3_client, file_name: str, content_type: Optional[str] = None):
    """
    Upload a file object to S3 with explicit headers.

    Args:
        fileobj: Readable binary stream (e.g. `UploadFile.file`).
        key (str): Object key (destination path/name in the bucket).
        s3_client (botocore.client.S3): Client returned by `get_client()`.
        file_name (str): Name offered to the browser on download.
        content_type (str, optional): MIME type; defaults to application/octet-stream.
    """
    fileobj.seek(0)
    s3_client.upload_fileobj(
        fileobj,
        settings.BUCKET_NAME,
        key,
        ExtraArgs={
            "ContentType": content_type or "application/octet-stream",
            "ContentDisposition": f'attachment; filename="{file_name}"',
        },
    )


def download(key: str, s3_client, expires: int = 3600):
    """
    Generate a presigned URL for downloading an object.

    Args:
        key (str): Object key in the bucket.
        s3_client (botocore.client.S3): Client returned by `get_client()`.
        expires (int, optional): URL expiration in seconds (default: 3600).

    Returns:
        str: A presigned URL that allows temporary GET access.
    """
    response = s3_client.generate_presigned_url(
        "get_object",
        Params={"Bucket": settings.BUCKET_NAME, "Key": key},
        ExpiresIn=expires,
    )
    return response
