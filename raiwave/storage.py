import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Optional

import boto3

from .config import EngineConfig

logger = logging.getLogger(__name__)


def _get_s3_client(config: EngineConfig):
    """Return a configured S3 client or None if S3 is not configured.

    Without a bucket and region results stay on the local filesystem and
    callers get a path instead of a URL.
    """

    if not config.s3_bucket or not config.s3_region:
        return None

    session = boto3.session.Session()
    return session.client("s3", region_name=config.s3_region)


def write_local(data: bytes, filename: str, config: EngineConfig) -> str:
    """Write ``data`` to a fresh file so earlier results are never overwritten."""

    if config.output_dir:
        Path(config.output_dir).mkdir(parents=True, exist_ok=True)
    stem, suffix = os.path.splitext(filename)
    fd, path = tempfile.mkstemp(prefix=f"{stem}_", suffix=suffix or ".wav", dir=config.output_dir)
    with os.fdopen(fd, "wb") as out:
        out.write(data)
    return path


def upload_file_to_s3(
    local_path: str,
    config: EngineConfig,
    *,
    content_type: str = "audio/wav",
    key_prefix: Optional[str] = None,
) -> str:
    """Upload a local file to S3 and return its URL.

    If S3 is not configured the original local path is returned unchanged.
    """

    client = _get_s3_client(config)
    if client is None:
        return local_path

    path = Path(local_path)
    prefix = (key_prefix or config.s3_prefix or "processed/").rstrip("/")
    object_key = f"{prefix}/{uuid.uuid4().hex}_{path.name}"

    client.upload_file(str(path), config.s3_bucket, object_key, ExtraArgs={"ContentType": content_type})
    logger.info("[storage] uploaded %s to s3://%s/%s", path.name, config.s3_bucket, object_key)

    try:
        path.unlink()
    except OSError:
        logger.warning("[storage] could not remove temp file %s", path)

    return f"https://{config.s3_bucket}.s3.{config.s3_region}.amazonaws.com/{object_key}"


def store_result(data: bytes, filename: str, config: EngineConfig, *, content_type: str = "audio/wav") -> str:
    """Persist encoded output; returns an S3 URL or a local path."""

    local_path = write_local(data, filename, config)
    return upload_file_to_s3(local_path, config, content_type=content_type)
