"""Environment-driven settings for the engine and the HTTP service.

Rendering constants that define the engine's output contract (48 kHz
output, 2 s effect tail) live in ``dsp_engine.graph``; only deployment
knobs are read from the environment here.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional


_DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:5173",
)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class EngineConfig:
    """Deployment settings.

    preview_seconds: length of the source slice rendered by preview requests.
    impulse_seed:    fixes the reverb impulse noise so renders are repeatable.
                     ``None`` draws fresh noise per render.
    output_dir:      where encoded results are written before upload.
    s3_bucket/...:   optional S3 target for results; local paths otherwise.
    """

    preview_seconds: float = 10.0
    impulse_seed: Optional[int] = None
    output_dir: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: list(_DEFAULT_CORS_ORIGINS))
    s3_bucket: Optional[str] = None
    s3_region: Optional[str] = None
    s3_prefix: str = "processed/"


def load_config() -> EngineConfig:
    """Build an :class:`EngineConfig` from ``RAIWAVE_*`` environment variables."""

    origins_raw = os.getenv("RAIWAVE_CORS_ORIGINS")
    if origins_raw:
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()]
    else:
        origins = list(_DEFAULT_CORS_ORIGINS)

    preview = _env_float("RAIWAVE_PREVIEW_SECONDS", 10.0)
    if preview <= 0.0:
        raise ValueError("RAIWAVE_PREVIEW_SECONDS must be positive")

    return EngineConfig(
        preview_seconds=preview,
        impulse_seed=_env_int("RAIWAVE_IMPULSE_SEED"),
        output_dir=os.getenv("RAIWAVE_OUTPUT_DIR") or None,
        cors_origins=origins,
        s3_bucket=os.getenv("RAIWAVE_S3_BUCKET") or os.getenv("S3_BUCKET"),
        s3_region=os.getenv("RAIWAVE_S3_REGION") or os.getenv("AWS_REGION"),
        s3_prefix=os.getenv("RAIWAVE_S3_PREFIX") or "processed/",
    )
