"""Pydantic response models for the HTTP service."""

from typing import Dict, List, Optional

from pydantic import BaseModel


class SourceStats(BaseModel):
    sample_rate: int
    channels: int
    duration: float
    rms: float
    peak: float
    lufs: Optional[float] = None
    brightness_hz: float


class AnalysisResponse(BaseModel):
    stats: SourceStats
    suggestions: Dict[str, float]
    params: Dict[str, float]


class RenderReportModel(BaseModel):
    processing_chain: List[str]
    sample_rate: int
    playback_rate: float
    duration_sec: float
    peak_dbfs: Optional[float] = None
    loudness_before: Optional[float] = None
    loudness_after: Optional[float] = None
    render_time_ms: float


class EnhanceResponse(BaseModel):
    status: str
    output_file: str
    filename: str
    lossless_fallback: bool
    preview: bool
    preset: Optional[str] = None
    params: Dict[str, float]
    report: RenderReportModel


class RemixResponse(BaseModel):
    status: str
    output_file: str
    filename: str
    sample_rate: int
    duration_sec: float
    alignment: Dict[str, float]


class PresetModel(BaseModel):
    key: str
    name: str
    kind: str
    description: str
    overrides: Dict[str, float]


class PresetListResponse(BaseModel):
    presets: List[PresetModel]


class ErrorDetail(BaseModel):
    error: str
    message: str
