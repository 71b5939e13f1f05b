import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from raiwave.analysis import analyze_buffer, auto_enhance, describe_source
from raiwave.config import load_config
from raiwave.engine import decode_audio, export_render, mix_uploads, render_enhancement, render_preview, resolve_params
from raiwave.errors import DecodeFailure, DspError, GraphConstructionFailure
from raiwave.models import (
    AnalysisResponse,
    EnhanceResponse,
    ErrorDetail,
    PresetListResponse,
    RemixResponse,
)
from raiwave.params import ParameterSet, RemixAlignment
from raiwave.presets import list_presets
from raiwave.storage import store_result

logger = logging.getLogger("raiwave_dsp")

config = load_config()

app = FastAPI(title="RaiWave DSP Engine")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: DspError) -> int:
    if isinstance(exc, DecodeFailure):
        return 400
    if isinstance(exc, GraphConstructionFailure):
        return 422
    return 500


def _http_error(exc: DspError) -> HTTPException:
    detail = ErrorDetail(error=exc.code, message=str(exc))
    return HTTPException(status_code=_status_for(exc), detail=detail.model_dump())


def _parse_json_form(raw: Optional[str], field_name: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=422,
            detail=ErrorDetail(error="DSP_INVALID_PARAMETERS", message=f"{field_name} is not valid JSON").model_dump(),
        ) from exc
    if not isinstance(parsed, dict):
        raise HTTPException(
            status_code=422,
            detail=ErrorDetail(error="DSP_INVALID_PARAMETERS", message=f"{field_name} must be a JSON object").model_dump(),
        )
    return parsed


def _load_params(raw: Optional[str]) -> ParameterSet:
    data = _parse_json_form(raw, "params")
    try:
        return ParameterSet.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise _http_error(GraphConstructionFailure(f"Invalid params: {exc}")) from exc


@app.get("/health")
def health():
    """Static payload for uptime checks; does not touch the DSP stack."""

    return {"status": "ok"}


@app.get("/presets", response_model=PresetListResponse)
def list_available_presets(kind: Optional[str] = Query(default=None)):
    """Built-in presets, optionally filtered by ``kind`` (``voice`` or ``style``)."""

    normalized = kind if kind in {"voice", "style"} else None
    return {"presets": [asdict(p) for p in list_presets(normalized)]}  # type: ignore[arg-type]


@app.post("/analyze", response_model=AnalysisResponse)
def analyze(file: UploadFile = File(...), params: Optional[str] = Form(None)):
    """Source stats plus the auto-enhance suggestions for the upload."""

    base = _load_params(params)
    try:
        source = decode_audio(file.file)
    except DspError as exc:
        raise _http_error(exc) from exc
    finally:
        file.file.close()

    return {
        "stats": describe_source(source),
        "suggestions": analyze_buffer(source),
        "params": auto_enhance(source, base).to_dict(),
    }


@app.post("/enhance", response_model=EnhanceResponse)
def enhance(
    file: UploadFile = File(...),
    params: Optional[str] = Form(None),
    preset: Optional[str] = Form(None),
    export_label: str = Form("HQ"),
    preview: bool = Form(False),
):
    """Render the upload through the enhancement chain and store the WAV."""

    base = _load_params(params)
    try:
        resolved = resolve_params(base, preset)
    except KeyError as exc:
        raise HTTPException(
            status_code=422,
            detail=ErrorDetail(error="DSP_UNKNOWN_PRESET", message=f"Unknown preset: {preset}").model_dump(),
        ) from exc

    try:
        source = decode_audio(file.file)
        renderer = render_preview if preview else render_enhancement
        output, report = renderer(source, resolved, config=config)
        export = export_render(output, export_label)
        output_file = store_result(export.data, export.filename, config, content_type=export.content_type)
    except DspError as exc:
        logger.exception("[DSP] Enhancement failed preset=%s: %s", preset, exc)
        raise _http_error(exc) from exc
    finally:
        file.file.close()

    return {
        "status": "processed",
        "output_file": output_file,
        "filename": export.filename,
        "lossless_fallback": export.lossless_fallback,
        "preview": preview,
        "preset": preset,
        "params": resolved.to_dict(),
        "report": report.to_dict(),
    }


@app.post("/remix", response_model=RemixResponse)
def remix(
    file_a: UploadFile = File(...),
    file_b: UploadFile = File(...),
    key_semitones: float = Form(0.0),
    tempo_ratio: float = Form(1.0),
    fine_shift_semitones: float = Form(0.0),
    balance: float = Form(0.5),
):
    """Mix two uploads after key/tempo alignment and store the WAV."""

    alignment = RemixAlignment(
        key_semitones=key_semitones,
        tempo_ratio=tempo_ratio,
        fine_shift_semitones=fine_shift_semitones,
        balance=balance,
    )
    try:
        alignment.validate()
        mixed = mix_uploads(file_a.file, file_b.file, alignment)
        export = export_render(mixed, "Remix")
        output_file = store_result(export.data, export.filename, config, content_type=export.content_type)
    except DspError as exc:
        logger.exception("[DSP] Remix failed: %s", exc)
        raise _http_error(exc) from exc
    finally:
        file_a.file.close()
        file_b.file.close()

    return {
        "status": "mixed",
        "output_file": output_file,
        "filename": export.filename,
        "sample_rate": mixed.sample_rate,
        "duration_sec": mixed.duration,
        "alignment": alignment.to_dict(),
    }
