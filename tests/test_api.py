import json
import os

import numpy as np
import pytest
from fastapi.testclient import TestClient

from raiwave import main
from raiwave.dsp_engine.buffer import PcmBuffer

from .helpers import float_wav_bytes, make_sine, wav_bytes


@pytest.fixture
def client(engine_config, monkeypatch):
    monkeypatch.setattr(main, "config", engine_config)
    return TestClient(main.app)


def _upload(buffer, name="take.wav"):
    return (name, wav_bytes(buffer), "audio/wav")


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_presets_filtered_by_kind(client):
    all_presets = client.get("/presets").json()["presets"]
    voice = client.get("/presets", params={"kind": "voice"}).json()["presets"]
    assert len(all_presets) == 8
    assert {p["key"] for p in voice} == {"child", "giant", "robot", "alien", "chorus"}
    assert all(p["kind"] == "voice" for p in voice)


def test_analyze_returns_stats_and_suggestions(client):
    resp = client.post("/analyze", files={"file": _upload(make_sine(1.0, amplitude=0.05))})
    assert resp.status_code == 200
    body = resp.json()
    assert body["stats"]["sample_rate"] == 44100
    assert body["suggestions"]["master_gain_db"] == 9.0
    assert body["params"]["master_gain_db"] == 9.0


def test_analyze_rejects_undecodable_upload(client):
    resp = client.post("/analyze", files={"file": ("x.wav", b"nope", "audio/wav")})
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "DSP_DECODE_FAILED"


def test_analyze_rejects_upload_with_nan_samples(client):
    data = make_sine(0.5).samples.copy()
    data[0, 100] = np.nan
    resp = client.post("/analyze", files={"file": ("nan.wav", float_wav_bytes(PcmBuffer(data, 44100)), "audio/wav")})
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "DSP_DECODE_FAILED"


def test_enhance_preview_with_preset(client, engine_config):
    resp = client.post(
        "/enhance",
        files={"file": _upload(make_sine(2.0))},
        data={"params": json.dumps({"eqAir": 2.0}), "preset": "robot", "export_label": "320k", "preview": "true"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "processed"
    assert body["filename"] == "RaiWave_320k.wav"
    assert body["lossless_fallback"] is True
    assert body["preview"] is True
    assert body["params"]["ring_mod_amount"] == 0.6
    assert body["params"]["eq_air"] == 2.0
    assert "ring_mod" in body["report"]["processing_chain"]
    # preview_seconds=1.0: one second of source plus the tail
    assert body["report"]["duration_sec"] == pytest.approx(3.0)
    assert os.path.exists(body["output_file"])


def test_enhance_rejects_unstable_params(client):
    resp = client.post(
        "/enhance",
        files={"file": _upload(make_sine(0.2))},
        data={"params": json.dumps({"delayFeedback": 1.0})},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["error"] == "DSP_INVALID_PARAMETERS"


def test_enhance_rejects_malformed_params_json(client):
    resp = client.post("/enhance", files={"file": _upload(make_sine(0.2))}, data={"params": "{not json"})
    assert resp.status_code == 422


def test_enhance_unknown_preset(client):
    resp = client.post("/enhance", files={"file": _upload(make_sine(0.2))}, data={"preset": "opera"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["error"] == "DSP_UNKNOWN_PRESET"


def test_remix(client):
    resp = client.post(
        "/remix",
        files={"file_a": _upload(make_sine(0.5), "a.wav"), "file_b": _upload(make_sine(0.3, freq=330.0), "b.wav")},
        data={"key_semitones": "0", "tempo_ratio": "1.0"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["filename"] == "RaiWave_Remix.wav"
    assert body["sample_rate"] == 44100
    assert body["duration_sec"] == pytest.approx(0.5)


def test_remix_with_bad_source_is_a_mix_failure(client):
    resp = client.post(
        "/remix",
        files={"file_a": _upload(make_sine(0.2), "a.wav"), "file_b": ("b.wav", b"junk", "audio/wav")},
    )
    assert resp.status_code == 500
    assert resp.json()["detail"] == {"error": "DSP_MIX_FAILED", "message": "Mixing failed. Please check audio files."}


def test_remix_rejects_non_positive_tempo(client):
    resp = client.post(
        "/remix",
        files={"file_a": _upload(make_sine(0.2), "a.wav"), "file_b": _upload(make_sine(0.2), "b.wav")},
        data={"tempo_ratio": "0"},
    )
    assert resp.status_code == 422
