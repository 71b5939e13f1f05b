import numpy as np
import pytest

from raiwave.config import EngineConfig
from raiwave.params import ParameterSet

from .helpers import make_sine


@pytest.fixture
def sine():
    return make_sine


@pytest.fixture
def dry_params() -> ParameterSet:
    """Every effect amount, mix and tone control at zero."""
    return ParameterSet(
        denoise=0.0,
        de_ess=0.0,
        reverb_mix=0.0,
        stereo_width=0.0,
        delay_feedback=0.0,
    )


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def engine_config(tmp_path) -> EngineConfig:
    return EngineConfig(preview_seconds=1.0, impulse_seed=7, output_dir=str(tmp_path))
