import numpy as np
import pytest

from film_ruler.models import CalibrationConfig
from synthetic import RulerTarget, render_target


@pytest.fixture
def target() -> RulerTarget:
    return RulerTarget()


@pytest.fixture
def target_image(target: RulerTarget) -> np.ndarray:
    return render_target(target)


@pytest.fixture
def seeded_config() -> CalibrationConfig:
    return CalibrationConfig(ransac_seed=7)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
