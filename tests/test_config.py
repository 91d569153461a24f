import numpy as np
import pytest
from donut_config import DEFAULT_RAMP, DonutConfig


def test_defaults_and_derived_values():
    config = DonutConfig()
    assert (config.width, config.height) == (80, 22)
    assert config.viewer_distance == 5.0
    assert config.brightness_factor == 8.0
    assert config.ramp == DEFAULT_RAMP == " .,-~:;=!*#$@"
    assert config.background == " "

    assert config.size == 1760
    assert (config.x_center, config.y_center) == (40.0, 11.0)
    assert (config.x_scale, config.y_scale) == (30.0, 15.0)
    # ceil(2*pi / 0.07) and ceil(2*pi / 0.02)
    assert config.num_j == 90
    assert config.num_i == 315


def test_scales_follow_grid_size():
    config = DonutConfig(width=160, height=44)
    assert config.x_scale == pytest.approx(60.0)
    assert config.y_scale == pytest.approx(30.0)


@pytest.mark.parametrize("kwargs", [
    {"width": 0},
    {"height": -1},
    {"width": 2.5},
    {"width": True},
    {"viewer_distance": 0},
    {"viewer_distance": float("inf")},
    {"brightness_factor": float("nan")},
    {"brightness_factor": "8"},
    {"j_step": 0},
    {"i_step": -0.02},
    {"j_step": 2*np.pi},
    {"i_step": float("nan")},
    {"ramp": " .:-=+*#%@"},
    {"ramp": DEFAULT_RAMP + "&"},
    {"ramp": list(DEFAULT_RAMP)},
])
def test_invalid_configuration_is_rejected(kwargs):
    with pytest.raises(ValueError):
        DonutConfig(**kwargs)


def test_configuration_is_read_only():
    config = DonutConfig()
    with pytest.raises(AttributeError):
        config.width = 40
    assert config.width == 80


def test_replace_builds_a_new_validated_config():
    config = DonutConfig()
    smaller = config.replace(width=40, height=11)

    assert (smaller.width, smaller.height, smaller.size) == (40, 11, 440)
    assert smaller.ramp == config.ramp
    assert config.width == 80

    with pytest.raises(ValueError):
        config.replace(j_step=0)
    with pytest.raises(ValueError):
        config.replace(depth=3)


def test_equality():
    assert DonutConfig() == DonutConfig()
    assert DonutConfig() != DonutConfig(width=81)
    assert len({DonutConfig(), DonutConfig()}) == 1
