"""Tests for rendering helpers and console logging."""

import io

import numpy as np
import pytest
from PIL import Image
from chipax import display_to_rgb, create_color_scheme, save_frame, display_to_text
from chipax.logging import ConsoleLogger


def test_display_to_rgb(fresh_state):
    display = fresh_state.display.at[3, 1].set(True)

    rgb = display_to_rgb(display, scale=2, on_color=(1, 2, 3), off_color=(9, 9, 9))

    assert rgb.shape == (64, 128, 3)
    assert tuple(rgb[2, 6]) == (1, 2, 3)
    assert tuple(rgb[3, 7]) == (1, 2, 3)
    assert tuple(rgb[0, 0]) == (9, 9, 9)


def test_unknown_color_scheme():
    with pytest.raises(ValueError):
        create_color_scheme("plaid")


def test_save_frame(fresh_state, tmp_path):
    path = tmp_path / "frame.png"
    save_frame(fresh_state.display.at[0, 0].set(True), str(path), scale=1)

    image = np.array(Image.open(path))
    assert image.shape == (32, 64, 3)
    assert tuple(image[0, 0]) == (255, 255, 255)
    assert tuple(image[0, 1]) == (0, 0, 0)


def test_display_to_text(fresh_state):
    text = display_to_text(fresh_state.display.at[1, 0].set(True))
    lines = text.splitlines()

    assert len(lines) == 32
    assert lines[0] == "." + "#" + "." * 62


def test_logger_respects_level():
    stream = io.StringIO()
    logger = ConsoleLogger("test", log_level="WARNING", use_colors=False, show_timestamps=False, stream=stream)

    logger.info("hidden")
    logger.warning("shown")

    assert stream.getvalue() == "[ WARNING][test] shown\n"


def test_logger_rejects_unknown_level():
    with pytest.raises(ValueError):
        ConsoleLogger().set_level("LOUD")
