"""Shared fixtures for Video Denoise tests."""

import numpy as np
import pytest

from video_denoise.config import Config
from video_denoise.frames import FrameSequence


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def config(tmp_path):
    return Config(output_dir=tmp_path / "output", workers=3)


@pytest.fixture
def flat_sequence():
    """Five 12x10 frames of constant gray."""
    return FrameSequence([np.full((12, 10), 128, dtype=np.uint8) for _ in range(5)], fps=25.0)
