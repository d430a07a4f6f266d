import numpy as np
import pytest


@pytest.fixture
def sine():
    """Returns a function producing `frames` of a 440 Hz sine at half amplitude."""
    def make(frames, sample_rate=44100):
        t = np.arange(frames) / sample_rate
        return (0.5 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)
    return make
