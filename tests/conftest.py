"""
Pytest fixtures for scituner tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from scituner.context import AnalysisContext


@pytest.fixture
def sample_rate():
    """Standard sample rate for tests."""
    return 44100


@pytest.fixture
def make_context(sample_rate):
    """Factory for contexts that are closed after the test."""
    created = []

    def factory(sample_count=4096, point_count=64, **kwargs):
        ctx = AnalysisContext(sample_rate, 20.0, sample_count, point_count, **kwargs)
        created.append(ctx)
        return ctx

    yield factory
    for ctx in created:
        ctx.close()


@pytest.fixture
def sine(sample_rate):
    """Factory for sine packets: sine(frequency, length, amplitude=0.5)."""
    def factory(frequency, length, amplitude=0.5):
        t = np.arange(length) / sample_rate
        return amplitude * np.sin(2 * np.pi * frequency * t)
    return factory
