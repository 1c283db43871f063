"""Spectrum processor: power spectrum resampled for display.

Two views of the normalized spectrum held by an AnalysisContext:
  - a narrow window of +/- 2 note codes around the detected pitch
  - a log-frequency view from 10 Hz to 10 kHz with bucket accumulation
"""

import math

import numpy as np

from .dspmath import approximate_sinc, code_freq, freq_code
from .errors import PreconditionViolation
from .geometry import VertexBuffer
from .waveform_processor import X_SPAN, display_frequency

CODE_SPAN = 2
RANGE_GAIN = 1.0 / 2.5

LOG_FREQ_MIN = 10.0
LOG_FREQ_MAX = 10000.0
LOG_GAIN = 0.5

SPECTRUM_BASELINE = 0.4


def _polyline(values: np.ndarray) -> VertexBuffer:
    count = len(values)
    out = VertexBuffer(2, capacity=count)
    for j in range(count):
        out.append((j / count - 0.5) * X_SPAN, values[j])
    return out


def build_power_spectrum_range(ctx, count: int) -> VertexBuffer:
    """Spectrum around the detected note, resampled to count vertices."""
    ctx.require_open()
    code = freq_code(display_frequency(ctx.peak_frequency))

    left = code_freq(code - CODE_SPAN)
    right = code_freq(code + CODE_SPAN)

    # short windows can put the whole note range inside one bin
    last = ctx.signal_length - 1
    left_index = min(int(2 * left * ctx.signal_length / ctx.sample_rate), last - 1)
    right_index = min(int(2 * right * ctx.signal_length / ctx.sample_rate), last)
    right_index = max(right_index, left_index + 1)

    values = approximate_sinc(ctx.spectrum[left_index:], count,
                              right_index - left_index)
    values = values * RANGE_GAIN + SPECTRUM_BASELINE
    return _polyline(values)


def build_power_spectrum(ctx, count: int) -> VertexBuffer:
    """Log-frequency spectrum from 10 Hz to 10 kHz in count vertices.

    Each source bin lands in the bucket given by its log10 position.
    Buckets accumulate their bins; buckets that no bin reaches hold the
    value of the bucket before them.
    """
    ctx.require_open()
    if count <= 0:
        raise PreconditionViolation(f"count must be positive, got {count}")

    length = ctx.signal_length
    density = max(1, length // (2 * count))  # bins per vertex
    df = ctx.bin_width

    left_index = max(int(LOG_FREQ_MIN / df), 1)
    right_index = min(int(LOG_FREQ_MAX / df), length)
    if right_index <= left_index + 1:
        raise PreconditionViolation("log spectrum range holds no bins")

    left_log = math.log10(df * left_index)
    right_log = math.log10(df * right_index)

    values = np.zeros(count, dtype=np.float64)
    j0 = 0
    s0 = 0.0
    for i in range(left_index, right_index):
        j = int(count * (math.log10(df * i) - left_log) / (right_log - left_log))
        s = ctx.spectrum[i]

        while j > j0:
            values[j0] = s0
            j0 += 1
            if j == j0:
                s0 = 0.0

        s0 += s / (2.0 * density)
    values[j0] = s0

    peak = float(np.max(values))
    if peak == 0.0:
        peak = 1.0
    values = LOG_GAIN * values / peak + SPECTRUM_BASELINE
    return _polyline(values)
