"""Waveform processor: phase-aligned standing wave for the scope display.

Measures the phase of the detected pitch near the tail of the signal
window and starts the displayed segment at the same point of the cycle
every frame, so a steady tone draws a steady wave. Two outputs: a plain
(x, y) polyline and a thick-line mesh with glow segments.
"""

import math

import numpy as np

from .dspmath import approximate_sinc, ceil2, get_phase
from .errors import PreconditionViolation
from .geometry import VertexBuffer, build_edge
from .stats import data_avr, data_dev, data_scale, data_shift

FREQ_MIN = 20.0
FREQ_MAX = 16000.0
# Alignment reads up to 4.5 wavelengths back from the tail
WINDOW_WAVELENGTHS = 5.0

X_SPAN = 1.6      # polyline spans x in [-0.8, 0.8)
WAVE_GAIN = 0.25  # peak deviation maps to +/- 0.25
WAVE_BASELINE = -0.4

SMOOTH_DEVIATION = 0.2
LIGHT_REPEAT = 12  # light descriptors per segment, one per mesh vertex
EDGE_VERTICES = 12


def display_frequency(frequency: float) -> float:
    """Clamp frequency to the range the scope draws."""
    return min(max(frequency, FREQ_MIN), FREQ_MAX)


def shortest_window(sample_rate: float) -> int:
    """Smallest power-of-two window that can align a FREQ_MIN wave."""
    return ceil2(WINDOW_WAVELENGTHS * sample_rate / FREQ_MIN)


def aligned_segment(ctx) -> tuple[int, float]:
    """Find where a phase-aligned two-wavelength segment starts.

    Raises PreconditionViolation when the window is too short to hold the
    segment for the current pitch (see shortest_window).

    Returns:
        (start index into ctx.signal, wavelength in samples)
    """
    ctx.require_open()
    f = display_frequency(ctx.peak_frequency)
    wavelength = ctx.sample_rate / f

    tail = ctx.signal_length - int(wavelength * 2)
    if tail < 0:
        raise PreconditionViolation(
            f"window of {ctx.signal_length} samples too short for {f:.1f} Hz"
        )
    src = ctx.signal[tail:]
    t = 2.0 * math.pi * np.arange(len(src)) / wavelength
    re = float(np.dot(src, np.cos(t)))
    im = float(np.dot(src, np.sin(t)))

    phase = get_phase(re, im)
    shift = wavelength * phase / (2.0 * math.pi)

    start = tail - int(wavelength - shift) - int(wavelength)
    if start < 0:
        raise PreconditionViolation(
            f"window of {ctx.signal_length} samples too short for "
            f"{f:.1f} Hz (start {start})"
        )
    return start, wavelength


def build_standing_wave(ctx, count: int) -> VertexBuffer:
    """Build the scope polyline.

    Args:
        ctx:   AnalysisContext
        count: number of (x, y) vertices

    Returns:
        VertexBuffer of count 2-D vertices, y centred on WAVE_BASELINE
    """
    start, wavelength = aligned_segment(ctx)
    samples = approximate_sinc(ctx.signal[start:], count, 2 * wavelength)

    data_shift(samples, -data_avr(samples))

    peak = float(np.max(np.abs(samples)))
    if peak == 0.0:
        peak = 1.0
    data_scale(samples, WAVE_GAIN / peak)
    data_shift(samples, WAVE_BASELINE)

    wave = VertexBuffer(2, capacity=count)
    for j in range(count):
        wave.append((j / count - 0.5) * X_SPAN, samples[j])
    return wave


def build_smooth_standing_wave(ctx, thickness: float
                               ) -> tuple[VertexBuffer, VertexBuffer]:
    """Tessellate the standing wave into a thick line.

    Args:
        ctx:       AnalysisContext; its points buffer is overwritten
        thickness: line thickness in display units

    Returns:
        (mesh, light): mesh holds 12 (x, y) vertices per segment, light
        holds LIGHT_REPEAT (x0, y0, x1, y1) descriptors per segment
    """
    start, wavelength = aligned_segment(ctx)
    points = ctx.points
    count = ctx.point_count
    approximate_sinc(ctx.signal[start:], count, 2 * wavelength, out=points)

    data_shift(points, -data_avr(points))
    dev = data_dev(points)
    if dev != 0:
        data_scale(points, SMOOTH_DEVIATION / dev)

    segments = count - 1
    mesh = VertexBuffer(2, capacity=segments * EDGE_VERTICES)
    light = VertexBuffer(4, capacity=segments * LIGHT_REPEAT)

    dx = 2.0 / count
    for j in range(segments):
        x0 = dx * j - 1.0
        y0 = points[j]
        x1 = dx * (j + 1) - 1.0
        y1 = points[j + 1]

        build_edge(mesh, x0, y0, x1, y1, thickness)

        # taper the ends so the glow does not overshoot the line caps
        lx0 = x0 + thickness / 2.0 if j == 0 else x0
        lx1 = x1 - thickness / 2.0 if j == segments - 1 else x1
        for _ in range(LIGHT_REPEAT):
            light.append(lx0, y0, lx1, y1)

    return mesh, light
