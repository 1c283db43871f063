"""Sub-bin frequency/phase refinement and undertone correction.

The sinc refiner interpolates the complex spectrum between native FFT bins
instead of running a finer transform. The undertone corrector measures
energy at f0/2 .. f0/5 relative to f0; its divisor is only applied when
explicitly enabled.
"""

import numpy as np

from .dspmath import get_phase, peak_width, range_energy

# 200 candidate offsets in native bins, [-1, 1) in steps of 0.01
OFFSETS = np.arange(-100, 100) / 100.0
NEIGHBOURS = np.arange(-2, 3)
KERNEL = np.sinc(OFFSETS[:, None] - NEIGHBOURS[None, :])  # sinc(pi * (offset - k))

CENTROID_BAND = 0.1  # +/- fraction of the coarse frequency

UNDERTONE_DIVISORS = (2, 3, 4, 5)
UNDERTONE_THRESHOLD = 0.01


def bin_width(sample_rate: float, signal_length: int) -> float:
    """Spacing in Hz of the expanded spectrum arrays."""
    return sample_rate / (2.0 * signal_length)


def refine_frequency_and_phase(real: np.ndarray, imag: np.ndarray,
                               sample_rate: float,
                               coarse: float) -> tuple[float, float]:
    """Refine a coarse peak frequency to sub-bin accuracy.

    Args:
        real:        expanded real spectrum, shape (signal_length,)
        imag:        expanded imaginary spectrum, shape (signal_length,)
        sample_rate: Hz
        coarse:      coarse peak frequency in Hz

    Returns:
        (frequency, phase). A silent neighbourhood returns (coarse, 0.0).
    """
    length = len(real)
    index = int(round(coarse * length / sample_rate))

    # native bins live at even indices of the expanded arrays
    bins = np.clip(index + NEIGHBOURS, 0, length // 2 - 1)
    # re-reference each bin to the window centre
    sign = np.where(bins % 2 == 0, 1.0, -1.0)
    re_bins = real[2 * bins] * sign
    im_bins = imag[2 * bins] * sign

    re = KERNEL @ re_bins
    im = KERNEL @ im_bins
    power = re * re + im * im

    best = int(np.argmax(power))
    if power[best] <= 0.0:
        return coarse, 0.0

    offset_hz = OFFSETS[best] * 2.0 * bin_width(sample_rate, length)
    return coarse + offset_hz, get_phase(re[best], im[best])


def refine_centroid(spectrum: np.ndarray, sample_rate: float,
                    coarse: float) -> float:
    """Power-weighted mean frequency within +/- 10% of coarse."""
    length = len(spectrum)
    df = bin_width(sample_rate, length)

    lo = max(int((1.0 - CENTROID_BAND) * coarse / df), 0)
    hi = min(int((1.0 + CENTROID_BAND) * coarse / df), length - 1)
    if hi < lo:
        return coarse

    band = spectrum[lo:hi + 1]
    total = float(np.sum(band))
    if total == 0.0:
        return coarse
    # each entry takes the frequency of the native bin it was expanded from
    freqs = (np.arange(lo, hi + 1) // 2) * 2.0 * df
    return float(np.dot(band, freqs)) / total


def undertone_energy_ratios(spectrum: np.ndarray, f0: float,
                            df: float) -> dict[int, float]:
    """Energy around f0 / n relative to the energy around f0.

    Returns:
        {n: ratio} for n in 2..5
    """
    delta = peak_width(spectrum, f0, df)
    e0 = range_energy(spectrum, f0, delta, df)
    if e0 == 0:
        e0 = 1.0
    return {
        n: range_energy(spectrum, f0 / n, delta, df) / e0
        for n in UNDERTONE_DIVISORS
    }


class UndertoneCorrector:
    """Decides whether the detected peak is an overtone of a lower note.

    Disabled by default: the ratios are computed and kept on last_ratios,
    but the divisor stays 1.
    """

    def __init__(self, enabled: bool = False,
                 threshold: float = UNDERTONE_THRESHOLD):
        self.enabled = enabled
        self.threshold = threshold
        self.last_ratios: dict[int, float] = {}

    def divisor(self, spectrum: np.ndarray, f0: float, df: float) -> int:
        self.last_ratios = undertone_energy_ratios(spectrum, f0, df)
        if not self.enabled:
            return 1
        for n in sorted(self.last_ratios, reverse=True):
            if self.last_ratios[n] > self.threshold:
                return n
        return 1
