"""DSP primitives shared by the analysis and display paths.

Forward transform, half-spectrum expansion, power spectrum, a windowed-sinc
resampler, tuning-code mapping and the spectral band estimators used by
undertone correction.
"""

import math

import numpy as np

from .errors import PreconditionViolation

A4_FREQUENCY = 440.0
A4_CODE = 69  # MIDI numbering
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

SINC_TAPS = 8  # kernel half-width in source samples (before widening)


def sinc(x: float) -> float:
    """sin(x) / x, with sinc(0) = 1."""
    if x == 0.0:
        return 1.0
    return math.sin(x) / x


def ceil2(x: float) -> int:
    """Smallest power of two >= x."""
    n = int(math.ceil(x))
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def get_phase(re: float, im: float) -> float:
    return math.atan2(im, re)


class ForwardTransform:
    """Complex forward FFT bound to one power-of-two length.

    Mirrors a platform FFT setup: created once per window size and
    released with close().
    """

    def __init__(self, log2n: int):
        if log2n < 1:
            raise PreconditionViolation(f"log2n must be >= 1, got {log2n}")
        self._log2n = log2n
        self._length = 1 << log2n
        self._open = True

    @property
    def log2n(self):
        return self._log2n

    @property
    def length(self):
        return self._length

    @property
    def is_open(self) -> bool:
        return self._open

    def forward(self, real: np.ndarray, imag: np.ndarray):
        """Transform the split complex pair in place.

        Args:
            real: float64 real parts, shape (length,)
            imag: float64 imaginary parts, shape (length,)
        """
        if not self._open:
            raise PreconditionViolation("transform has been released")
        if len(real) != self._length or len(imag) != self._length:
            raise PreconditionViolation(
                f"expected {self._length} samples, got {len(real)}/{len(imag)}"
            )
        spectrum = np.fft.fft(real + 1j * imag)
        real[:] = spectrum.real
        imag[:] = spectrum.imag

    def close(self):
        self._open = False


def expand_half_spectrum(data: np.ndarray):
    """Stretch the lower half of a transform over the whole array, in place.

    Entry i receives native bin i // 2, so index i of the result sits at
    i * fd / (2 * len(data)) Hz and indices up to len(data) stay valid.
    """
    data[:] = np.repeat(data[:len(data) // 2], 2)


def power_spectrum(real: np.ndarray, imag: np.ndarray, out: np.ndarray):
    """Squared magnitude of a split complex array, written to out."""
    np.multiply(real, real, out=out)
    out += imag * imag
    return out


def approximate_sinc(src, count: int, span: float, out=None) -> np.ndarray:
    """Resample span source samples into count evenly spaced points.

    Hann-windowed sinc interpolation. When stepping faster than one source
    sample per output point the kernel is widened to low-pass the source.
    Taps falling outside src are dropped and the remaining weights are
    renormalized.

    Args:
        src:   source samples, index 0 is the start of the span
        count: number of output points
        span:  source samples covered by the output, may be fractional
        out:   optional float64 array of shape (count,) to fill

    Returns:
        np.ndarray of float64, shape (count,)
    """
    src = np.asarray(src, dtype=np.float64)
    if count <= 0:
        raise PreconditionViolation(f"count must be positive, got {count}")
    if span <= 0:
        raise PreconditionViolation(f"span must be positive, got {span}")
    if len(src) == 0:
        raise PreconditionViolation("empty source")

    step = span / count
    scale = max(1.0, step)
    half = SINC_TAPS * scale
    reach = int(math.ceil(half))

    x = np.arange(count) * step
    idx = np.floor(x).astype(int)[:, None] + np.arange(-reach, reach + 1)[None, :]
    dist = x[:, None] - idx

    window = 0.5 + 0.5 * np.cos(np.pi * np.clip(dist / half, -1.0, 1.0))
    weights = np.sinc(dist / scale) * window
    weights[(idx < 0) | (idx >= len(src))] = 0.0

    values = src[np.clip(idx, 0, len(src) - 1)]
    total = weights.sum(axis=1)
    result = (weights * values).sum(axis=1)
    nonzero = total != 0.0
    result[nonzero] /= total[nonzero]

    if out is None:
        return result
    out[:] = result
    return out


def freq_code(frequency: float) -> int:
    """Nearest note code (MIDI numbering) for a frequency in Hz."""
    if frequency <= 0:
        raise PreconditionViolation(f"frequency must be positive, got {frequency}")
    return int(round(12.0 * math.log2(frequency / A4_FREQUENCY))) + A4_CODE


def code_freq(code: int) -> float:
    return A4_FREQUENCY * 2.0 ** ((code - A4_CODE) / 12.0)


def note_name(code: int) -> str:
    """e.g. 69 -> 'A4'."""
    return f"{NOTE_NAMES[code % 12]}{code // 12 - 1}"


def peak_width(spectrum: np.ndarray, frequency: float, df: float) -> float:
    """Half-width in Hz of the spectral peak around frequency.

    Walks down both slopes of the peak while the power stays above half of
    the centre bin. At least one bin wide.
    """
    last = len(spectrum) - 1
    center = min(max(int(round(frequency / df)), 0), last)
    level = 0.5 * spectrum[center]

    lo = center
    while lo > 0 and level < spectrum[lo - 1] <= spectrum[lo]:
        lo -= 1
    hi = center
    while hi < last and level < spectrum[hi + 1] <= spectrum[hi]:
        hi += 1

    return max(center - lo, hi - center, 1) * df


def range_energy(spectrum: np.ndarray, frequency: float, delta: float,
                 df: float) -> float:
    """Sum of spectrum bins within frequency +/- delta."""
    lo = max(int(math.floor((frequency - delta) / df)), 0)
    hi = min(int(math.ceil((frequency + delta) / df)), len(spectrum) - 1)
    if hi < lo:
        return 0.0
    return float(np.sum(spectrum[lo:hi + 1]))
