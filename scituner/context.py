"""Analysis context: sliding signal window, spectrum and pitch estimate.

One context per tuner session. push() feeds new samples, recalculate()
updates the spectrum and peak frequency, and the display builders in
waveform_processor / spectrum_processor read from it. Nothing here is
locked; callers serialize access.
"""

import numpy as np

from .dspmath import (
    ForwardTransform,
    ceil2,
    expand_half_spectrum,
    power_spectrum,
)
from .errors import PreconditionViolation
from .refinement import (
    UndertoneCorrector,
    bin_width,
    refine_centroid,
    refine_frequency_and_phase,
)

INITIAL_FREQUENCY = 440.0
MIN_SIGNAL_LENGTH = 8
REFINEMENTS = ("sinc", "centroid")


class AnalysisContext:
    """Owns every buffer of the pitch-detection pipeline."""

    def __init__(self, sample_rate: float, min_frequency: float,
                 sample_count: int, point_count: int,
                 refinement: str = "sinc",
                 undertone: UndertoneCorrector | None = None):
        """
        Args:
            sample_rate:   Hz, fixed for the session.
            min_frequency: Lower bound hint in Hz, kept as configuration.
            sample_count:  Requested window; rounded up to a power of two.
            point_count:   Points in the smoothed waveform.
            refinement:    "sinc" (frequency and phase) or "centroid".
            undertone:     Corrector to apply; a disabled one by default.
        """
        if sample_rate <= 0:
            raise PreconditionViolation(f"sample rate must be positive, got {sample_rate}")
        if ceil2(sample_count) < MIN_SIGNAL_LENGTH:
            raise PreconditionViolation(
                f"window of {sample_count} samples is below {MIN_SIGNAL_LENGTH}"
            )
        if point_count < 2:
            raise PreconditionViolation(f"need at least 2 points, got {point_count}")
        if refinement not in REFINEMENTS:
            raise PreconditionViolation(f"unknown refinement {refinement!r}")

        self.sample_rate = float(sample_rate)
        self.min_frequency = float(min_frequency)
        self.refinement = refinement
        self.undertone = undertone if undertone is not None else UndertoneCorrector()

        self.peak_frequency = INITIAL_FREQUENCY
        self.peak_phase = 0.0

        self.signal_length = ceil2(sample_count)
        self.point_count = point_count

        self.signal = np.zeros(self.signal_length, dtype=np.float64)
        self.real = np.zeros(self.signal_length, dtype=np.float64)
        self.imag = np.zeros(self.signal_length, dtype=np.float64)
        self.spectrum = np.zeros(self.signal_length, dtype=np.float64)
        self.points = np.zeros(self.point_count, dtype=np.float64)

        self._transform = ForwardTransform(self.signal_length.bit_length() - 1)

    @property
    def bin_width(self) -> float:
        """Hz between adjacent entries of spectrum."""
        return bin_width(self.sample_rate, self.signal_length)

    @property
    def is_open(self) -> bool:
        return self._transform.is_open

    def require_open(self):
        if not self.is_open:
            raise PreconditionViolation("analysis context has been closed")

    def push(self, packet):
        """Append a packet of samples, discarding the oldest ones.

        Args:
            packet: mono samples, shape (n,)
        """
        self.require_open()
        packet = np.asarray(packet, dtype=np.float64)
        if packet.ndim != 1:
            raise PreconditionViolation(f"expected a mono packet, got shape {packet.shape}")

        shift = self.signal_length - len(packet)
        if shift <= 0:
            self.signal[:] = packet[len(packet) - self.signal_length:]
            return

        self.signal[:shift] = self.signal[len(packet):]
        self.signal[shift:] = packet

    def recalculate(self):
        """Transform the window and update peak_frequency / peak_phase."""
        self.require_open()
        np.copyto(self.real, self.signal)
        self.imag.fill(0.0)

        self._transform.forward(self.real, self.imag)

        expand_half_spectrum(self.real)
        expand_half_spectrum(self.imag)
        power_spectrum(self.real, self.imag, out=self.spectrum)

        half = self.signal_length // 2
        i = 1 + int(np.argmax(self.spectrum[1:half]))
        peak = float(self.spectrum[i])
        coarse = self.sample_rate * i * 0.5 / self.signal_length
        if peak == 0.0:
            peak = 1.0
            coarse = 0.0

        self.spectrum /= peak
        # bins outside the scanned range may exceed the peak
        np.minimum(self.spectrum, 1.0, out=self.spectrum)

        if self.refinement == "centroid":
            self.peak_frequency = refine_centroid(self.spectrum, self.sample_rate, coarse)
        else:
            self.peak_frequency, self.peak_phase = refine_frequency_and_phase(
                self.real, self.imag, self.sample_rate, coarse
            )

        c = self.undertone.divisor(self.spectrum, self.peak_frequency, self.bin_width)
        self.peak_frequency /= c

    def close(self):
        """Release the transform and drop the buffers."""
        if not self.is_open:
            return
        self._transform.close()
        empty = np.zeros(0, dtype=np.float64)
        self.signal = self.real = self.imag = self.spectrum = self.points = empty

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
