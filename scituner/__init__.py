"""SciTuner: pitch detection and display data for an instrument tuner."""

from .context import AnalysisContext
from .errors import PreconditionViolation
from .geometry import VertexBuffer
from .refinement import UndertoneCorrector
from .spectrum_processor import build_power_spectrum, build_power_spectrum_range
from .waveform_processor import build_smooth_standing_wave, build_standing_wave

__all__ = [
    "AnalysisContext",
    "PreconditionViolation",
    "UndertoneCorrector",
    "VertexBuffer",
    "build_power_spectrum",
    "build_power_spectrum_range",
    "build_smooth_standing_wave",
    "build_standing_wave",
]
