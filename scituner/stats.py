"""Statistics over flat float arrays used by the waveform and undertone paths.

Every helper takes an optional length that limits it to the first
`length` entries. data_shift and data_scale modify their argument in place.
"""

import numpy as np

from .errors import PreconditionViolation


def _head(data, length):
    if not isinstance(data, np.ndarray):
        data = np.asarray(data, dtype=np.float64)
    if length is None:
        return data
    if length < 0 or length > len(data):
        raise PreconditionViolation(
            f"length {length} outside sequence of {len(data)} values"
        )
    return data[:length]


def data_avr(data, length: int | None = None) -> float:
    data = _head(data, length)
    if len(data) == 0:
        raise PreconditionViolation("mean of an empty sequence")
    return float(np.mean(data))


def data_avr2(data, length: int | None = None) -> float:
    """Mean square."""
    data = _head(data, length)
    if len(data) == 0:
        raise PreconditionViolation("mean square of an empty sequence")
    return float(np.dot(data, data)) / len(data)


def data_shift(data: np.ndarray, shift: float, length: int | None = None):
    view = _head(data, length)
    view += shift


def data_scale(data: np.ndarray, scale: float, length: int | None = None):
    view = _head(data, length)
    view *= scale


def data_max(data, length: int | None = None) -> float:
    data = _head(data, length)
    if len(data) == 0:
        return float("nan")
    return float(np.max(data))


def data_min(data, length: int | None = None) -> float:
    data = _head(data, length)
    if len(data) == 0:
        return float("nan")
    return float(np.min(data))


def data_dev(data, length: int | None = None) -> float:
    """Half range, (max - min) / 2."""
    return (data_max(data, length) - data_min(data, length)) / 2.0
