"""Vertex output buffers and thick-line tessellation for the renderer."""

import math

import numpy as np

from .errors import PreconditionViolation


class VertexBuffer:
    """Growable float32 vertex sequence with a fixed number of components.

    append() returns the vertex count so callers can track their cursor
    without holding raw offsets into the storage.
    """

    def __init__(self, dimension: int, capacity: int = 64):
        if dimension < 1:
            raise PreconditionViolation(f"dimension must be >= 1, got {dimension}")
        self._dimension = dimension
        self._data = np.zeros(max(capacity, 1) * dimension, dtype=np.float32)
        self._cursor = 0

    @property
    def dimension(self):
        return self._dimension

    @property
    def cursor(self) -> int:
        """Number of floats written."""
        return self._cursor

    @property
    def data(self) -> np.ndarray:
        """Interleaved float32 view of the written vertices."""
        return self._data[:self._cursor]

    def vertices(self) -> np.ndarray:
        """Written vertices as shape (len(self), dimension)."""
        return self.data.reshape(-1, self._dimension)

    def __len__(self):
        return self._cursor // self._dimension

    def append(self, *components) -> int:
        if len(components) != self._dimension:
            raise PreconditionViolation(
                f"expected {self._dimension} components, got {len(components)}"
            )
        end = self._cursor + self._dimension
        if end > len(self._data):
            grown = np.zeros(max(2 * len(self._data), end), dtype=np.float32)
            grown[:self._cursor] = self._data[:self._cursor]
            self._data = grown
        self._data[self._cursor:end] = components
        self._cursor = end
        return len(self)


def build_edge(dest: VertexBuffer, x0: float, y0: float, x1: float, y1: float,
               thickness: float) -> int:
    """Append one thick line segment as four triangles (12 vertices).

    The half height is stretched by hypot / dx so that steep segments keep
    their apparent thickness. Returns the vertex count of dest.
    """
    dy = y1 - y0
    dx = x1 - x0
    dh = thickness / 2.0

    hypotenuse = math.sqrt(dx * dx + dy * dy)
    if hypotenuse != 0 and dx != 0:
        dh *= hypotenuse / dx

    # upper half
    dest.append(x0, y0)
    dest.append(x0, y0 + dh)
    dest.append(x1, y1 + dh)

    dest.append(x0, y0)
    dest.append(x1, y1 + dh)
    dest.append(x1, y1)

    # lower half
    dest.append(x0, y0)
    dest.append(x1, y1)
    dest.append(x1, y1 - dh)

    dest.append(x0, y0)
    dest.append(x1, y1 - dh)
    return dest.append(x0, y0 - dh)
