"""
Tests for vertex buffers and edge tessellation.
"""

import math

import numpy as np
import pytest

from scituner.errors import PreconditionViolation
from scituner.geometry import VertexBuffer, build_edge


class TestVertexBuffer:
    """Tests for the growable vertex cursor."""

    def test_append_returns_vertex_count(self):
        buf = VertexBuffer(2, capacity=4)
        assert buf.append(0.0, 1.0) == 1
        assert buf.append(2.0, 3.0) == 2
        assert buf.cursor == 4
        np.testing.assert_array_equal(buf.data, [0.0, 1.0, 2.0, 3.0])

    def test_grows_past_capacity(self):
        buf = VertexBuffer(4, capacity=1)
        for i in range(10):
            buf.append(i, i + 1, i + 2, i + 3)
        assert len(buf) == 10
        assert buf.vertices().shape == (10, 4)
        np.testing.assert_array_equal(buf.vertices()[9], [9, 10, 11, 12])

    def test_wrong_component_count(self):
        buf = VertexBuffer(2)
        with pytest.raises(PreconditionViolation):
            buf.append(1.0, 2.0, 3.0)

    def test_empty_buffer(self):
        buf = VertexBuffer(2)
        assert len(buf) == 0
        assert buf.data.dtype == np.float32
        assert buf.vertices().shape == (0, 2)

    def test_invalid_dimension(self):
        with pytest.raises(PreconditionViolation):
            VertexBuffer(0)


class TestBuildEdge:
    """Tests for thick-line segment tessellation."""

    def test_four_triangles(self):
        buf = VertexBuffer(2)
        assert build_edge(buf, 0.0, 0.0, 1.0, 0.0, 0.2) == 12

    def test_horizontal_segment(self):
        buf = VertexBuffer(2)
        build_edge(buf, 0.0, 0.5, 1.0, 0.5, 0.2)
        y = buf.vertices()[:, 1]
        assert np.max(y) == pytest.approx(0.6)
        assert np.min(y) == pytest.approx(0.4)

    def test_steep_segment_keeps_thickness(self):
        buf = VertexBuffer(2)
        build_edge(buf, 0.0, 0.0, 0.1, 0.1, 0.2)
        v = buf.vertices()
        # second vertex is the upper corner at x0
        assert v[1, 1] == pytest.approx(0.1 * math.sqrt(2))

    def test_triangles_share_start_vertex(self):
        buf = VertexBuffer(2)
        build_edge(buf, -0.5, 0.1, -0.4, 0.2, 0.05)
        triangles = buf.vertices().reshape(4, 3, 2)
        for triangle in triangles:
            np.testing.assert_allclose(triangle[0], [-0.5, 0.1], atol=1e-7)

    def test_appends_after_existing(self):
        buf = VertexBuffer(2)
        build_edge(buf, 0.0, 0.0, 1.0, 0.0, 0.1)
        assert build_edge(buf, 1.0, 0.0, 2.0, 0.0, 0.1) == 24
