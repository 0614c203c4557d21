from __future__ import annotations

import numpy as np
import pytest


class TestVectors:

    def test_normalize_unit_length(self):
        from adsbuild.geometry import normalize
        assert np.linalg.norm(normalize([3.0, 4.0, 0.0])) == pytest.approx(1.0)

    def test_normalize_zero_raises(self):
        from adsbuild.geometry import normalize
        with pytest.raises(ValueError):
            normalize([0.0, 0.0, 0.0])

    def test_angle_between(self):
        from adsbuild.geometry import angle_between
        assert angle_between([1, 0, 0], [0, 1, 0]) == pytest.approx(np.pi / 2)
        assert angle_between([1, 0, 0], [-2, 0, 0]) == pytest.approx(np.pi)

    def test_angle_with_zero_vector_is_zero(self):
        from adsbuild.geometry import angle_between
        assert angle_between([0, 0, 0], [1, 0, 0]) == 0.0

    def test_is_parallel_tolerates_antiparallel(self):
        from adsbuild.geometry import is_parallel
        assert is_parallel([1, 0, 0], [-5, 0, 0])
        assert not is_parallel([1, 0, 0], [1, 1, 0])

    def test_signed_angle_about_z(self):
        from adsbuild.geometry import signed_angle_about_z
        assert signed_angle_about_z([1, 0, 0], [0, 1, 0]) == pytest.approx(np.pi / 2)
        assert signed_angle_about_z([1, 0, 0], [0, -1, 0]) == pytest.approx(-np.pi / 2)


class TestRotations:

    def test_rotation_matrix_is_orthonormal(self):
        from adsbuild.geometry import rotation_matrix
        R = rotation_matrix([1.0, 2.0, 3.0], 0.7)
        assert np.allclose(R @ R.T, np.eye(3))
        assert np.linalg.det(R) == pytest.approx(1.0)

    def test_rotation_about_z_quarter_turn(self):
        from adsbuild.geometry import Z_AXIS, rotation_matrix
        R = rotation_matrix(Z_AXIS, np.pi / 2)
        assert np.allclose(R @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0])

    @pytest.mark.parametrize("u, v", [
        ([0.0, 0.0, 2.0], [1.0, 0.0, 0.0]),
        ([1.0, 1.0, 1.0], [0.0, -1.0, 0.0]),
        ([1.0, 0.0, 0.0], [-1.0, 0.0, 0.0]),
        ([0.3, -0.2, 0.9], [0.3, -0.2, 0.9]),
    ])
    def test_rotation_between_maps_direction(self, u, v):
        from adsbuild.geometry import normalize, rotation_between
        R = rotation_between(u, v)
        assert np.allclose(normalize(R @ np.asarray(u)), normalize(v), atol=1e-9)

    def test_antiparallel_half_turn_axis(self):
        from adsbuild.geometry import X_AXIS, rotation_between
        R = rotation_between([0.0, -1.0, 0.0], [0.0, 1.0, 0.0], half_turn_axis=X_AXIS)
        assert np.allclose(R @ X_AXIS, X_AXIS)
        assert np.allclose(R @ [0.0, 0.0, 1.0], [0.0, 0.0, -1.0])

    def test_project_onto_plane(self):
        from adsbuild.geometry import project_onto_plane
        foot = project_onto_plane([1.0, 2.0, 5.0], [0.0, 0.0, 1.0], [0.0, 0.0, 3.0])
        assert np.allclose(foot, [1.0, 2.0, 1.0])

    def test_project_onto_line(self):
        from adsbuild.geometry import project_onto_line
        foot = project_onto_line([2.0, 3.0, 0.0], [0.0, 0.0, 0.0], [4.0, 0.0, 0.0])
        assert np.allclose(foot, [2.0, 0.0, 0.0])
