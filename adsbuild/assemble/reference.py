"""
adsbuild/assemble/reference.py

Reference vectors of an adsorbate fragment: stem, plane normal and the
coordination-stem vector used by single-atom placement.

Stems
-----
A real stem is the vector between two fragment atoms.  When both stem ids
are equal the stem is virtual: it starts at that anchor atom and runs along
the plane normal to the reference plane, i.e. from the anchor to its
projection onto the plane.  CH3 bound through C is the typical case: anchor
C, plane through the three H atoms, stem along the C3 axis.

All functions are pure: they read positions and never move atoms.
"""

from __future__ import annotations

import numpy as np

from adsbuild.assemble.params import FinalizedParams
from adsbuild.errors import (
    CollinearPointsError,
    ConfigurationError,
    DegenerateGeometryError,
)
from adsbuild.geometry import angle_between, project_onto_line, project_onto_plane
from adsbuild.structure.lattice import LatticeModel, centroid_of_points


def plane_normal(fragment: LatticeModel, plane_atom_ids) -> np.ndarray:
    """
    Normal of the plane through three atoms: (p2 - p1) x (p3 - p1).

    The collinearity test is exact: the plane is rejected only when the
    angle between the two edges is exactly 0 or pi, or when their cross
    product is exactly zero.  A zero-length edge is rejected too.  Nearly
    collinear points pass and give a short normal.

    Raises
    ------
    CollinearPointsError
        If the three points are on one line.
    """
    p1, p2, p3 = plane_atom_ids
    ba = fragment.get_vector_ab(p1, p2)
    ca = fragment.get_vector_ab(p1, p3)
    angle = angle_between(ba, ca)
    normal = np.cross(ba, ca)
    if angle == 0.0 or angle == np.pi or not np.any(normal):
        raise CollinearPointsError((p1, p2, p3))
    return normal


def stem_vector(fragment: LatticeModel, params: FinalizedParams) -> np.ndarray | None:
    """
    Stem vector of the fragment, or None when no stem is configured.

    Raises
    ------
    ConfigurationError
        Virtual stem without plane atoms.
    DegenerateGeometryError
        The anchor of a virtual stem lies in the reference plane.
    """
    if params.stem_atom_ids is None:
        return None
    a, b = params.stem_atom_ids
    if a != b:
        stem = fragment.get_vector_ab(a, b)
        if not np.any(stem):
            raise DegenerateGeometryError(
                f"Stem atoms {a} and {b} coincide; the stem has zero length."
            )
        return stem

    if params.plane_atom_ids is None:
        raise ConfigurationError(
            f"Virtual stem [{a}, {b}] needs plane atoms.", missing=["plane_atom_ids"]
        )
    anchor = fragment.position(a)
    plane_point = fragment.position(params.plane_atom_ids[0])
    normal = plane_normal(fragment, params.plane_atom_ids)
    foot = project_onto_plane(anchor, plane_point, normal)
    stem = foot - anchor
    if not np.any(stem):
        raise DegenerateGeometryError(
            f"Virtual stem anchor {a} lies in the plane of atoms "
            f"{list(params.plane_atom_ids)}; the stem has zero length."
        )
    return stem


def stem_origin(fragment: LatticeModel, params: FinalizedParams) -> np.ndarray | None:
    """Midpoint of a real stem, or the anchor atom of a virtual stem."""
    if params.stem_atom_ids is None:
        return None
    a, b = params.stem_atom_ids
    if a == b:
        return fragment.position(a)
    return centroid_of_points([fragment.position(a), fragment.position(b)])


def _upward(v: np.ndarray) -> np.ndarray:
    return -v if v[2] < 0 else v


def coord_stem_vector(fragment: LatticeModel, params: FinalizedParams) -> np.ndarray | None:
    """
    Direction used to place a single coordination atom, pointing up (z >= 0).

    When the coordination atom is one of the stem atoms (or the anchor of
    a virtual stem) this is the stem itself.  Otherwise it is the vector
    from the coordination atom's foot on the stem line to the atom, which
    covers branched fragments bonding through a side atom.  Returns None
    when no stem is configured.
    """
    if params.stem_atom_ids is None:
        return None
    stem = stem_vector(fragment, params)
    coord_id = params.coord_atom_ids[0]
    if coord_id in params.stem_atom_ids:
        return _upward(stem)

    coord = fragment.position(coord_id)
    line_point = fragment.position(params.stem_atom_ids[0])
    foot = project_onto_line(coord, line_point, stem)
    return _upward(coord - foot)
