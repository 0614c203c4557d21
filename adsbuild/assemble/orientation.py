"""
adsbuild/assemble/orientation.py

Reorient an adsorbate fragment before placement: align, roll, pitch, yaw.

Frame conventions
-----------------
align_stem() puts the fragment in a canonical local frame: stem along +x,
stem midpoint (real stem) or anchor (virtual stem) at the origin.  The
later steps are expressed in that frame and must run in this order:

  roll    Rotate the reference plane so its normal sits in the y-z plane
          at the requested plane angle, then flip the fragment upright.
  pitch   Tilt the stem in the x-z plane so the coordination side points
          down at stem_coord_angle below the horizontal.
  yaw     Turn the stem about the world z-axis toward ads_direction.

Every step rotates the fragment rigidly about the origin; internal
distances never change.  After roll, pitch and yaw the positions are
checked for NaN/inf, which would come from a degenerate rotation axis.

The fragment is modified in place.
"""

from __future__ import annotations

import logging

import numpy as np

from adsbuild.assemble.params import FinalizedParams
from adsbuild.assemble.reference import plane_normal, stem_origin, stem_vector
from adsbuild.errors import NonFiniteCoordinateError
from adsbuild.geometry import (
    X_AXIS,
    Y_AXIS,
    Z_AXIS,
    angle_between,
    is_parallel,
    rotation_between,
    rotation_matrix,
    signed_angle_about_z,
)
from adsbuild.structure.lattice import LatticeModel

logger = logging.getLogger(__name__)

_XZ = np.array([1.0, 0.0, 1.0])
_XY = np.array([1.0, 1.0, 0.0])


def check_finite(fragment: LatticeModel, stage: str) -> None:
    """Raise NonFiniteCoordinateError if any coordinate is NaN or infinite."""
    positions = fragment.atoms.positions
    if not np.isfinite(positions).all():
        raise NonFiniteCoordinateError(stage, positions)


def align_stem(fragment: LatticeModel, params: FinalizedParams) -> None:
    """Rotate the stem onto +x and move the stem origin to (0, 0, 0)."""
    stem = stem_vector(fragment, params)
    if stem is None:
        logger.debug("No stem configured for %s; skipping alignment", fragment.name)
        return
    fragment.rotate(rotation_between(stem, X_AXIS))
    fragment.translate(-stem_origin(fragment, params))


def make_upright(fragment: LatticeModel, params: FinalizedParams) -> bool:
    """
    Half-turn about +x if the upper marker atom sits below the first
    coordination atom.  Returns True when the fragment was flipped.
    """
    if params.upper_atom_id is None:
        return False
    upper_z = fragment.position(params.upper_atom_id)[2]
    coord_z = fragment.position(params.coord_atom_ids[0])[2]
    if upper_z < coord_z:
        fragment.rotate(rotation_matrix(X_AXIS, np.pi))
        logger.debug("Flipped %s upright about the stem axis", fragment.name)
        return True
    return False


def roll(fragment: LatticeModel, params: FinalizedParams) -> None:
    """
    Set the angle between the reference plane and the horizontal.

    The plane normal is rotated onto (0, cos(90 - a), sin(90 - a)), where
    a is plane_angle: a = 0 lays the plane flat, a = 90 makes it the
    vertical x-z plane containing the stem.  Fragments with two atoms or
    fewer have no meaningful plane and are left alone.
    """
    if len(fragment) <= 2:
        logger.debug("%s has %d atoms; skipping roll", fragment.name, len(fragment))
        return
    if params.plane_atom_ids is None or params.plane_angle is None:
        logger.debug("No plane or plane angle for %s; skipping roll", fragment.name)
        return

    normal = plane_normal(fragment, params.plane_atom_ids)
    theta = np.radians(90.0 - params.plane_angle)
    target = np.array([0.0, np.cos(theta), np.sin(theta)])
    # half turns go about the stem axis
    fragment.rotate(rotation_between(normal, target, half_turn_axis=X_AXIS))
    # pitch relies on a consistent up sense
    make_upright(fragment, params)
    check_finite(fragment, "roll")


def pitch(fragment: LatticeModel, params: FinalizedParams) -> None:
    """
    Tilt the stem to stem_coord_angle below the horizontal.

    The stem is first oriented toward the coordination atom (positive dot
    product with the coordination atom position); when the coordination
    atom sits at the origin, e.g. the anchor of a virtual stem, the stem is
    reversed so it points away from the atoms it was built from.  The
    target lies in the x-z plane on the same x side, pointing down.
    """
    if not params.has_stem or params.stem_coord_angle is None:
        logger.debug("No stem or stem angle for %s; skipping pitch", fragment.name)
        return

    stem = stem_vector(fragment, params)
    coord = fragment.position(params.coord_atom_ids[0])
    sign = 1.0 if np.dot(stem, coord) > 0 else -1.0
    stem = sign * stem

    a = np.radians(params.stem_coord_angle)
    target = np.array([sign * np.cos(a), 0.0, -np.sin(a)])

    stem_xz = stem * _XZ
    target_xz = target * _XZ
    if is_parallel(stem_xz, target_xz):
        logger.debug("Stem of %s already at the target pitch", fragment.name)
        check_finite(fragment, "pitch")
        return

    axis = np.cross(stem, target)
    if not np.any(axis):
        # stem and target antiparallel: any axis normal to the x-z plane works
        axis = Y_AXIS
    fragment.rotate(rotation_matrix(axis, angle_between(stem_xz, target_xz)))
    check_finite(fragment, "pitch")


def yaw(fragment: LatticeModel, params: FinalizedParams) -> None:
    """
    Turn the fragment about the world z-axis so the horizontal projection
    of the stem follows ads_direction.

    For a real stem the axis stem_xy x direction_xy is +z or -z, so a
    signed rotation about +z covers both the real and the virtual stem.
    A stem with no horizontal component (e.g. a vertical virtual stem)
    cannot be yawed and is left alone.
    """
    if params.ads_direction is None or not params.has_stem:
        logger.debug("No adsorption direction for %s; skipping yaw", fragment.name)
        return

    stem_xy = stem_vector(fragment, params) * _XY
    direction_xy = np.asarray(params.ads_direction, dtype=float) * _XY
    if is_parallel(stem_xy, direction_xy):
        logger.debug("Stem of %s already along the adsorption direction", fragment.name)
        check_finite(fragment, "yaw")
        return

    fragment.rotate(rotation_matrix(Z_AXIS, signed_angle_about_z(stem_xy, direction_xy)))
    check_finite(fragment, "yaw")


def orient_fragment(fragment: LatticeModel, params: FinalizedParams) -> None:
    """Run align, roll, pitch and yaw in order."""
    align_stem(fragment, params)
    roll(fragment, params)
    pitch(fragment, params)
    yaw(fragment, params)
