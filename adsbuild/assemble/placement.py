"""
adsbuild/assemble/placement.py

Translate an oriented fragment onto the target location.  No rotation
happens here; the fragment keeps the orientation set by orientation.py.

Several coordination atoms
    Their centroid goes to location + (0, 0, bond_length).

One coordination atom
    The atom goes bond_length away from the location, either along the
    coordination-stem vector (when that vector is tilted by a moderate
    angle from vertical) or straight up.
"""

from __future__ import annotations

import logging

import numpy as np

from adsbuild.assemble.params import FinalizedParams
from adsbuild.assemble.reference import coord_stem_vector
from adsbuild.geometry import Z_AXIS, angle_between, normalize
from adsbuild.structure.lattice import LatticeModel, centroid_of_points

logger = logging.getLogger(__name__)

# Tilt bands (degrees, open intervals) in which a single coordination atom
# is placed along its coordination-stem vector instead of straight up.
# Empirical values; near-vertical and near-horizontal tilts are excluded.
TILT_BANDS = ((1.0, 61.0), (119.0, 179.0))


def in_tilt_band(angle_deg: float) -> bool:
    return any(lo < angle_deg < hi for lo, hi in TILT_BANDS)


def coordination_target(
    fragment: LatticeModel,
    params: FinalizedParams,
    location: np.ndarray,
) -> np.ndarray:
    """Where the single coordination atom has to end up."""
    above = location + np.array([0.0, 0.0, params.bond_length])
    direction = coord_stem_vector(fragment, params)
    if direction is None:
        return above
    tilt = np.degrees(angle_between(direction, params.bond_length * Z_AXIS))
    if in_tilt_band(tilt):
        logger.debug("Coordination stem tilted %.2f deg; bonding along the stem", tilt)
        return location + params.bond_length * normalize(direction)
    return above


def place_single_coord(
    fragment: LatticeModel,
    params: FinalizedParams,
    location: np.ndarray,
) -> None:
    coord_id = params.coord_atom_ids[0]
    target = coordination_target(fragment, params, location)
    fragment.translate(target - fragment.position(coord_id))


def place_multiple_coord(
    fragment: LatticeModel,
    params: FinalizedParams,
    location: np.ndarray,
) -> None:
    centroid = centroid_of_points([fragment.position(i) for i in params.coord_atom_ids])
    target = location + np.array([0.0, 0.0, params.bond_length])
    fragment.translate(target - centroid)


def place_fragment_at(
    fragment: LatticeModel,
    params: FinalizedParams,
    location,
) -> None:
    """
    Translate the fragment (in place) so the bonding constraint holds.

    Parameters
    ----------
    fragment:
        Oriented fragment.
    params:
        Finalised adsorption parameters.
    location:
        Target point on the host, usually the centroid of the target sites.
    """
    location = np.asarray(location, dtype=float)
    if params.single_coord:
        place_single_coord(fragment, params, location)
    else:
        place_multiple_coord(fragment, params, location)
