"""
adsbuild/assemble/params.py

Adsorption parameters: a mutable draft plus a validated, immutable result.

AdsorptionParams is filled in field by field (from YAML, the CLI, or code)
and then turned into FinalizedParams by finalize().  Only FinalizedParams
is accepted by the builder, so a half-configured placement cannot reach the
orientation stage.

Usage
-----
    params = AdsorptionParams(coord_atom_ids=[1], bond_length=1.4)
    params.stem_atom_ids = (1, 2)
    params.stem_coord_angle = 90.0
    final = params.finalize()          # ConfigurationError if incomplete
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field

import numpy as np

from adsbuild.errors import ConfigurationError, InvalidIndexError

_REQUIRED = ("coord_atom_ids", "bond_length")


def _is_atom_id(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass
class AdsorptionParams:
    """
    Draft adsorption parameters.

    Attributes
    ----------
    coord_atom_ids:
        Fragment atoms that bond to the host.  Required, non-empty.
    stem_atom_ids:
        Pair (a, b) defining the stem a -> b.  Equal ids request a virtual
        stem, which needs plane_atom_ids.
    plane_atom_ids:
        Three non-collinear fragment atoms defining the reference plane.
    plane_angle:
        Angle (degrees) between the reference plane and the horizontal;
        0 lays the plane flat, 90 stands it upright.
    stem_coord_angle:
        Angle (degrees) of the stem below the horizontal on the side of the
        coordination atom; 90 points that side straight down.
    ads_direction:
        Host-frame vector the stem is yawed toward.
    bond_length:
        Distance (Å) between coordination reference and target location.
        Required, positive.
    upper_atom_id:
        Atom that must end up above the first coordination atom after the
        roll step.
    """

    coord_atom_ids: list[int] | None = None
    stem_atom_ids: tuple[int, int] | None = None
    plane_atom_ids: tuple[int, int, int] | None = None
    plane_angle: float | None = None
    stem_coord_angle: float | None = None
    ads_direction: np.ndarray | None = None
    bond_length: float | None = None
    upper_atom_id: int | None = None

    def finalize(self) -> "FinalizedParams":
        """
        Validate the draft and freeze it.

        Raises
        ------
        ConfigurationError
            Listing every missing or invalid field.
        """
        problems: list[str] = []
        bad_fields: list[str] = []

        for name in _REQUIRED:
            if getattr(self, name) is None:
                problems.append(f"'{name}' is required but not set")
                bad_fields.append(name)

        coord = tuple(self.coord_atom_ids or ())
        if self.coord_atom_ids is not None and not coord:
            problems.append("'coord_atom_ids' must contain at least one atom id")
            bad_fields.append("coord_atom_ids")

        if self.bond_length is not None and not self.bond_length > 0:
            problems.append(f"'bond_length' must be positive, got {self.bond_length}")
            bad_fields.append("bond_length")

        stem = tuple(self.stem_atom_ids) if self.stem_atom_ids is not None else None
        if stem is not None and len(stem) != 2:
            problems.append(f"'stem_atom_ids' needs exactly 2 ids, got {list(stem)}")
            bad_fields.append("stem_atom_ids")

        plane = tuple(self.plane_atom_ids) if self.plane_atom_ids is not None else None
        if plane is not None and len(plane) != 3:
            problems.append(f"'plane_atom_ids' needs exactly 3 ids, got {list(plane)}")
            bad_fields.append("plane_atom_ids")

        if stem is not None and len(stem) == 2 and stem[0] == stem[1] and plane is None:
            problems.append(
                f"virtual stem {list(stem)} (equal ids) requires 'plane_atom_ids'"
            )
            bad_fields.append("plane_atom_ids")

        ids = list(coord) + list(stem or ()) + list(plane or ())
        if self.upper_atom_id is not None:
            ids.append(self.upper_atom_id)
        not_integer = [i for i in ids if not _is_atom_id(i)]
        if not_integer:
            problems.append(f"atom ids must be integers, got {not_integer!r}")
            bad_fields.append("atom_ids")
        non_positive = [i for i in ids if _is_atom_id(i) and i < 1]
        if non_positive:
            problems.append(f"atom ids are 1-based, got {non_positive}")
            bad_fields.append("atom_ids")

        direction = None
        if self.ads_direction is not None:
            direction = np.asarray(self.ads_direction, dtype=float).reshape(-1)
            if direction.shape != (3,) or not np.all(np.isfinite(direction)) \
                    or not np.any(direction):
                problems.append(
                    f"'ads_direction' must be a finite non-zero 3-vector, "
                    f"got {self.ads_direction!r}"
                )
                bad_fields.append("ads_direction")

        if problems:
            raise ConfigurationError(
                "Incomplete adsorption parameters:\n  " + "\n  ".join(problems),
                missing=bad_fields,
            )

        if direction is not None:
            direction = direction.copy()
            direction.setflags(write=False)

        return FinalizedParams(
            coord_atom_ids=tuple(int(i) for i in coord),
            bond_length=float(self.bond_length),
            stem_atom_ids=tuple(int(i) for i in stem) if stem is not None else None,
            plane_atom_ids=tuple(int(i) for i in plane) if plane is not None else None,
            plane_angle=float(self.plane_angle) if self.plane_angle is not None else None,
            stem_coord_angle=(
                float(self.stem_coord_angle) if self.stem_coord_angle is not None else None
            ),
            ads_direction=direction,
            upper_atom_id=int(self.upper_atom_id) if self.upper_atom_id is not None else None,
        )


@dataclass(frozen=True)
class FinalizedParams:
    """Validated, immutable adsorption parameters.  Build via AdsorptionParams.finalize()."""

    coord_atom_ids: tuple[int, ...]
    bond_length: float
    stem_atom_ids: tuple[int, int] | None = None
    plane_atom_ids: tuple[int, int, int] | None = None
    plane_angle: float | None = None
    stem_coord_angle: float | None = None
    ads_direction: np.ndarray | None = field(default=None, compare=False)
    upper_atom_id: int | None = None

    @property
    def has_stem(self) -> bool:
        return self.stem_atom_ids is not None

    @property
    def is_virtual_stem(self) -> bool:
        return self.stem_atom_ids is not None and self.stem_atom_ids[0] == self.stem_atom_ids[1]

    @property
    def single_coord(self) -> bool:
        return len(self.coord_atom_ids) == 1

    def referenced_ids(self) -> list[int]:
        ids = list(self.coord_atom_ids)
        ids.extend(self.stem_atom_ids or ())
        ids.extend(self.plane_atom_ids or ())
        if self.upper_atom_id is not None:
            ids.append(self.upper_atom_id)
        return ids

    def check_ids(self, fragment) -> None:
        """
        Raise InvalidIndexError if any referenced id is outside the fragment.

        Parameters
        ----------
        fragment:
            The LatticeModel these parameters will be applied to.
        """
        n = len(fragment)
        for atom_id in self.referenced_ids():
            if not 1 <= atom_id <= n:
                raise InvalidIndexError(atom_id, n, context=f"adsorbate {fragment.name}")
