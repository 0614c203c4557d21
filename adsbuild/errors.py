"""
adsbuild/errors.py

Exception types raised by the placement pipeline.

Every failure that a batch caller may want to skip derives from
AdsorptionError, so one ``except AdsorptionError`` is enough to drop a
single placement without aborting a whole run.  The built-in base classes
(ValueError, IndexError, ...) are kept so callers that only know the
standard exceptions still catch the right thing.

Taxonomy
--------
    ConfigurationError        params incomplete or inconsistent before the run
    InvalidIndexError         an atom id outside 1..len(collection)
    DegenerateGeometryError   reference geometry that cannot define a frame
      CollinearPointsError    the three plane atoms lie on one line
    NonFiniteCoordinateError  NaN/inf appeared while reorienting the fragment
    StageOrderError           builder methods called out of pipeline order
"""

from __future__ import annotations

import numpy as np


class AdsorptionError(Exception):
    """Base class for all placement failures."""


class ConfigurationError(AdsorptionError, ValueError):
    """
    Adsorption parameters are missing or invalid.

    Attributes
    ----------
    missing:
        Names of the offending fields, in the order they were checked.
    """

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class InvalidIndexError(AdsorptionError, IndexError):
    """An atom id does not exist in the collection it was looked up in."""

    def __init__(self, atom_id: int, size: int, context: str = "") -> None:
        where = f" in {context}" if context else ""
        super().__init__(
            f"Invalid atom id {atom_id}{where}: valid ids are 1..{size}."
        )
        self.atom_id = atom_id
        self.size = size


class DegenerateGeometryError(AdsorptionError, ValueError):
    """The reference atoms do not define a usable direction or plane."""


class CollinearPointsError(DegenerateGeometryError):
    """The three plane atoms are on one line, so the plane has no normal."""

    def __init__(self, atom_ids: tuple[int, ...]) -> None:
        super().__init__(
            f"The given points are on one line: plane atoms {list(atom_ids)} "
            "are collinear."
        )
        self.atom_ids = tuple(atom_ids)


class NonFiniteCoordinateError(AdsorptionError, ArithmeticError):
    """
    A reorientation stage produced NaN or infinite coordinates.

    The offending fragment positions are attached for diagnosis.
    """

    def __init__(self, stage: str, positions: np.ndarray) -> None:
        positions = np.asarray(positions, dtype=float)
        bad_rows = np.where(~np.isfinite(positions).all(axis=1))[0]
        bad_ids = (bad_rows + 1).tolist()
        super().__init__(
            f"Non-finite coordinates after {stage}: atom ids {bad_ids}.\n"
            f"Fragment positions:\n{positions}"
        )
        self.stage = stage
        self.positions = positions.copy()
        self.atom_ids = bad_ids


class StageOrderError(AdsorptionError, RuntimeError):
    """A builder step was requested before its prerequisite stage ran."""

    def __init__(self, action: str, expected, actual) -> None:
        super().__init__(
            f"Cannot {action}: builder is in stage '{actual.value}', "
            f"expected '{expected.value}'."
        )
        self.action = action
        self.expected = expected
        self.actual = actual
