"""
adsbuild/structure/lattice.py

Atom collections with 1-based atom ids: the host lattice and the adsorbate
fragment are both LatticeModel instances.

A LatticeModel wraps an ASE Atoms object.  ASE supplies the storage
(symbols, atomic numbers, positions, cell) and LatticeModel adds the
id-based lookups that adsorbate definitions are written against.  Ids are
stored in the per-atom array "atom_ids" so that they travel with the atoms
through slicing, copying and concatenation.

Id invariant
------------
Whenever a model enters the placement pipeline its ids must equal
``index + 1``.  Models built through this module always satisfy it;
validate_ids() checks models that were assembled by hand.

Usage
-----
    from adsbuild.structure.lattice import LatticeModel

    host = LatticeModel.from_atoms(fcc111("Pt", size=(2, 2, 3), vacuum=10.0),
                                   name="Pt111")
    v = host.get_vector_ab(1, 2)          # position(2) - position(1)
    site = host.centroid_of_sites([9, 10])
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np
from ase import Atoms

from adsbuild.errors import InvalidIndexError
from adsbuild.geometry import X_AXIS, rotation_between

_ID_ARRAY = "atom_ids"


@dataclass(frozen=True)
class Atom:
    """
    Read-only view of one atom.

    Attributes
    ----------
    atom_id:
        1-based id, unique within its collection.
    symbol:
        Element symbol, e.g. "C".
    number:
        Atomic number.
    position:
        Cartesian coordinates (Å).  A copy; editing it does not move the atom.
    """

    atom_id: int
    symbol: str
    number: int
    position: np.ndarray


def centroid_of_points(points: Sequence[np.ndarray] | np.ndarray) -> np.ndarray:
    """Arithmetic mean of a non-empty set of 3D points."""
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(pts) == 0:
        raise ValueError("Cannot take the centroid of an empty set of points.")
    return pts.mean(axis=0)


class LatticeModel:
    """
    Ordered atom collection with 1-based ids and optional lattice vectors.

    Parameters
    ----------
    atoms:
        The ASE Atoms object to wrap.  It is used as-is (not copied); use
        from_atoms() to wrap a copy.
    name:
        Model name used to build output file names.  Defaults to the
        chemical formula.
    """

    def __init__(self, atoms: Atoms, name: str | None = None) -> None:
        if _ID_ARRAY not in atoms.arrays:
            atoms.new_array(_ID_ARRAY, np.arange(1, len(atoms) + 1, dtype=int))
        self._atoms = atoms
        self.name = name if name else atoms.get_chemical_formula()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_atoms(cls, atoms: Atoms, name: str | None = None) -> "LatticeModel":
        """Wrap a copy of an ASE Atoms object, numbering atoms 1..N."""
        atoms = atoms.copy()
        if _ID_ARRAY in atoms.arrays:
            del atoms.arrays[_ID_ARRAY]
        return cls(atoms, name=name)

    @classmethod
    def from_arrays(
        cls,
        symbols: Sequence[str],
        positions,
        lattice_vectors=None,
        name: str | None = None,
        atom_ids: Sequence[int] | None = None,
    ) -> "LatticeModel":
        """
        Build a model from element symbols and Cartesian positions.

        lattice_vectors, when given, is a 3x3 matrix whose rows are a, b, c;
        the model is then periodic in all three directions.
        """
        positions = np.asarray(positions, dtype=float).reshape(-1, 3)
        if lattice_vectors is not None:
            atoms = Atoms(symbols=list(symbols), positions=positions,
                          cell=np.asarray(lattice_vectors, dtype=float), pbc=True)
        else:
            atoms = Atoms(symbols=list(symbols), positions=positions)
        if atom_ids is not None:
            atoms.new_array(_ID_ARRAY, np.asarray(atom_ids, dtype=int))
        return cls(atoms, name=name)

    def copy(self) -> "LatticeModel":
        return LatticeModel(self._atoms.copy(), name=self.name)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def atoms(self) -> Atoms:
        """The wrapped ASE Atoms object (shared, not a copy)."""
        return self._atoms

    def __len__(self) -> int:
        return len(self._atoms)

    def __iter__(self) -> Iterator[Atom]:
        for atom_id in self.atom_ids:
            yield self.get_atom_by_id(int(atom_id))

    def __repr__(self) -> str:
        return (
            f"LatticeModel(name={self.name!r}, n_atoms={len(self)}, "
            f"periodic={self.has_lattice_vectors})"
        )

    @property
    def atom_ids(self) -> np.ndarray:
        return self._atoms.arrays[_ID_ARRAY].copy()

    @property
    def symbols(self) -> list[str]:
        return self._atoms.get_chemical_symbols()

    @property
    def numbers(self) -> np.ndarray:
        return self._atoms.numbers.copy()

    @property
    def positions(self) -> np.ndarray:
        """Copy of the (N, 3) Cartesian positions."""
        return self._atoms.positions.copy()

    @property
    def has_lattice_vectors(self) -> bool:
        return self._atoms.cell.rank == 3

    @property
    def lattice_vectors(self) -> np.ndarray | None:
        """3x3 matrix with rows a, b, c, or None for a non-periodic model."""
        if not self.has_lattice_vectors:
            return None
        return self._atoms.cell.array.copy()

    def _index(self, atom_id: int) -> int:
        n = len(self._atoms)
        if isinstance(atom_id, (bool, np.bool_)) or not isinstance(atom_id, (int, np.integer)):
            raise InvalidIndexError(atom_id, n, context=self.name)
        if not 1 <= atom_id <= n:
            raise InvalidIndexError(int(atom_id), n, context=self.name)
        return int(atom_id) - 1

    def get_atom_by_id(self, atom_id: int) -> Atom:
        """Return the atom with the given 1-based id."""
        i = self._index(atom_id)
        return Atom(
            atom_id=int(self._atoms.arrays[_ID_ARRAY][i]),
            symbol=self._atoms[i].symbol,
            number=int(self._atoms.numbers[i]),
            position=self._atoms.positions[i].copy(),
        )

    def position(self, atom_id: int) -> np.ndarray:
        """Cartesian position of the atom with the given id (a copy)."""
        return self._atoms.positions[self._index(atom_id)].copy()

    def get_vector_ab(self, a_id: int, b_id: int) -> np.ndarray:
        """Vector pointing from atom a to atom b."""
        return self.position(b_id) - self.position(a_id)

    def centroid_of_sites(self, site_ids: Sequence[int]) -> np.ndarray:
        """Centroid of the given atoms, e.g. the target location on a host."""
        if len(site_ids) == 0:
            raise ValueError("At least one site id is required.")
        return centroid_of_points([self.position(i) for i in site_ids])

    def element_list(self) -> list[str]:
        """Unique element symbols ordered by atomic number."""
        unique = {int(z): s for z, s in zip(self._atoms.numbers, self.symbols)}
        return [unique[z] for z in sorted(unique)]

    def validate_ids(self) -> None:
        """
        Check that the stored ids equal index + 1.

        Raises
        ------
        InvalidIndexError
            For the first atom whose id breaks the invariant.
        """
        ids = self._atoms.arrays[_ID_ARRAY]
        expected = np.arange(1, len(ids) + 1)
        mismatch = np.nonzero(ids != expected)[0]
        if len(mismatch):
            bad = int(ids[mismatch[0]])
            raise InvalidIndexError(bad, len(ids), context=f"{self.name} (id order)")

    # ------------------------------------------------------------------
    # Transformations (in place)
    # ------------------------------------------------------------------

    def rotate(self, matrix: np.ndarray) -> None:
        """Rotate all atoms about the origin by a 3x3 rotation matrix."""
        self._atoms.positions = self._atoms.positions @ np.asarray(matrix).T

    def translate(self, vector) -> None:
        self._atoms.positions = self._atoms.positions + np.asarray(vector, dtype=float)

    def renumber(self, offset: int = 0) -> None:
        """Reset ids to offset+1 .. offset+N in current order."""
        self._atoms.arrays[_ID_ARRAY] = np.arange(
            offset + 1, offset + len(self._atoms) + 1, dtype=int
        )

    def rotate_to_standard_orientation(self) -> None:
        """
        Rotate atoms and cell together so that lattice vector a lies on +x.

        No-op for non-periodic models or when a is already along x.
        """
        if not self.has_lattice_vectors:
            return
        cell = self._atoms.cell.array
        R = rotation_between(cell[0], X_AXIS)
        if np.allclose(R, np.eye(3)):
            return
        self._atoms.set_cell(cell @ R.T, scale_atoms=False)
        self.rotate(R)

    # ------------------------------------------------------------------
    # Derived models
    # ------------------------------------------------------------------

    def sorted_by_element(self) -> "LatticeModel":
        """
        Copy with atoms reordered by atomic number (stable) and renumbered.

        CASTEP cell files list species in blocks, so exports use this order.
        """
        order = np.argsort(self._atoms.numbers, kind="stable")
        sorted_model = LatticeModel(self._atoms[order], name=self.name)
        sorted_model.renumber()
        return sorted_model
