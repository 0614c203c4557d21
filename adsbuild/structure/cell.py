"""
adsbuild/structure/cell.py

Export a merged lattice model as a CASTEP ``.cell`` file.

The model is copied, sorted by atomic number (CASTEP lists species in
blocks) and rotated so that lattice vector a lies on +x.  ASE (format
"castep-cell") writes LATTICE_CART and POSITIONS_FRAC; the remaining
blocks are appended:

  KPOINTS_LIST          single Gamma point
  FIX_ALL_CELL / FIX_COM and an empty IONIC_CONSTRAINTS block
  EXTERNAL_EFIELD / EXTERNAL_PRESSURE, all zero
  SPECIES_MASS          from the element table, else ase.data masses
  SPECIES_POT           only with an element table
  SPECIES_LCAO_STATES   only with an element table

An element table entry with spin > 0 also puts SPIN=<spin> after every
position of that element.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Mapping

from ase.data import atomic_masses, atomic_numbers
from ase.io import write

from adsbuild.errors import ConfigurationError
from adsbuild.structure.lattice import LatticeModel

if TYPE_CHECKING:
    from adsbuild.config import ElementInfo


def _block(name: str, lines: list[str]) -> str:
    body = "".join(f"{line}\n" for line in lines)
    return f"%BLOCK {name}\n{body}%ENDBLOCK {name}\n\n"


def _missing_species(model: LatticeModel, elements: Mapping[str, "ElementInfo"]) -> list[str]:
    return [elm for elm in model.element_list() if elm not in elements]


def extra_blocks(model: LatticeModel, elements: Mapping[str, "ElementInfo"] | None = None) -> str:
    """Text of every block after POSITIONS_FRAC for a sorted, oriented model."""
    species = model.element_list()
    text = _block("KPOINTS_LIST", ["   0.0000000000   0.0000000000   0.0000000000   1.0000000000"])
    text += "FIX_ALL_CELL : true\n\nFIX_COM : false\n\n"
    text += _block("IONIC_CONSTRAINTS", [])
    text += _block("EXTERNAL_EFIELD", ["    0.0000000000     0.0000000000     0.0000000000"])
    text += _block("EXTERNAL_PRESSURE", [
        "    0.0000000000    0.0000000000    0.0000000000",
        "                    0.0000000000    0.0000000000",
        "                                    0.0000000000",
    ])

    if elements is None:
        masses = [atomic_masses[atomic_numbers[elm]] for elm in species]
    else:
        masses = [elements[elm].mass for elm in species]
    text += _block("SPECIES_MASS", [f"{elm:>8}{m:17.10f}" for elm, m in zip(species, masses)])
    if elements is not None:
        text += _block("SPECIES_POT", [f"{elm:>8}  {elements[elm].pot}" for elm in species])
        text += _block("SPECIES_LCAO_STATES",
                       [f"{elm:>8}{elements[elm].lcao:9d}" for elm in species])
    return text


def write_cell(
    model: LatticeModel,
    path: str | Path,
    elements: Mapping[str, "ElementInfo"] | None = None,
) -> Path:
    """
    Write model as a .cell file with fractional positions.

    Parameters
    ----------
    model:
        Periodic model to export (not modified).
    path:
        Output file; parent directories are created.
    elements:
        Element symbol -> ElementInfo, e.g. ElementTable.hash_table().
        Without it SPECIES_POT, SPECIES_LCAO_STATES and SPIN are left out.

    Raises
    ------
    ConfigurationError
        If the model has no lattice vectors, or the element table lacks
        one of the model's elements.
    """
    if not model.has_lattice_vectors:
        raise ConfigurationError(
            f"Model '{model.name}' has no lattice vectors; a .cell file needs a "
            "periodic cell.",
            missing=["lattice_vectors"],
        )
    if elements is not None:
        missing = _missing_species(model, elements)
        if missing:
            raise ConfigurationError(
                f"Element table has no entry for {missing}; cannot write {path}.",
                missing=missing,
            )

    ordered = model.sorted_by_element()
    ordered.rotate_to_standard_orientation()

    kwargs = {}
    if elements is not None and any(elements[s].spin > 0 for s in ordered.element_list()):
        ordered.atoms.set_initial_magnetic_moments(
            [float(elements[s].spin) for s in ordered.symbols]
        )
        kwargs["magnetic_moments"] = "initial"

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    write(str(path), ordered.atoms, format="castep-cell", positions_frac=True, **kwargs)
    with path.open("a", encoding="utf-8") as fh:
        fh.write("\n")
        fh.write(extra_blocks(ordered, elements))
    return path
