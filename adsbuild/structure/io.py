"""
adsbuild/structure/io.py

Format-agnostic loading and saving of lattice models.

``.msi`` files go through adsbuild.structure.msi; every other extension is
handed to ASE (XYZ, POSCAR, CIF, ...), so fragments can be prepared with
any ASE-readable tool.
"""

from __future__ import annotations

from pathlib import Path

from ase.io import read, write

from adsbuild.structure.cell import write_cell
from adsbuild.structure.lattice import LatticeModel
from adsbuild.structure.msi import read_msi, write_msi


def read_model(path: str | Path, name: str | None = None) -> LatticeModel:
    """Load a host or fragment model from file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Structure file not found: {path}")
    if path.suffix.lower() == ".msi":
        model = read_msi(path)
        if name:
            model.name = name
        return model
    return LatticeModel.from_atoms(read(str(path)), name=name or path.stem)


def write_model(model: LatticeModel, path: str | Path) -> Path:
    """Save a model; the format follows the file extension."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".msi":
        return write_msi(model, path)
    if suffix == ".cell":
        return write_cell(model, path)
    path.parent.mkdir(parents=True, exist_ok=True)
    write(str(path), model.atoms)
    return path
