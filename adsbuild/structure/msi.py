"""
adsbuild/structure/msi.py

Read and write Cerius2 / Materials Studio ``.msi`` DataModel files.

Only the records the placement workflow needs are handled:

    # MSI CERIUS2 DataModel File Version 4 0
    (1 Model
      (A I CRY/DISPLAY (192 256))
      (A I PeriodicType 100)
      (A C SpaceGroup "1 1")
      (A D A3 (ax ay az))
      (A D B3 (bx by bz))
      (A D C3 (cx cy cz))
      (A D CRY/TOLERANCE 0.05)
      (2 Atom
        (A C ACL "6 C")
        (A C Label "C")
        (A D XYZ (x y z))
        (A I Id 1)
      )
      ...
    )

The lattice vector records are optional (molecular fragments usually have
none).  Both ``\\n`` and ``\\r\\n`` line endings are accepted; output always
uses ``\\n``.
"""

from __future__ import annotations

import re
from pathlib import Path

import numpy as np
from ase.data import atomic_numbers

from adsbuild.structure.lattice import LatticeModel

HEADER = "# MSI CERIUS2 DataModel File Version 4 0\n"

_MODEL_START = re.compile(r"\(1 Model\s*\n")
_VECTOR = {
    key: re.compile(rf"\(A D {key} \(([^)]*)\)\)")
    for key in ("A3", "B3", "C3")
}
_ATOM_BLOCK = re.compile(
    r"\(\s*\d+\s+Atom\s*\n(?P<body>.*?)\(A I Id (?P<id>\d+)\)\s*\n?\s*\)",
    re.DOTALL,
)
_ACL = re.compile(r'\(A C ACL "(?P<number>\d+)\s+(?P<symbol>[A-Za-z]+)"\)')
_XYZ = re.compile(r"\(A D XYZ \((?P<xyz>[^)]*)\)\)")


class MsiFormatError(ValueError):
    """The text is not a .msi model this reader understands."""


def _parse_triplet(text: str, what: str) -> list[float]:
    fields = text.split()
    if len(fields) != 3:
        raise MsiFormatError(f"Expected three numbers for {what}, got '{text}'.")
    try:
        return [float(f) for f in fields]
    except ValueError as exc:
        raise MsiFormatError(f"Invalid number in {what}: '{text}'.") from exc


def parse_msi(text: str, name: str | None = None) -> LatticeModel:
    """
    Parse .msi text into a LatticeModel.

    Raises
    ------
    MsiFormatError
        Missing model header, no atoms, unknown elements, or atomic numbers
        that do not match their symbols.
    """
    text = text.replace("\r\n", "\n")
    start = _MODEL_START.search(text)
    if start is None:
        raise MsiFormatError("No '(1 Model' record found; not an .msi model file.")
    body = text[start.end():]

    vectors = [_VECTOR[key].search(body) for key in ("A3", "B3", "C3")]
    if all(vectors):
        lattice_vectors = np.array(
            [_parse_triplet(m.group(1), f"lattice vector {key}")
             for m, key in zip(vectors, ("A3", "B3", "C3"))]
        )
    elif any(vectors):
        raise MsiFormatError("Incomplete lattice vectors: need all of A3, B3 and C3.")
    else:
        lattice_vectors = None

    symbols: list[str] = []
    positions: list[list[float]] = []
    atom_ids: list[int] = []
    for block in _ATOM_BLOCK.finditer(body):
        atom_id = int(block.group("id"))
        acl = _ACL.search(block.group("body"))
        xyz = _XYZ.search(block.group("body"))
        if acl is None or xyz is None:
            raise MsiFormatError(f"Atom {atom_id} lacks an ACL or XYZ record.")
        symbol = acl.group("symbol")
        number = int(acl.group("number"))
        if atomic_numbers.get(symbol) != number:
            raise MsiFormatError(
                f"Atom {atom_id}: element '{symbol}' does not have atomic number {number}."
            )
        symbols.append(symbol)
        positions.append(_parse_triplet(xyz.group("xyz"), f"XYZ of atom {atom_id}"))
        atom_ids.append(atom_id)

    if not symbols:
        raise MsiFormatError("The model contains no atoms.")

    return LatticeModel.from_arrays(
        symbols,
        positions,
        lattice_vectors=lattice_vectors,
        name=name,
        atom_ids=atom_ids,
    )


def read_msi(path: str | Path) -> LatticeModel:
    """Read an .msi file; the model is named after the file stem."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"MSI file not found: {path}")
    return parse_msi(path.read_text(encoding="utf-8"), name=path.stem)


def _format_atom(atom_id: int, number: int, symbol: str, xyz: np.ndarray) -> str:
    return (
        f"  ({atom_id + 1} Atom\n"
        f"    (A C ACL \"{number} {symbol}\")\n"
        f"    (A C Label \"{symbol}\")\n"
        f"    (A D XYZ ({xyz[0]:.12f} {xyz[1]:.12f} {xyz[2]:.12f}))\n"
        f"    (A I Id {atom_id})\n"
        f"  )\n"
    )


def format_msi(model: LatticeModel) -> str:
    """Render a LatticeModel as .msi text."""
    lines = [HEADER, "(1 Model\n"]
    vectors = model.lattice_vectors
    if vectors is not None:
        lines.append("  (A I CRY/DISPLAY (192 256))\n")
        lines.append("  (A I PeriodicType 100)\n")
        lines.append("  (A C SpaceGroup \"1 1\")\n")
        for key, v in zip(("A3", "B3", "C3"), vectors):
            lines.append(f"  (A D {key} ({v[0]:.12f} {v[1]:.12f} {v[2]:.12f}))\n")
        lines.append("  (A D CRY/TOLERANCE 0.05)\n")
    positions = model.positions
    for atom_id, number, symbol, xyz in zip(
        model.atom_ids, model.numbers, model.symbols, positions
    ):
        lines.append(_format_atom(int(atom_id), int(number), symbol, xyz))
    lines.append(")")
    return "".join(lines)


def write_msi(model: LatticeModel, path: str | Path) -> Path:
    """Write model to path (parent directories are created).  Returns the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_msi(model), encoding="utf-8")
    return path
