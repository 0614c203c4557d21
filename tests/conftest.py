"""
tests/conftest.py

Shared pytest fixtures for the adsbuild test suite.

All fixtures are pure geometry; nothing here touches the network or an
external code.  Fragments are built from explicit coordinates so that the
expected orientation after each pipeline step can be worked out by hand.

Fixture overview
----------------
Hosts
    pt111_host          Pt(111) 2x2x3 slab with vacuum, periodic cell
    top_site_id         Id of a top-layer Pt atom on pt111_host

Fragments (ids in brackets)
    co_fragment         C[1] O[2], C-O along +z
    coh_fragment        C[1] O[2] H[3], flat in the xy plane
    ch2_fragment        C[1] H[2] H[3], C below the H-H stem
    ch3_fragment        C[1] H[2..4], pyramidal, H plane below C
    occo_fragment       C[1] C[2] O[3] O[4], bidentate through both C
    linear_fragment     C[1] C[2] C[3] on one line

Project files
    project_dir         tmp directory with host.msi, ads_table.yaml,
                        fragment .msi files and project.yaml
    element_table_path  elements.yaml with CASTEP species data for H C O Pt
"""

from __future__ import annotations

import textwrap

import pytest

try:
    from ase.build import fcc111
except ImportError as exc:
    pytest.exit(f"ASE is required to run the test suite: {exc}", returncode=1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _model(symbols, positions, name):
    from adsbuild.structure.lattice import LatticeModel
    return LatticeModel.from_arrays(symbols, positions, name=name)


def _make_pt111():
    from adsbuild.structure.lattice import LatticeModel
    slab = fcc111("Pt", size=(2, 2, 3), vacuum=10.0)
    return LatticeModel.from_atoms(slab, name="Pt111")


# ---------------------------------------------------------------------------
# Hosts
# ---------------------------------------------------------------------------

@pytest.fixture
def pt111_host():
    """A 2x2 Pt(111) slab, 3 layers; ids 9-12 are the top layer."""
    return _make_pt111()


@pytest.fixture
def top_site_id() -> int:
    return 9


# ---------------------------------------------------------------------------
# Fragments
# ---------------------------------------------------------------------------

@pytest.fixture
def co_fragment():
    return _model(["C", "O"], [[0.0, 0.0, 0.0], [0.0, 0.0, 1.13]], "CO")


@pytest.fixture
def coh_fragment():
    return _model(
        ["C", "O", "H"],
        [[0.0, 0.0, 0.0], [1.35, 0.0, 0.0], [1.7, 0.9, 0.0]],
        "COH",
    )


@pytest.fixture
def ch2_fragment():
    return _model(
        ["C", "H", "H"],
        [[0.0, 0.0, 0.0], [-0.93, 0.0, 0.6], [0.93, 0.0, 0.6]],
        "CH2",
    )


@pytest.fixture
def ch3_fragment():
    return _model(
        ["C", "H", "H", "H"],
        [
            [0.0, 0.0, 0.0],
            [1.03, 0.0, -0.36],
            [-0.515, 0.892, -0.36],
            [-0.515, -0.892, -0.36],
        ],
        "CH3",
    )


@pytest.fixture
def occo_fragment():
    return _model(
        ["C", "C", "O", "O"],
        [[0.0, 0.0, 0.0], [1.4, 0.0, 0.0], [-0.6, 0.0, 1.0], [2.0, 0.0, 1.0]],
        "OCCO",
    )


@pytest.fixture
def linear_fragment():
    return _model(
        ["C", "C", "C"],
        [[0.0, 0.0, 0.0], [1.5, 0.0, 0.0], [3.0, 0.0, 0.0]],
        "C3",
    )


# ---------------------------------------------------------------------------
# Project directory
# ---------------------------------------------------------------------------

@pytest.fixture
def project_dir(tmp_path, co_fragment, occo_fragment, linear_fragment):
    """
    A complete project on disk:

        host.msi, project.yaml, ads_table.yaml,
        adsorbates/C1_path/CO.msi, adsorbates/C2_path/{OCCO,C3}.msi
    """
    from adsbuild.structure.msi import write_msi

    write_msi(_make_pt111(), tmp_path / "host.msi")
    ads_dir = tmp_path / "adsorbates"
    write_msi(co_fragment, ads_dir / "C1_path" / "CO.msi")
    write_msi(occo_fragment, ads_dir / "C2_path" / "OCCO.msi")
    write_msi(linear_fragment, ads_dir / "C2_path" / "C3.msi")

    (tmp_path / "ads_table.yaml").write_text(textwrap.dedent("""\
        directory: adsorbates
        Adsorbates:
          - name: CO
            coordAtomIds: [1]
            stemAtomIds: [1, 2]
            stemAngleAtCoord: 90.0
            bSym: false
            upperAtomId: 2
            atomNums: 2
            pathName: C1
          - name: OCCO
            coordAtomIds: [1, 2]
            stemAtomIds: [1, 2]
            planeAtomIds: [1, 2, 3]
            planeAngle: 90.0
            stemAngleAtCoord: 0.0
            bSym: false
            upperAtomId: 3
            atomNums: 4
            pathName: C2
          - name: C3
            coordAtomIds: [1]
            stemAtomIds: [1, 3]
            planeAtomIds: [1, 2, 3]
            planeAngle: 90.0
            stemAngleAtCoord: 0.0
            bSym: false
            upperAtomId: 3
            atomNums: 3
            pathName: C2
        """))

    (tmp_path / "project.yaml").write_text(textwrap.dedent("""\
        base_model_loc: host.msi
        adsorbate_table_loc: ads_table.yaml
        export_loc: built
        bond_length: 1.4
        direction_sites: [9, 10]
        coord_sites:
          - {name: t1, atom_id: 9}
          - {name: t2, atom_id: 10}
        coord_cases:
          - name: neighbours
            cases: [[9, 10]]
        """))
    return tmp_path


ELEMENT_TABLE = textwrap.dedent("""\
    Element_info:
      - {element: H, atomic_num: 1, LCAO: 1, mass: 1.0079400539, pot: H_00.usp, spin: 0}
      - {element: C, atomic_num: 6, LCAO: 2, mass: 12.0107002258, pot: C_00.usp, spin: 0}
      - {element: O, atomic_num: 8, LCAO: 2, mass: 15.9989995956, pot: O_00.usp, spin: 0}
      - {element: Pt, atomic_num: 78, LCAO: 3, mass: 195.0780029297, pot: Pt_00PBE.usp, spin: 0}
    """)


@pytest.fixture
def element_table_path(tmp_path):
    """elements.yaml with CASTEP species data for H, C, O and Pt."""
    path = tmp_path / "elements.yaml"
    path.write_text(ELEMENT_TABLE)
    return path
