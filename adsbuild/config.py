"""
adsbuild/config.py

Load and validate the project file and the adsorbate table into typed
configuration models.

Two YAML files drive a batch run:

  project.yaml     where the host model lives, where output goes, which host
                   atoms are adsorption sites and which site combinations
                   to build.
  ads_table.yaml   one entry per adsorbate: its coordination, stem and plane
                   atoms plus the orientation angles.

An optional third file, elements.yaml (element_table_loc), gives the CASTEP
species data written to .cell files.

Usage
-----
    from adsbuild.config import load_project, load_adsorbate_table

    project = load_project("project.yaml")
    table = load_adsorbate_table(project.adsorbate_table_loc)
    co = table.hash_table()["CO"]
    params = co.to_params(default_bond_length=project.bond_length)

All models use pydantic v2.  Adsorbate table keys keep their camelCase
spelling in YAML (coordAtomIds, stemAtomIds, ...); the Python attributes
are snake_case.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from adsbuild.assemble.params import AdsorptionParams


# ---------------------------------------------------------------------------
# Adsorbate table
# ---------------------------------------------------------------------------


class AdsorbateInfo(BaseModel):
    """
    Placement recipe for one adsorbate.

    Angles are in degrees.  stemAtomIds with two equal ids requests a
    virtual stem, which needs planeAtomIds.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    coord_atom_ids: list[int] = Field(alias="coordAtomIds")
    stem_atom_ids: tuple[int, int] | None = Field(default=None, alias="stemAtomIds")
    plane_atom_ids: tuple[int, int, int] | None = Field(default=None, alias="planeAtomIds")
    plane_angle: float | None = Field(default=None, alias="planeAngle")
    stem_coord_angle: float | None = Field(default=None, alias="stemAngleAtCoord")
    bond_length: float | None = Field(default=None, alias="bondLength")
    symmetric: bool = Field(default=False, alias="bSym")
    upper_atom_id: int | None = Field(default=None, alias="upperAtomId")
    atom_nums: int = Field(alias="atomNums")
    path_name: str = Field(alias="pathName")

    @field_validator("coord_atom_ids")
    @classmethod
    def _non_empty_coord(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("coordAtomIds must list at least one atom id.")
        return v

    @field_validator("atom_nums")
    @classmethod
    def _positive_atom_nums(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"atomNums must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def _virtual_stem_needs_plane(self) -> "AdsorbateInfo":
        stem = self.stem_atom_ids
        if stem is not None and stem[0] == stem[1] and self.plane_atom_ids is None:
            raise ValueError(
                f"Adsorbate '{self.name}': virtual stem {list(stem)} requires planeAtomIds."
            )
        return self

    @model_validator(mode="after")
    def _ids_within_atom_nums(self) -> "AdsorbateInfo":
        ids = list(self.coord_atom_ids)
        ids.extend(self.stem_atom_ids or ())
        ids.extend(self.plane_atom_ids or ())
        if self.upper_atom_id is not None:
            ids.append(self.upper_atom_id)
        bad = [i for i in ids if not 1 <= i <= self.atom_nums]
        if bad:
            raise ValueError(
                f"Adsorbate '{self.name}': atom ids {bad} outside 1..{self.atom_nums}."
            )
        return self

    def file_path(self, parent_dir: str | Path) -> Path:
        """Location of the fragment model: <parent>/<pathName>_path/<name>.msi"""
        return Path(parent_dir) / f"{self.path_name}_path" / f"{self.name}.msi"

    def to_params(
        self,
        ads_direction=None,
        default_bond_length: float | None = None,
    ) -> AdsorptionParams:
        """
        Draft AdsorptionParams for this adsorbate.

        default_bond_length is used only when the table entry has none of its own.
        """
        return AdsorptionParams(
            coord_atom_ids=list(self.coord_atom_ids),
            stem_atom_ids=self.stem_atom_ids,
            plane_atom_ids=self.plane_atom_ids,
            plane_angle=self.plane_angle,
            stem_coord_angle=self.stem_coord_angle,
            ads_direction=None if ads_direction is None else np.asarray(ads_direction, float),
            bond_length=(
                self.bond_length if self.bond_length is not None else default_bond_length
            ),
            upper_atom_id=self.upper_atom_id,
        )


class AdsorbateTable(BaseModel):
    """All adsorbates of a project plus the directory holding their models."""

    model_config = ConfigDict(populate_by_name=True)

    directory: str
    adsorbates: list[AdsorbateInfo] = Field(default_factory=list, alias="Adsorbates")

    @model_validator(mode="after")
    def _unique_names(self) -> "AdsorbateTable":
        names = [a.name for a in self.adsorbates]
        if len(names) != len(set(names)):
            raise ValueError(f"Adsorbate names must be unique, got: {names}")
        return self

    def hash_table(self) -> dict[str, AdsorbateInfo]:
        return {ads.name: ads for ads in self.adsorbates}


# ---------------------------------------------------------------------------
# Element table
# ---------------------------------------------------------------------------


class ElementInfo(BaseModel):
    """
    CASTEP species data for one element.

    pot is the pseudopotential file name, lcao the number of LCAO states
    used for Mulliken analysis and spin the initial spin written after
    each position of this element (0 for none).
    """

    model_config = ConfigDict(populate_by_name=True)

    element: str
    atomic_number: int = Field(alias="atomic_num")
    lcao: int = Field(alias="LCAO")
    mass: float
    pot: str
    spin: int = 0


class ElementTable(BaseModel):
    """Species data keyed by element symbol in the YAML list Element_info."""

    model_config = ConfigDict(populate_by_name=True)

    elements: list[ElementInfo] = Field(default_factory=list, alias="Element_info")

    def hash_table(self) -> dict[str, ElementInfo]:
        return {elm.element: elm for elm in self.elements}


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


class CoordSite(BaseModel):
    """A named adsorption site on the host (1-based host atom id)."""

    name: str
    atom_id: int

    @field_validator("atom_id")
    @classmethod
    def _positive_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"atom_id must be >= 1, got {v}.")
        return v


class CoordCase(BaseModel):
    """
    A named group of site combinations for two-site adsorbates.

    Each case is (site_1, site_2) with site_2 optional.
    """

    name: str
    cases: list[tuple[int, int | None]]

    def get_cases(self, reverse: bool = False) -> list[tuple[int, int | None]]:
        """The cases, or with site order swapped when reverse is True."""
        if not reverse:
            return list(self.cases)
        reversed_cases = []
        for s1, s2 in self.cases:
            if s2 is None:
                raise ValueError(
                    f"Coordination case '{self.name}': cannot reverse single-site case ({s1},)."
                )
            reversed_cases.append((s2, s1))
        return reversed_cases


class ProjectConfig(BaseModel):
    """
    Root configuration for a batch build.

    Relative paths are resolved against the directory of the project file
    by load_project().

    Example
    -------
    .. code-block:: yaml

        base_model_loc: SAC_GDY_Ag.msi
        adsorbate_table_loc: ads_table.yaml
        export_loc: built
        bond_length: 1.4
        direction_sites: [41, 42]
        coord_sites:
          - {name: c1, atom_id: 41}
          - {name: c2, atom_id: 42}
        coord_cases:
          - name: neighbours
            cases: [[41, 42]]
    """

    base_model_loc: str
    adsorbate_table_loc: str
    export_loc: str
    coord_sites: list[CoordSite]
    coord_cases: list[CoordCase] = []
    bond_length: float = 1.4
    direction_sites: tuple[int, int] | None = None
    write_cell: bool = False
    element_table_loc: str | None = None
    nworkers: int = 1

    @field_validator("bond_length")
    @classmethod
    def _positive_bond(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"bond_length must be > 0 Å, got {v}.")
        return v

    @field_validator("nworkers")
    @classmethod
    def _positive_nworkers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"nworkers must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def _at_least_one_site(self) -> "ProjectConfig":
        if len(self.coord_sites) == 0:
            raise ValueError("At least one coord_site must be defined.")
        return self

    @model_validator(mode="after")
    def _unique_site_ids(self) -> "ProjectConfig":
        ids = [s.atom_id for s in self.coord_sites]
        if len(ids) != len(set(ids)):
            raise ValueError(f"coord_site atom ids must be unique, got: {ids}")
        return self

    def hash_coord_site(self) -> dict[int, str]:
        """Host atom id -> site name."""
        return {site.atom_id: site.name for site in self.coord_sites}

    def resolve_paths(self, root: str | Path) -> "ProjectConfig":
        """Copy with relative location fields made absolute under root."""
        root = Path(root)

        def _abs(loc: str) -> str:
            p = Path(loc)
            return str(p if p.is_absolute() else root / p)

        return self.model_copy(update={
            "base_model_loc": _abs(self.base_model_loc),
            "adsorbate_table_loc": _abs(self.adsorbate_table_loc),
            "export_loc": _abs(self.export_loc),
            "element_table_loc": (
                None if self.element_table_loc is None else _abs(self.element_table_loc)
            ),
        })


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


def _load_yaml_mapping(path: Path, what: str) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"{what} not found: {path}")

    if path.stat().st_size == 0:
        raise ValueError(f"{what} is empty: {path}")

    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if raw is None:
        raise ValueError(f"{path} contains only comments or whitespace; no YAML keys found.")
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a YAML mapping at the top level of {path}, "
            f"got {type(raw).__name__}."
        )
    return raw


def load_project(path: str | Path) -> ProjectConfig:
    """
    Load and validate a project file.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    pydantic.ValidationError
        If the YAML content fails validation.
    yaml.YAMLError
        If the file is not valid YAML.
    """
    path = Path(path)
    raw = _load_yaml_mapping(path, "Project file")
    return ProjectConfig.model_validate(raw).resolve_paths(path.parent)


def load_adsorbate_table(path: str | Path) -> AdsorbateTable:
    """
    Load and validate an adsorbate table.

    The table's ``directory`` is resolved against the table file location.
    """
    path = Path(path)
    raw = _load_yaml_mapping(path, "Adsorbate table")
    table = AdsorbateTable.model_validate(raw)
    directory = Path(table.directory)
    if not directory.is_absolute():
        table = table.model_copy(update={"directory": str(path.parent / directory)})
    return table


def load_element_table(path: str | Path) -> ElementTable:
    """Load and validate a CASTEP element table (Element_info list)."""
    path = Path(path)
    raw = _load_yaml_mapping(path, "Element table")
    return ElementTable.model_validate(raw)


PROJECT_TEMPLATE = """\
# project.yaml: adsbuild project file
# Relative paths are resolved against this file's directory.

base_model_loc: host.msi       # host lattice (.msi or any ASE-readable file)
adsorbate_table_loc: ads_table.yaml
export_loc: built              # output root; one folder per adsorbate
bond_length: 1.4               # default bond length (Å) when the table has none
direction_sites: [41, 42]      # yaw direction for single-site placements
write_cell: false              # also write CASTEP .cell files
# element_table_loc: elements.yaml  # species mass, potential, LCAO and spin for .cell
nworkers: 1                    # placements run in parallel threads

coord_sites:                   # named host atoms
  - {name: c1, atom_id: 41}
  - {name: c2, atom_id: 42}

coord_cases:                   # site pairs for two-site adsorbates
  - name: neighbours
    cases: [[41, 42]]
"""


def generate_example_project(path: str | Path = "project.yaml.example") -> Path:
    """Write a commented example project file.  Returns the path."""
    path = Path(path)
    path.write_text(PROJECT_TEMPLATE)
    return path
