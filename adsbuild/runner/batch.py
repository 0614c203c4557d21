"""
adsbuild/runner/batch.py

Build every adsorbate of a project on every configured site combination.

For each adsorbate in the table:
  - one coordination atom   → one placement per coord_site
  - several coordination atoms → one placement per coord_case pair, plus
    the reversed pair unless the adsorbate is symmetric (bSym)

Each placement is independent: the host and fragment are only read, and
every job works on its own copies, so jobs can run on a thread pool.
A placement that fails with an AdsorptionError (bad ids, collinear plane,
...) is logged and recorded as skipped; the rest of the batch continues.

Output layout
-------------
    <export_loc>/<pathName>_path/<ads>/<host>_<ads>_<site1>[_<site2>].msi
                                                               [.cell]

Usage
-----
    from adsbuild.config import load_project, load_adsorbate_table
    from adsbuild.runner.batch import build_all

    project = load_project("project.yaml")
    table = load_adsorbate_table(project.adsorbate_table_loc)
    report = build_all(project, table)
    print(report.summary())
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from adsbuild.assemble.builder import place_fragment
from adsbuild.config import (
    AdsorbateInfo,
    AdsorbateTable,
    ElementInfo,
    ProjectConfig,
    load_element_table,
)
from adsbuild.errors import AdsorptionError, ConfigurationError
from adsbuild.structure.cell import write_cell
from adsbuild.structure.io import read_model
from adsbuild.structure.lattice import LatticeModel
from adsbuild.structure.msi import MsiFormatError, write_msi

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementJob:
    """One adsorbate on one site combination."""

    adsorbate: AdsorbateInfo
    sites: tuple[int, ...]

    @property
    def label(self) -> str:
        return f"{self.adsorbate.name}@{'-'.join(str(s) for s in self.sites)}"


@dataclass
class BatchReport:
    """
    Outcome of a batch run.

    built holds every written file, skipped holds (label, reason) pairs and
    records one row per adsorbate or placement job for tabular reports.
    """

    built: list[Path] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    records: list[dict] = field(default_factory=list)

    def summary(self) -> str:
        return f"{len(self.built)} built, {len(self.skipped)} skipped"

    def add_built(self, job: PlacementJob, paths: list[Path]) -> None:
        self.built.extend(paths)
        self.records.append({
            "label": job.label,
            "adsorbate": job.adsorbate.name,
            "sites": "-".join(str(s) for s in job.sites),
            "status": "built",
            "path": str(paths[0]),
            "reason": "",
        })

    def add_skipped(self, label: str, reason: str, job: PlacementJob | None = None) -> None:
        self.skipped.append((label, reason))
        self.records.append({
            "label": label,
            "adsorbate": job.adsorbate.name if job else label,
            "sites": "-".join(str(s) for s in job.sites) if job else "",
            "status": "skipped",
            "path": "",
            "reason": reason.splitlines()[0] if reason else "",
        })

    def to_dataframe(self):
        """
        One row per record as a pandas DataFrame.

        Columns: label, adsorbate, sites, status, path, reason.

        Raises
        ------
        ImportError
            If pandas is not installed.
        """
        try:
            import pandas as pd
        except ImportError as exc:
            raise ImportError(
                "pandas is required for BatchReport.to_dataframe(). "
                "Install it with: pip install pandas"
            ) from exc
        columns = ["label", "adsorbate", "sites", "status", "path", "reason"]
        return pd.DataFrame(self.records, columns=columns)


def plan_jobs(project: ProjectConfig, table: AdsorbateTable) -> list[PlacementJob]:
    """Expand the table and site configuration into placement jobs."""
    jobs: list[PlacementJob] = []
    for ads in table.adsorbates:
        if len(ads.coord_atom_ids) == 1:
            jobs.extend(PlacementJob(ads, (site.atom_id,)) for site in project.coord_sites)
            continue
        for case in project.coord_cases:
            pairs = case.get_cases()
            if not ads.symmetric:
                two_site = case.model_copy(
                    update={"cases": [c for c in pairs if c[1] is not None]}
                )
                pairs += two_site.get_cases(reverse=True)
            for s1, s2 in pairs:
                sites = (s1,) if s2 is None else (s1, s2)
                jobs.append(PlacementJob(ads, sites))
    return jobs


def output_name(host: LatticeModel, job: PlacementJob, site_names: dict[int, str]) -> str:
    """<host>_<ads>_<site1>[_<site2>], using site names where known."""
    suffix = "_".join(site_names.get(s, str(s)) for s in job.sites)
    return f"{host.name}_{job.adsorbate.name}_{suffix}"


def ads_direction_for(
    host: LatticeModel,
    fragment: LatticeModel,
    sites: tuple[int, ...],
    project: ProjectConfig,
) -> np.ndarray | None:
    """
    Yaw direction for a placement: site_1 -> site_2 for two-site jobs,
    the project's direction_sites otherwise.  Single atoms get none.
    """
    if len(fragment) == 1:
        return None
    if len(sites) == 2:
        return host.get_vector_ab(sites[0], sites[1])
    if project.direction_sites is not None:
        return host.get_vector_ab(*project.direction_sites)
    return None


def run_job(
    job: PlacementJob,
    host: LatticeModel,
    fragment: LatticeModel,
    project: ProjectConfig,
    elements: dict[str, ElementInfo] | None = None,
) -> list[Path]:
    """
    Place one adsorbate and write the result.  Returns the written paths.

    elements is the element table used for .cell species blocks.

    Raises
    ------
    AdsorptionError
        If the placement cannot be built with these parameters.
    """
    direction = ads_direction_for(host, fragment, job.sites, project)
    params = job.adsorbate.to_params(
        ads_direction=direction, default_bond_length=project.bond_length
    ).finalize()
    location = host.centroid_of_sites(job.sites)
    merged = place_fragment(host, fragment, params, location)
    merged.name = output_name(host, job, project.hash_coord_site())

    out_dir = Path(project.export_loc) / f"{job.adsorbate.path_name}_path" / job.adsorbate.name
    written = [write_msi(merged, out_dir / f"{merged.name}.msi")]
    if project.write_cell:
        written.append(write_cell(merged, out_dir / f"{merged.name}.cell", elements))
    return written


def _load_fragments(
    table: AdsorbateTable,
    report: BatchReport,
) -> dict[str, LatticeModel]:
    fragments: dict[str, LatticeModel] = {}
    for ads in table.adsorbates:
        path = ads.file_path(table.directory)
        try:
            fragment = read_model(path, name=ads.name)
        except (FileNotFoundError, MsiFormatError) as exc:
            logger.warning("Skipping adsorbate %s: %s", ads.name, exc)
            report.add_skipped(ads.name, str(exc))
            continue
        if len(fragment) != ads.atom_nums:
            reason = (
                f"{path} has {len(fragment)} atoms but the table declares "
                f"atomNums={ads.atom_nums}"
            )
            logger.warning("Skipping adsorbate %s: %s", ads.name, reason)
            report.add_skipped(ads.name, reason)
            continue
        fragments[ads.name] = fragment
    return fragments


def _cell_elements(
    project: ProjectConfig,
    host: LatticeModel,
    fragments: dict[str, LatticeModel],
) -> dict[str, ElementInfo] | None:
    """
    Check .cell export before any job runs and return the element table.

    Raises
    ------
    ConfigurationError
        Periodic cell missing on the host, or elements missing from the
        element table.
    """
    if not project.write_cell:
        return None
    if not host.has_lattice_vectors:
        raise ConfigurationError(
            f"write_cell is enabled but host '{host.name}' has no lattice vectors.",
            missing=["lattice_vectors"],
        )
    if project.element_table_loc is None:
        return None
    elements = load_element_table(project.element_table_loc).hash_table()
    needed = set(host.element_list())
    for fragment in fragments.values():
        needed.update(fragment.element_list())
    missing = sorted(needed - set(elements))
    if missing:
        raise ConfigurationError(
            f"Element table {project.element_table_loc} has no entry for {missing}.",
            missing=missing,
        )
    return elements


def build_all(
    project: ProjectConfig,
    table: AdsorbateTable,
    nworkers: int | None = None,
    host: LatticeModel | None = None,
) -> BatchReport:
    """
    Run every placement of the project.

    Parameters
    ----------
    project:
        Validated project configuration (paths already resolved).
    table:
        Validated adsorbate table.
    nworkers:
        Thread pool size; defaults to project.nworkers.
    host:
        Pre-loaded host model.  Read from project.base_model_loc if None.

    Returns
    -------
    BatchReport

    Raises
    ------
    ConfigurationError
        If write_cell is set but the host has no periodic cell or the
        element table misses an element.  Nothing is written in that case.
    """
    report = BatchReport()
    if host is None:
        host = read_model(project.base_model_loc)
    nworkers = nworkers or project.nworkers

    fragments = _load_fragments(table, report)
    elements = _cell_elements(project, host, fragments)
    jobs = [job for job in plan_jobs(project, table) if job.adsorbate.name in fragments]
    logger.info("Building %d placements on %s with %d worker(s)",
                len(jobs), host.name, nworkers)

    def _run(job: PlacementJob) -> tuple[PlacementJob, list[Path] | None, str | None]:
        try:
            fragment = fragments[job.adsorbate.name]
            return job, run_job(job, host, fragment, project, elements), None
        except AdsorptionError as exc:
            return job, None, str(exc)

    if nworkers == 1:
        results = [_run(job) for job in jobs]
    else:
        with ThreadPoolExecutor(max_workers=nworkers) as pool:
            results = list(pool.map(_run, jobs))

    for job, paths, error in results:
        if error is not None:
            logger.warning("Skipped %s: %s", job.label, error)
            report.add_skipped(job.label, error, job)
        else:
            logger.debug("Built %s -> %s", job.label, paths[0])
            report.add_built(job, paths)

    logger.info("Batch finished: %s", report.summary())
    return report
