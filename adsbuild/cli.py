"""
adsbuild/cli.py

Command-line interface for adsbuild.

Commands
--------
  adsbuild init    Print a template project file when none exists, otherwise
                   validate the project and its adsorbate table.
  adsbuild build   Place every adsorbate of the project on every configured
                   site and write the merged models.
  adsbuild place   Place one fragment on one host from command-line options.

Usage
-----
    adsbuild init  [--config project.yaml] [--example project.yaml.example]
    adsbuild build [--config project.yaml] [--jobs N] [--report out.csv]
    adsbuild place HOST FRAGMENT --site 41 --coord 1 [--stem 1 2]
                   [--plane 1 2 3] [--plane-angle 90] [--coord-angle 90]
                   [--upper 2] [--direction 1 0 0] [--bond-length 1.4]
                   [--output out.msi]
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
        level=level,
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_config_option = click.option(
    "--config", "-c",
    default="project.yaml",
    show_default=True,
    type=click.Path(exists=False, dir_okay=False),
    help="Path to the project YAML file.",
)

_verbose_option = click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="adsbuild")
def cli() -> None:
    """
    adsbuild: place adsorbates on surface lattice models.

    Start with `adsbuild init > project.yaml`, edit it, then run
    `adsbuild build`.
    """


# ---------------------------------------------------------------------------
# adsbuild init
# ---------------------------------------------------------------------------

@cli.command("init")
@_config_option
@click.option("--example", type=click.Path(dir_okay=False), default=None,
              help="Write a commented example project file to this path and exit.")
@_verbose_option
def cmd_init(config: str, example: str | None, verbose: bool) -> None:
    """
    Validate the project file and adsorbate table.

    If no project file is found (or it is empty), prints a commented
    template to stdout and exits with code 1:

        adsbuild init > project.yaml

    With --example the template is written to a file instead.
    """
    _setup_logging(verbose)

    if example is not None:
        from adsbuild.config import generate_example_project
        path = generate_example_project(example)
        click.echo(f"Example project written to {path}")
        return

    config_path = Path(config)

    if not config_path.exists() or config_path.stat().st_size == 0:
        from adsbuild.config import PROJECT_TEMPLATE
        click.echo(PROJECT_TEMPLATE, nl=False)
        raise SystemExit(1)

    from adsbuild.config import load_adsorbate_table, load_project
    try:
        project = load_project(config_path)
        table = load_adsorbate_table(project.adsorbate_table_loc)
    except Exception as exc:
        click.echo(f"Error: config validation failed:\n  {exc}", err=True)
        raise SystemExit(1)

    click.echo(f"Project OK: {len(project.coord_sites)} site(s), "
               f"{len(table.adsorbates)} adsorbate(s).")
    missing = [
        ads.name for ads in table.adsorbates
        if not ads.file_path(table.directory).exists()
    ]
    for name in missing:
        click.echo(f"  Warning: no model file for adsorbate '{name}'", err=True)


# ---------------------------------------------------------------------------
# adsbuild build
# ---------------------------------------------------------------------------

@cli.command("build")
@_config_option
@click.option("--jobs", "-j", type=int, default=None,
              help="Worker threads (defaults to nworkers in the project file).")
@click.option("--report", type=click.Path(dir_okay=False), default=None,
              help="Write a CSV table of built and skipped placements.")
@_verbose_option
def cmd_build(config: str, jobs: int | None, report: str | None, verbose: bool) -> None:
    """Build every adsorbate/site combination of the project."""
    _setup_logging(verbose)
    log = logging.getLogger(__name__)

    from adsbuild.config import load_adsorbate_table, load_project
    from adsbuild.runner.batch import build_all

    try:
        project = load_project(config)
        table = load_adsorbate_table(project.adsorbate_table_loc)
    except Exception as exc:
        click.echo(f"Error: config validation failed:\n  {exc}", err=True)
        raise SystemExit(1)

    try:
        result = build_all(project, table, nworkers=jobs)
    except Exception:
        log.exception("Fatal error during batch build")
        raise SystemExit(1)

    if report:
        result.to_dataframe().to_csv(report, index=False)
        log.info("Report written to %s", report)

    click.echo(result.summary())
    for label, reason in result.skipped:
        click.echo(f"  skipped {label}: {reason.splitlines()[0]}", err=True)


# ---------------------------------------------------------------------------
# adsbuild place
# ---------------------------------------------------------------------------

@cli.command("place")
@click.argument("host", type=click.Path(exists=True, dir_okay=False))
@click.argument("fragment", type=click.Path(exists=True, dir_okay=False))
@click.option("--site", "sites", type=int, multiple=True, required=True,
              help="Host target atom id (repeat for a multi-site location).")
@click.option("--coord", "coord", type=int, multiple=True, required=True,
              help="Fragment coordination atom id (repeatable).")
@click.option("--stem", type=(int, int), default=None, help="Stem atom ids a b.")
@click.option("--plane", type=(int, int, int), default=None, help="Plane atom ids.")
@click.option("--plane-angle", type=float, default=None, help="Plane angle (deg).")
@click.option("--coord-angle", type=float, default=None,
              help="Stem angle below the horizontal at the coordination side (deg).")
@click.option("--upper", type=int, default=None, help="Atom kept above the coordination atom.")
@click.option("--direction", type=(float, float, float), default=None,
              help="Adsorption direction vector in the host frame.")
@click.option("--bond-length", type=float, default=1.4, show_default=True)
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Output file (.msi, .cell, or any ASE format). "
                   "Defaults to <host>_<fragment>.msi.")
@_verbose_option
def cmd_place(
    host: str,
    fragment: str,
    sites: tuple[int, ...],
    coord: tuple[int, ...],
    stem: tuple[int, int] | None,
    plane: tuple[int, int, int] | None,
    plane_angle: float | None,
    coord_angle: float | None,
    upper: int | None,
    direction: tuple[float, float, float] | None,
    bond_length: float,
    output: str | None,
    verbose: bool,
) -> None:
    """Place FRAGMENT on HOST and write the merged model."""
    _setup_logging(verbose)

    from adsbuild.assemble.builder import place_fragment
    from adsbuild.assemble.params import AdsorptionParams
    from adsbuild.errors import AdsorptionError
    from adsbuild.structure.io import read_model, write_model

    host_model = read_model(host)
    ads_model = read_model(fragment)

    params = AdsorptionParams(
        coord_atom_ids=list(coord),
        stem_atom_ids=stem,
        plane_atom_ids=plane,
        plane_angle=plane_angle,
        stem_coord_angle=coord_angle,
        ads_direction=direction,
        bond_length=bond_length,
        upper_atom_id=upper,
    )
    try:
        merged = place_fragment(
            host_model, ads_model, params.finalize(), host_model.centroid_of_sites(sites)
        )
    except AdsorptionError as exc:
        click.echo(f"Error: placement failed:\n  {exc}", err=True)
        raise SystemExit(1)

    out_path = Path(output) if output else Path(f"{host_model.name}_{ads_model.name}.msi")
    merged.name = out_path.stem
    write_model(merged, out_path)
    click.echo(f"Wrote {out_path} ({len(merged)} atoms)")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
