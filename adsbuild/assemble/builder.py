"""
adsbuild/assemble/builder.py

Staged assembly of host lattice + adsorbate.

AdsorptionBuilder walks through a fixed sequence of stages.  Each method
checks the current stage tag and advances it; calling a step early, late,
or twice raises StageOrderError, and there is no way back to an earlier
stage.

    BARE ──add_adsorbate──▶ IMPORTED ──with_ads_params──▶ PARAM_SET
         ──init_ads──▶ CALIBRATED ──place_adsorbate──▶ READY
         ──build_adsorbed_lattice──▶ BUILT

with_location() / with_location_at_sites() may be called in IMPORTED or
PARAM_SET; the location must be known before place_adsorbate().

The host lattice is never modified.  The builder owns a private copy of
the fragment, and build_adsorbed_lattice() returns a new merged model.

Usage
-----
    from adsbuild.assemble.builder import AdsorptionBuilder

    merged = (
        AdsorptionBuilder(host)
        .add_adsorbate(co)
        .with_location_at_sites([41])
        .with_ads_params(params.finalize())
        .init_ads()
        .place_adsorbate()
        .build_adsorbed_lattice()
    )
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Sequence

import numpy as np

from adsbuild.assemble.orientation import orient_fragment
from adsbuild.assemble.params import FinalizedParams
from adsbuild.assemble.placement import place_fragment_at
from adsbuild.errors import ConfigurationError, StageOrderError
from adsbuild.geometry import as_vector
from adsbuild.structure.lattice import LatticeModel

logger = logging.getLogger(__name__)


class BuildStage(str, Enum):
    BARE = "bare"
    IMPORTED = "imported"
    PARAM_SET = "param_set"
    CALIBRATED = "calibrated"
    READY = "ready"
    BUILT = "built"


def merge_fragment(host: LatticeModel, fragment: LatticeModel) -> LatticeModel:
    """
    Append fragment atoms to a copy of the host.

    Fragment ids are shifted by the host atom count so the merged model
    keeps ids 1..N in order.  Cell, pbc and name come from the host.
    """
    merged = host.copy()
    ads = fragment.copy()
    ads.atoms.set_cell(host.atoms.cell)
    ads.atoms.set_pbc(host.atoms.pbc)
    ads.renumber(offset=len(host))
    merged.atoms.extend(ads.atoms)
    return merged


class AdsorptionBuilder:
    """
    Step-by-step placement of one adsorbate on one host lattice.

    Parameters
    ----------
    host_lattice:
        The host model.  Read only; never modified.
    """

    def __init__(self, host_lattice: LatticeModel) -> None:
        host_lattice.validate_ids()
        self._host = host_lattice
        self._adsorbate: LatticeModel | None = None
        self._location: np.ndarray | None = None
        self._params: FinalizedParams | None = None
        self._stage = BuildStage.BARE

    @property
    def stage(self) -> BuildStage:
        return self._stage

    @property
    def host_lattice(self) -> LatticeModel:
        return self._host

    @property
    def adsorbate(self) -> LatticeModel | None:
        """The builder's working copy of the fragment."""
        return self._adsorbate

    @property
    def location(self) -> np.ndarray | None:
        return None if self._location is None else self._location.copy()

    def _require(self, action: str, *allowed: BuildStage) -> None:
        if self._stage not in allowed:
            raise StageOrderError(action, allowed[0], self._stage)

    def _advance(self, stage: BuildStage) -> None:
        logger.debug("Builder for %s: %s -> %s", self._host.name,
                     self._stage.value, stage.value)
        self._stage = stage

    # ------------------------------------------------------------------
    # Stage transitions
    # ------------------------------------------------------------------

    def add_adsorbate(self, adsorbate: LatticeModel) -> "AdsorptionBuilder":
        """Import a copy of the fragment.  BARE -> IMPORTED."""
        self._require("add adsorbate", BuildStage.BARE)
        adsorbate.validate_ids()
        self._adsorbate = adsorbate.copy()
        self._advance(BuildStage.IMPORTED)
        return self

    def with_location(self, location) -> "AdsorptionBuilder":
        """Set the target point directly."""
        self._require("set location", BuildStage.IMPORTED, BuildStage.PARAM_SET)
        self._location = as_vector(location).copy()
        return self

    def with_location_at_sites(self, target_sites: Sequence[int]) -> "AdsorptionBuilder":
        """Set the target point to the centroid of host atoms."""
        self._require("set location", BuildStage.IMPORTED, BuildStage.PARAM_SET)
        self._location = self._host.centroid_of_sites(target_sites)
        return self

    def with_ads_params(self, params: FinalizedParams) -> "AdsorptionBuilder":
        """
        Attach finalised parameters.  IMPORTED -> PARAM_SET.

        Raises
        ------
        ConfigurationError
            If params is not a FinalizedParams (call finalize() first).
        InvalidIndexError
            If params reference atoms the fragment does not have.
        """
        self._require("set adsorption parameters", BuildStage.IMPORTED)
        if not isinstance(params, FinalizedParams):
            raise ConfigurationError(
                "Adsorption parameters must be finalised before use; "
                "call AdsorptionParams.finalize().",
                missing=["finalize"],
            )
        params.check_ids(self._adsorbate)
        self._params = params
        self._advance(BuildStage.PARAM_SET)
        return self

    def init_ads(self) -> "AdsorptionBuilder":
        """Align, roll, pitch and yaw the fragment.  PARAM_SET -> CALIBRATED."""
        self._require("orient adsorbate", BuildStage.PARAM_SET)
        orient_fragment(self._adsorbate, self._params)
        self._advance(BuildStage.CALIBRATED)
        return self

    def place_adsorbate(self) -> "AdsorptionBuilder":
        """Translate the fragment onto the location.  CALIBRATED -> READY."""
        self._require("place adsorbate", BuildStage.CALIBRATED)
        if self._location is None:
            raise ConfigurationError(
                "No target location set; call with_location() or "
                "with_location_at_sites() before placing.",
                missing=["location"],
            )
        place_fragment_at(self._adsorbate, self._params, self._location)
        self._advance(BuildStage.READY)
        return self

    def build_adsorbed_lattice(self) -> LatticeModel:
        """Merge fragment into a copy of the host.  READY -> BUILT."""
        self._require("build adsorbed lattice", BuildStage.READY)
        merged = merge_fragment(self._host, self._adsorbate)
        self._adsorbate = None
        self._advance(BuildStage.BUILT)
        return merged


def place_fragment(
    host: LatticeModel,
    fragment: LatticeModel,
    params: FinalizedParams,
    location,
) -> LatticeModel:
    """
    Run the whole pipeline for one placement and return the merged model.

    Parameters
    ----------
    host:
        Host lattice (not modified).
    fragment:
        Adsorbate fragment (not modified; a copy is oriented and placed).
    params:
        Finalised adsorption parameters.
    location:
        Target point, e.g. host.centroid_of_sites(site_ids).

    Raises
    ------
    AdsorptionError
        Any configuration, index or geometry failure.
    """
    return (
        AdsorptionBuilder(host)
        .add_adsorbate(fragment)
        .with_location(location)
        .with_ads_params(params)
        .init_ads()
        .place_adsorbate()
        .build_adsorbed_lattice()
    )
