"""
adsbuild

Place rigid adsorbate fragments on surface lattice models.

Subpackages
-----------
structure   LatticeModel (1-based atom ids), .msi reader/writer, .cell export
assemble    Adsorption parameters, reference vectors, orientation, placement
runner      Batch building of every adsorbate on every configured site
"""

from adsbuild.assemble.builder import AdsorptionBuilder, merge_fragment, place_fragment
from adsbuild.assemble.params import AdsorptionParams, FinalizedParams
from adsbuild.errors import (
    AdsorptionError,
    CollinearPointsError,
    ConfigurationError,
    DegenerateGeometryError,
    InvalidIndexError,
    NonFiniteCoordinateError,
    StageOrderError,
)
from adsbuild.structure.lattice import Atom, LatticeModel

__version__ = "0.1.0"
