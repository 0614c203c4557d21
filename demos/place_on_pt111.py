from pathlib import Path

import numpy as np
from ase.build import fcc111

from adsbuild import AdsorptionParams, LatticeModel, place_fragment
from adsbuild.structure.io import write_model

out_dir = Path("demo_out")

# ------------------------------------------------------------------
# Host: Pt(111) 3x3 slab, 4 layers, 12 Å vacuum
# ------------------------------------------------------------------

host = LatticeModel.from_atoms(fcc111("Pt", size=(3, 3, 4), vacuum=12.0), name="Pt111")
top_z = host.positions[:, 2].max()
top_ids = [int(i) + 1 for i in np.nonzero(np.isclose(host.positions[:, 2], top_z))[0]]
site = top_ids[4]  # a top-layer atom away from the cell edge

# ------------------------------------------------------------------
# CO on top, C down, upright
# ------------------------------------------------------------------

co = LatticeModel.from_arrays(["C", "O"], [[0, 0, 0], [0, 0, 1.13]], name="CO")
co_params = AdsorptionParams(
    coord_atom_ids=[1],
    stem_atom_ids=(1, 2),
    stem_coord_angle=90.0,
    upper_atom_id=2,
    bond_length=1.85,
).finalize()
merged = place_fragment(host, co, co_params, host.position(site))
merged.name = f"Pt111_CO_{site}"
write_model(merged, out_dir / f"{merged.name}.msi")

# ------------------------------------------------------------------
# CH3 through C, virtual stem along the C3 axis, H plane horizontal
# ------------------------------------------------------------------

ch3 = LatticeModel.from_arrays(
    ["C", "H", "H", "H"],
    [[0.0, 0.0, 0.0], [1.03, 0.0, -0.36], [-0.515, 0.892, -0.36], [-0.515, -0.892, -0.36]],
    name="CH3",
)
ch3_params = AdsorptionParams(
    coord_atom_ids=[1],
    stem_atom_ids=(1, 1),
    plane_atom_ids=(2, 3, 4),
    plane_angle=0.0,
    stem_coord_angle=90.0,
    upper_atom_id=2,
    bond_length=2.08,
).finalize()
merged = place_fragment(host, ch3, ch3_params, host.position(site))
merged.name = f"Pt111_CH3_{site}"
write_model(merged, out_dir / f"{merged.name}.msi")

# ------------------------------------------------------------------
# OCCO bridging two neighbouring top atoms, stem along the Pt-Pt bond
# ------------------------------------------------------------------

occo = LatticeModel.from_arrays(
    ["C", "C", "O", "O"],
    [[0.0, 0.0, 0.0], [1.4, 0.0, 0.0], [-0.6, 0.0, 1.0], [2.0, 0.0, 1.0]],
    name="OCCO",
)
pair = (top_ids[4], top_ids[5])
occo_params = AdsorptionParams(
    coord_atom_ids=[1, 2],
    stem_atom_ids=(1, 2),
    plane_atom_ids=(1, 2, 3),
    plane_angle=90.0,
    stem_coord_angle=0.0,
    ads_direction=host.get_vector_ab(*pair),
    upper_atom_id=3,
    bond_length=1.4,
).finalize()
merged = place_fragment(host, occo, occo_params, host.centroid_of_sites(pair))
merged.name = f"Pt111_OCCO_{pair[0]}_{pair[1]}"
write_model(merged, out_dir / f"{merged.name}.msi")
write_model(merged, out_dir / f"{merged.name}.cell")

print(f"Wrote {len(list(out_dir.glob('*')))} files to {out_dir}/")
