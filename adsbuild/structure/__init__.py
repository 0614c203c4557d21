"""
adsbuild.structure

Atom collections and their file formats.

Submodules
----------
lattice     LatticeModel: ASE Atoms with 1-based ids and lattice vectors
msi         Read/write Cerius2 .msi DataModel files
cell        Export CASTEP .cell files through ASE
io          Load/save by file extension
"""
