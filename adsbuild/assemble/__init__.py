"""
adsbuild.assemble

The placement pipeline, leaves first.

Submodules
----------
params       AdsorptionParams draft and its validated FinalizedParams
reference    Stem vector, plane normal, coordination-stem vector
orientation  Align, roll, pitch, yaw
placement    Translate the oriented fragment onto the target location
builder      Stage-checked AdsorptionBuilder and the final merge
"""
