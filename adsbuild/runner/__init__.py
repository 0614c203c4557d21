"""
adsbuild.runner

batch       Build every adsorbate on every configured site of a project
"""
