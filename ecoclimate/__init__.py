"""
EcoClimate: grid simulation of a toxic landscape recovering through fungal succession.

Couples weather, soil hydrology, contamination, fungal colonization, airborne
spore transport and vegetation succession on a Taichi cell grid.
"""

__version__ = "0.1.0"
