"""
AeroEvolve

Evolutionary aerodynamic shape optimization: parametric surfaces, an
explicit potential-flow panel evaluator and a genetic algorithm.
"""

__version__ = "0.1.0"
