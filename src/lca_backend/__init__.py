"""Cradle-to-gate LCA estimates for metal products."""

__version__ = "1.0.0"
