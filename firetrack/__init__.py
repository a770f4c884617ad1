"""
firetrack - Source Package

A personal portfolio tracker built around a small, deterministic
financial computation core.

DESIGN PRINCIPLES:
1. Raw holdings in, derived numbers out
2. Engines never throw; they degrade to zero or a sentinel
3. Settings are passed explicitly, never read from module state
4. Every pipeline run is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "firetrack Team"
