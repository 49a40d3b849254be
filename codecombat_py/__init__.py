"""codecombat_py - CLI client for the CodeCombat contest platform."""

__version__ = "1.0.0"
