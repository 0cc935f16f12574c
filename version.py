"""
Version information for RoofCalc.

This is the single source of truth for the application version.
Used by: CLI and packaging.
"""

__version__ = "1.0.0"
APP_NAME = "RoofCalc"
