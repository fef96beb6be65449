"""Relay service orchestrating multi-party RWA swap sessions on a ClearNode."""

__version__ = "0.1.0"

__all__ = ["__version__"]
