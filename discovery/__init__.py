"""Live discovery-call assistant."""

__version__ = "0.1.0"
