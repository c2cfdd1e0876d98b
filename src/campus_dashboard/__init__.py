"""Live campus resource dashboard: availability picks, lift ranking and a command router."""

__version__ = "0.1.0"
