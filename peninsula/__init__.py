"""Peninsula control plane: operator auth, user directory and self-update."""

__version__ = "0.1.0"
