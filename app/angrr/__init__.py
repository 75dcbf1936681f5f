"""angrr - automatic Nix GC root retention."""

__version__ = "0.1.0"
