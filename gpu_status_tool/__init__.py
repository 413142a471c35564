"""GPU Status Tool: persisted per-device accelerator settings."""

__version__ = "0.3.0"
