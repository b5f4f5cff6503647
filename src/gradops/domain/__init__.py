"""Backend-agnostic contracts: shape classes, errors and the Function interface."""
