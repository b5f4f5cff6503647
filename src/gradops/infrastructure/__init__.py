"""NumPy-backed implementations of the gradops contracts."""
