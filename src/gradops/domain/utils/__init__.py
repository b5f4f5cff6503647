"""Generic dispatch utilities."""
