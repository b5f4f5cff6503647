"""Rank-dispatched numeric kernels."""
