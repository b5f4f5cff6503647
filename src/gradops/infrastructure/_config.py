"""
Runtime configuration for the NumPy backend.

The only tunable is the default floating dtype used when a value is built
without an explicit ``dtype``. It defaults to ``float64`` and can be
overridden before import through the ``GRADOPS_DEFAULT_DTYPE`` environment
variable (``"float32"`` or ``"float64"``), or at runtime with
:func:`set_default_dtype`.

Kernels never consult this setting: results keep the dtype of their operands.
"""

from __future__ import annotations

import os
from typing import Any

import numpy as np

DTYPE_ENV_VAR = "GRADOPS_DEFAULT_DTYPE"

_SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))


def _normalize_dtype(dtype: Any) -> np.dtype:
    """
    Convert a dtype-like to one of the supported floating dtypes.

    Raises
    ------
    ValueError
        If `dtype` is not float32 or float64.
    """
    try:
        dt = np.dtype(dtype)
    except TypeError as e:
        raise ValueError(f"Unrecognised dtype {dtype!r}.") from e
    if dt not in _SUPPORTED_DTYPES:
        raise ValueError(f"Unsupported dtype {dt}; expected float32 or float64.")
    return dt


def _dtype_from_env() -> np.dtype:
    raw = os.environ.get(DTYPE_ENV_VAR, "").strip()
    if not raw:
        return np.dtype(np.float64)
    try:
        return _normalize_dtype(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {DTYPE_ENV_VAR}={raw!r}: {e}") from e


_default_dtype: np.dtype = _dtype_from_env()


def get_default_dtype() -> np.dtype:
    """
    Return the dtype used for values constructed without an explicit dtype.

    Returns
    -------
    np.dtype
        Either float32 or float64.
    """
    return _default_dtype


def set_default_dtype(dtype: Any) -> np.dtype:
    """
    Replace the default dtype.

    Parameters
    ----------
    dtype : dtype-like
        ``np.float32``, ``np.float64`` or their string names.

    Returns
    -------
    np.dtype
        The previous default, so callers can restore it.

    Raises
    ------
    ValueError
        If `dtype` is not a supported floating dtype.
    """
    global _default_dtype
    previous = _default_dtype
    _default_dtype = _normalize_dtype(dtype)
    return previous
