"""
Channel layout helpers for offline processing.

Audio Data Conventions
----------------------
- Mono: shape (T,) - single time series
- Multichannel: shape (T, C) - C independent channels

Internally every signal is handled as (T, C) with C=1 for mono; each
channel is run through its own processing instance.
"""

import numpy as np


def canonicalize_channels(x: np.ndarray) -> np.ndarray:
    """
    Canonicalize audio to shape (T, C).

    Parameters
    ----------
    x : np.ndarray
        Audio, shape (T,) for mono or (T, C) for multichannel

    Returns
    -------
    x_canon : np.ndarray
        Audio with shape (T, C), float64

    Raises
    ------
    ValueError
        If x is not 1D or 2D

    Examples
    --------
    >>> canonicalize_channels(np.zeros(1000)).shape
    (1000, 1)
    >>> canonicalize_channels(np.zeros((1000, 2))).shape
    (1000, 2)
    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim == 1:
        return x[:, np.newaxis]
    elif x.ndim == 2:
        return x
    else:
        raise ValueError(f"Audio must be 1D (T,) or 2D (T, C), got shape {x.shape}")


def restore_channels(y: np.ndarray, like: np.ndarray) -> np.ndarray:
    """
    Undo canonicalize_channels: (T, 1) back to (T,) when the input was mono.

    Parameters
    ----------
    y : np.ndarray
        Processed audio, shape (T, C)
    like : np.ndarray
        Original input whose layout should be restored
    """
    if np.ndim(like) == 1:
        return y[:, 0]
    return y
