"""
Embedding dimension reconciliation.

Every provider returns vectors of its own native size; the index only accepts
one. Longer vectors lose their trailing components, shorter ones are padded
with zeros or by cyclically repeating their own values.

Dependencies: numpy
System role: Dimension invariant enforcement for the embedding chain
"""

from collections.abc import Sequence

import numpy as np

PAD_ZERO = "zero"
PAD_REPEAT = "repeat"


def reconcile_dimension(
    vector: Sequence[float],
    target_dim: int,
    pad_mode: str = PAD_ZERO,
) -> list[float]:
    """
    Truncate or pad a vector to exactly target_dim components.

    Args:
        vector: Provider vector of any non-zero length
        target_dim: Required length
        pad_mode: 'zero' appends zeros, 'repeat' tiles the vector's own values

    Returns:
        list[float]: Vector of length target_dim

    Raises:
        ValueError: Empty vector, non-positive target or unknown pad_mode
    """
    if target_dim <= 0:
        raise ValueError(f"target_dim must be positive, got {target_dim}")

    values = np.asarray(vector, dtype=np.float64).ravel()
    if values.size == 0:
        raise ValueError("Cannot reconcile an empty vector")

    if values.size >= target_dim:
        return values[:target_dim].tolist()

    if pad_mode == PAD_ZERO:
        return np.pad(values, (0, target_dim - values.size)).tolist()
    if pad_mode == PAD_REPEAT:
        return np.resize(values, target_dim).tolist()
    raise ValueError(f"Unknown pad_mode {pad_mode!r}")
