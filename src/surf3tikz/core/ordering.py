from __future__ import annotations

import numpy as np


def resolve_order(positions: np.ndarray) -> tuple[list[int], bool]:
    """
    Reorder points so the first two differ in both coordinates.

    pgfplots solves its image placement from the first two points it is given; if they share
    an x or a y value the solve is singular. Returns (order, ok). When no pair differs in both
    coordinates the original order is returned with ok=False.
    """
    pos = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
    n = int(pos.shape[0])
    for i in range(n):
        for j in range(n):
            if j == i:
                continue
            if pos[i, 0] != pos[j, 0] and pos[i, 1] != pos[j, 1]:
                rest = [k for k in range(n) if k not in (i, j)]
                return [i, j, *rest], True
    return list(range(n)), False
