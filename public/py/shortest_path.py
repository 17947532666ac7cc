# shortest_path.py
from typing import Optional

import numpy as np
import scipy.sparse as sp
import scipy.sparse.csgraph as csgraph

from snapshot import GraphSnapshot

# Reported to callers for pairs with no connecting path.
UNREACHABLE = int(np.iinfo(np.int32).max)
# Internal seed value: two of these summed still fit in int32.
_SENTINEL = UNREACHABLE // 2

# Above this many nodes the SciPy solver is used by default.
SCIPY_NODE_THRESHOLD = 150


class DistanceMatrix:
    """Hop-count matrix over snapshot indices, addressable by node id."""

    def __init__(self, ids, index, matrix: np.ndarray):
        self.ids = tuple(ids)
        self.index = dict(index)
        self.matrix = matrix

    def __len__(self):
        return len(self.ids)

    def get(self, a, b) -> int:
        return int(self.matrix[self.index[a], self.index[b]])

    def isReachable(self, a, b) -> bool:
        return self.get(a, b) != UNREACHABLE

    def row(self, a) -> dict:
        i = self.index[a]
        return {vid: int(self.matrix[i, j]) for j, vid in enumerate(self.ids)}


def _seed_matrix(snapshot: GraphSnapshot) -> np.ndarray:
    n = snapshot.size()
    dist = np.full((n, n), _SENTINEL, dtype=np.int32)
    np.fill_diagonal(dist, 0)
    for i, j in snapshot.undirectedPairs():
        dist[i, j] = 1
        dist[j, i] = 1
    return dist


def floyd_warshall(dist: np.ndarray) -> np.ndarray:
    """In-place Floyd–Warshall relaxation; one vectorized pass per pivot."""
    n = dist.shape[0]
    for k in range(n):
        np.minimum(dist, dist[:, k:k + 1] + dist[k:k + 1, :], out=dist)
    return dist


def _scipy_hops(snapshot: GraphSnapshot) -> np.ndarray:
    n = snapshot.size()
    pairs = snapshot.undirectedPairs()
    rows = np.array([i for i, _ in pairs], dtype=np.int64)
    cols = np.array([j for _, j in pairs], dtype=np.int64)
    adj = sp.csr_matrix((np.ones(len(pairs)), (rows, cols)), shape=(n, n))
    hops = csgraph.shortest_path(adj, method="FW", directed=False, unweighted=True)
    out = np.full((n, n), UNREACHABLE, dtype=np.int32)
    finite = np.isfinite(hops)
    out[finite] = hops[finite].astype(np.int32)
    return out


def all_pairs_hops(snapshot: GraphSnapshot, use_scipy: Optional[bool] = None) -> DistanceMatrix:
    """
    Minimum hop count between every ordered node pair, edges taken as undirected.
    - O(V^3); zero/one-node snapshots return trivial matrices
    - unreachable pairs hold UNREACHABLE (never the internal sentinel)
    """
    n = snapshot.size()
    if use_scipy is None:
        use_scipy = n > SCIPY_NODE_THRESHOLD

    if n == 0:
        matrix = np.zeros((0, 0), dtype=np.int32)
    elif use_scipy:
        matrix = _scipy_hops(snapshot)
    else:
        matrix = floyd_warshall(_seed_matrix(snapshot))
        matrix[matrix >= _SENTINEL] = UNREACHABLE

    return DistanceMatrix(snapshot.ids, snapshot.index, matrix)
