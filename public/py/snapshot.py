# snapshot.py
from typing import Dict, Iterable, List, Tuple

from edge import Edge
from vertex import Vertex


class GraphSnapshot:
    """
    Immutable view of the node/edge set used as the input of one computation.
    - ids: node ids in arena order; index: id -> dense index (0..n-1)
    - edges: only edges whose endpoints both exist (others are dropped and counted)
    - adjacency: undirected neighbour indices per node, self-loops excluded
    - parents/children: directed id maps, self-loops excluded
    The vertex records themselves stay mutable; the *set* of nodes/edges does not.
    """

    __slots__ = ("ids", "index", "vertices", "edges", "dropped",
                 "adjacency", "degree", "parents", "children")

    def __init__(self, vertices: Iterable[Vertex], edges: Iterable[Edge]):
        verts = list(vertices)
        self.vertices: Tuple[Vertex, ...] = tuple(verts)
        self.ids: Tuple = tuple(v.getId() for v in verts)
        self.index: Dict = {vid: i for i, vid in enumerate(self.ids)}

        kept: List[Edge] = []
        dropped = 0
        for e in edges:
            if e.getSourceId() in self.index and e.getTargetId() in self.index:
                kept.append(e)
            else:
                dropped += 1
        self.edges: Tuple[Edge, ...] = tuple(kept)
        self.dropped = dropped

        n = len(self.ids)
        adj = [[] for _ in range(n)]
        seen = set()
        degree = [0] * n
        parents: Dict = {vid: [] for vid in self.ids}
        children: Dict = {vid: [] for vid in self.ids}
        for e in self.edges:
            s, t = e.getSourceId(), e.getTargetId()
            u, v = self.index[s], self.index[t]
            # Degree counts every incident edge end (a self-loop counts twice)
            degree[u] += 1
            degree[v] += 1
            if u == v:
                continue
            children[s].append(t)
            parents[t].append(s)
            key = (u, v) if u < v else (v, u)
            if key in seen:
                continue
            seen.add(key)
            adj[u].append(v)
            adj[v].append(u)
        self.adjacency: Tuple[Tuple[int, ...], ...] = tuple(tuple(a) for a in adj)
        self.degree: Tuple[int, ...] = tuple(degree)
        self.parents = parents
        self.children = children

    def __setattr__(self, name, value):
        if hasattr(self, name):
            raise AttributeError(f"GraphSnapshot is immutable ({name})")
        object.__setattr__(self, name, value)

    def __len__(self):
        return len(self.ids)

    def size(self) -> int:
        return len(self.ids)

    def vertex(self, vid) -> Vertex:
        return self.vertices[self.index[vid]]

    def degreeOf(self, vid) -> int:
        return self.degree[self.index[vid]]

    def undirectedPairs(self) -> List[Tuple[int, int]]:
        """Distinct (i, j) index pairs with i < j that share at least one edge."""
        out = []
        for i, neigh in enumerate(self.adjacency):
            for j in neigh:
                if i < j:
                    out.append((i, j))
        return out

    def positions(self) -> Tuple[List[float], List[float]]:
        xs = [v.getPosition().x() for v in self.vertices]
        ys = [v.getPosition().y() for v in self.vertices]
        return xs, ys
