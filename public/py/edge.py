# edge.py


class Edge:
    """Directed edge record (sourceId -> targetId). Unit weight for shortest paths."""

    __slots__ = ("_id", "_source", "_target", "_label")

    def __init__(self, eid, sourceId, targetId, label: str = ""):
        self._id = eid
        self._source = sourceId
        self._target = targetId
        self._label = label

    def getId(self):
        return self._id

    def getSourceId(self):
        return self._source

    def getTargetId(self):
        return self._target

    def getLabel(self) -> str:
        return self._label

    def isSelfLoop(self) -> bool:
        return self._source == self._target

    def __repr__(self):
        return f"Edge({self._id!r}: {self._source!r} -> {self._target!r})"
