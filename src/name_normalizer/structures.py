"""Union-find used to group compatible given-name spellings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class DisjointSet:
    """Union-find over the indices ``0..size-1`` of a variant list."""

    size: int
    parent: List[int] = field(init=False)

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError("size must be non-negative")
        self.parent = list(range(self.size))

    def find(self, index: int) -> int:
        root = index
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[index] != root:
            self.parent[index], index = root, self.parent[index]
        return root

    def union(self, left: int, right: int) -> None:
        root_left = self.find(left)
        root_right = self.find(right)
        if root_left == root_right:
            return
        # keep the lower index as root so component order follows input order
        if root_right < root_left:
            root_left, root_right = root_right, root_left
        self.parent[root_right] = root_left

    def components(self) -> List[List[int]]:
        """Members of each component, ordered by their first index."""

        grouped: Dict[int, List[int]] = {}
        for index in range(self.size):
            grouped.setdefault(self.find(index), []).append(index)
        return list(grouped.values())
