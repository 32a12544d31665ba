"""Clustering of raw cascade hits into face candidates."""

from __future__ import annotations

import math
from typing import Callable, List, Sequence, Tuple, TypeVar

from headtrack.types import DetectionRect

T = TypeVar("T")


def array_group(seq: Sequence[T], predicate: Callable[[T, T], bool]) -> Tuple[List[int], int]:
    """Partition ``seq`` into the connected components of ``predicate``.

    Union-find with union by rank and path compression. Class ids are
    assigned in order of first appearance of each component.

    Args:
        seq: Elements to group.
        predicate: Adjacency test between two elements.

    Returns:
        Tuple of (labels, n_classes) where ``labels[i]`` is the class id of
        ``seq[i]``.
    """
    n = len(seq)
    parent = [-1] * n
    rank = [0] * n

    def find(i: int) -> int:
        root = i
        while parent[root] != -1:
            root = parent[root]
        return root

    def compress(i: int, root: int) -> None:
        while parent[i] != -1:
            nxt = parent[i]
            parent[i] = root
            i = nxt

    for i in range(n):
        root = find(i)
        for j in range(n):
            if i == j or not predicate(seq[i], seq[j]):
                continue
            root2 = find(j)
            if root2 == root:
                continue
            if rank[root] > rank[root2]:
                parent[root2] = root
            else:
                parent[root] = root2
                if rank[root] == rank[root2]:
                    rank[root2] += 1
                root = root2
            compress(j, root)
            compress(i, root)

    labels = [0] * n
    class_of_root = {}
    for i in range(n):
        root = find(i)
        if root not in class_of_root:
            class_of_root[root] = len(class_of_root)
        labels[i] = class_of_root[root]
    return labels, len(class_of_root)


def _round(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_neighbor(r1: DetectionRect, r2: DetectionRect) -> bool:
    """Hits at near-identical position and compatible scale."""
    distance = _round(r1.width * 0.25)
    return (
        r1.x - distance <= r2.x <= r1.x + distance
        and r1.y - distance <= r2.y <= r1.y + distance
        and r2.width <= _round(r1.width * 1.5)
        and _round(r2.width * 1.5) >= r1.width
    )


def _is_nested(r1: DetectionRect, r2: DetectionRect) -> bool:
    """r1 lies inside r2 and r2 is the more reliable of the two."""
    distance = _round(r2.width * 0.25)
    return (
        r1.x >= r2.x - distance
        and r1.y >= r2.y - distance
        and r1.x + r1.width <= r2.x + r2.width + distance
        and r1.y + r1.height <= r2.y + r2.height + distance
        and (r2.neighbors > max(3, r1.neighbors) or r1.neighbors < 3)
    )


def group_rectangles(seq: Sequence[DetectionRect], min_neighbors: int) -> List[DetectionRect]:
    """Merge overlapping hits and suppress nested duplicates.

    Args:
        seq: Raw detector hits.
        min_neighbors: Minimum cluster size to keep. ``<= 0`` returns the
            hits unchanged.

    Returns:
        One averaged rectangle per surviving cluster.
    """
    if min_neighbors <= 0:
        return list(seq)
    if not seq:
        return []

    labels, n_classes = array_group(seq, is_neighbor)

    sums = [[0.0, 0.0, 0.0, 0.0] for _ in range(n_classes)]
    counts = [0] * n_classes
    confidences = [-math.inf] * n_classes
    for rect, label in zip(seq, labels):
        acc = sums[label]
        acc[0] += rect.x
        acc[1] += rect.y
        acc[2] += rect.width
        acc[3] += rect.height
        counts[label] += 1
        confidences[label] = max(confidences[label], rect.confidence)

    clusters = []
    for label in range(n_classes):
        n = counts[label]
        if n < min_neighbors:
            continue
        # Mean rounded half up to whole pixels, as ccv's integer division does.
        x, y, w, h = (math.floor((2 * total + n) / (2 * n)) for total in sums[label])
        clusters.append(DetectionRect(x, y, w, h, confidence=confidences[label], neighbors=n))

    return [
        r1 for i, r1 in enumerate(clusters)
        if not any(i != j and _is_nested(r1, r2) for j, r2 in enumerate(clusters))
    ]


__all__ = ["array_group", "is_neighbor", "group_rectangles"]
