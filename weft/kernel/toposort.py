"""
Dependency resolution for listeners

Kahn's algorithm over "run after" edges. Ids referenced only through
``after`` become zero-weight nodes so the sort itself never fails on them;
rejecting such references is the registry's job. When the sort cannot
place every node, a depth-first search over the unresolved remainder
extracts one concrete cycle for the error message.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from weft.errors import CyclicDependencyError


@dataclass(frozen=True)
class TopoNode:
    id: str
    after: Sequence[str] = field(default_factory=tuple)


def _build_graph(nodes: Iterable[TopoNode]) -> tuple[dict[str, list[str]], dict[str, int]]:
    graph: dict[str, list[str]] = {}
    in_degree: dict[str, int] = {}

    nodes = list(nodes)
    for node in nodes:
        graph.setdefault(node.id, [])
        in_degree.setdefault(node.id, 0)

    for node in nodes:
        for dep in node.after:
            if dep not in graph:
                graph[dep] = []
                in_degree[dep] = 0
            # edge: dep -> node
            graph[dep].append(node.id)
            in_degree[node.id] += 1

    return graph, in_degree


def toposort(nodes: Sequence[TopoNode]) -> list[str]:
    """
    Topologically sort nodes by their ``after`` dependencies.

    Args:
        nodes: Nodes with id and dependency ids

    Returns:
        Ids of the input nodes, every id placed after all of its dependencies

    Raises:
        CyclicDependencyError: the graph contains a cycle
    """
    graph, in_degree = _build_graph(nodes)

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    result: list[str] = []

    while queue:
        current = queue.popleft()
        result.append(current)
        for neighbor in graph[current]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(result) != len(graph):
        placed = set(result)
        remaining = [node_id for node_id in graph if node_id not in placed]
        raise CyclicDependencyError(find_cycle(remaining, graph))

    input_ids = {node.id for node in nodes}
    return [node_id for node_id in result if node_id in input_ids]


def find_cycle(remaining: Sequence[str], graph: dict[str, list[str]]) -> list[str]:
    """
    Extract one cycle from the nodes Kahn's algorithm could not place.

    The returned path is closed: it starts and ends on the same id.
    """
    candidates = set(remaining)
    visited: set[str] = set()

    for start in remaining:
        if start in visited:
            continue

        path: list[str] = [start]
        on_path = {start}
        visited.add(start)
        stack = [iter(graph.get(start, ()))]

        while stack:
            neighbor = next(stack[-1], None)
            if neighbor is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if neighbor not in candidates:
                continue
            if neighbor in on_path:
                return path[path.index(neighbor):] + [neighbor]
            if neighbor not in visited:
                visited.add(neighbor)
                path.append(neighbor)
                on_path.add(neighbor)
                stack.append(iter(graph.get(neighbor, ())))

    return list(remaining)


def dependency_levels(nodes: Sequence[TopoNode]) -> dict[str, int]:
    """
    Longest-path distance of each node from a dependency-free node.

    Nodes on the same level have no ordering constraint between them.
    """
    order = toposort(nodes)
    after = {node.id: node.after for node in nodes}
    levels: dict[str, int] = {}
    for node_id in order:
        deps = [levels[dep] for dep in after.get(node_id, ()) if dep in levels]
        levels[node_id] = max(deps) + 1 if deps else 0
    return levels
