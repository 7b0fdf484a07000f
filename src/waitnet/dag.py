# dag.py
from __future__ import annotations

from collections import deque
from typing import Dict, List, Set, Tuple

from .errors import ConfigurationError
from .model import Job, JobNet, Node


def node_index(root: JobNet) -> Dict[str, Node]:
    """Map every node name in the tree (root included) to its node."""
    index: Dict[str, Node] = {root.name: root}
    dupes: Set[str] = set()
    for node in root.walk():
        if node.name in index:
            dupes.add(node.name)
        index[node.name] = node
    if dupes:
        raise ConfigurationError(f"Duplicate job names found: {sorted(dupes)}")
    return index


def _leaf_needs(net: JobNet, inherited: List[str], out: Dict[str, List[str]]) -> None:
    needs = inherited + list(net.needs)
    for child in net:
        if isinstance(child, JobNet):
            _leaf_needs(child, needs, out)
        else:
            out[child.name] = needs + list(child.needs)


def build_dag(root: JobNet) -> Tuple[Dict[str, Set[str]], Dict[str, int]]:
    """
    Build a leaf-level DAG from a job tree.

    A `needs` entry may name a leaf or a net; a net expands to all of its
    leaves. Needs declared on a net apply to every leaf below it.

    Returns:
      adj:   dependency leaf -> set of leaves waiting on it
      indeg: leaf -> number of distinct leaves it waits on
    """
    index = node_index(root)
    leaf_needs: Dict[str, List[str]] = {}
    _leaf_needs(root, [], leaf_needs)

    adj: Dict[str, Set[str]] = {n: set() for n in leaf_needs}
    indeg: Dict[str, int] = {n: 0 for n in leaf_needs}

    for name, needs in leaf_needs.items():
        for need in needs:
            if need not in index:
                raise ConfigurationError(
                    f"Job '{name}' needs missing job '{need}'. "
                    f"Known jobs: {sorted(index)}"
                )
            target = index[need]
            dep_leaves = list(target.leaves()) if isinstance(target, JobNet) else [target]
            for dep in dep_leaves:
                if dep.name == name:
                    raise ConfigurationError(f"Job '{name}' depends on itself (via '{need}')")
                # Edge dep -> name (dep must finish before name)
                if name not in adj[dep.name]:
                    adj[dep.name].add(name)
                    indeg[name] += 1

    topo_levels(adj, indeg)
    return adj, indeg


def topo_levels(adj: Dict[str, Set[str]], indeg: Dict[str, int]) -> List[List[str]]:
    """
    Convert DAG into topological "levels" (stages).
    Each stage can run in parallel.
    """
    indeg = dict(indeg)  # copy (we mutate it)
    q = deque(sorted([n for n, d in indeg.items() if d == 0]))

    levels: List[List[str]] = []
    processed = 0

    while q:
        level_size = len(q)
        level: List[str] = []

        for _ in range(level_size):
            node = q.popleft()
            level.append(node)
            processed += 1

            for child in sorted(adj.get(node, set())):
                indeg[child] -= 1
                if indeg[child] == 0:
                    q.append(child)

        levels.append(level)

    if processed != len(indeg):
        remaining = sorted([n for n, d in indeg.items() if d > 0])
        raise ConfigurationError(f"DAG has a cycle. Stuck jobs: {remaining}")

    return levels


def leaves_by_name(root: JobNet) -> Dict[str, Job]:
    return {leaf.name: leaf for leaf in root.leaves()}
