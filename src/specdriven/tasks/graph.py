"""Read-only dependency queries over a task collection.

Edges point from a task to the tasks it depends on. Ids that are not part of
the collection are ignored by every query here.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, field

from specdriven.tasks.model import Plan, Task, TaskStatus


@dataclass
class GraphNode:
    id: str
    label: str
    status: TaskStatus


@dataclass
class GraphEdge:
    source: str
    target: str


@dataclass
class DependencyGraph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "nodes": [{**asdict(n), "status": n.status.value} for n in self.nodes],
            "edges": [{"from": e.source, "to": e.target} for e in self.edges],
        }


def id_sort_key(task_id: str) -> tuple:
    """Natural ordering for hierarchical ids: ``1.2`` sorts before ``1.10``."""
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in task_id.split("."))


# ── ordering ─────────────────────────────────────────────────────


def topological_order(tasks: Iterable[Task]) -> list[Task]:
    """Order *tasks* so every task follows the tasks it depends on.

    Depth-first; a task is emitted once all of its dependencies have been.
    Independent tasks keep their input order. With a cycle present the
    result is still a permutation of the input, but the cycle's edges
    cannot all be honored; use :func:`detect_cycles` to find them.
    """
    task_list = list(tasks)
    by_id = {t.id: t for t in task_list}
    visited: set[str] = set()
    ordered: list[Task] = []

    for root in task_list:
        if root.id in visited:
            continue
        visited.add(root.id)
        stack: list[tuple[Task, Iterator[str]]] = [(root, iter(root.depends_on))]
        while stack:
            task, deps = stack[-1]
            for dep_id in deps:
                dep = by_id.get(dep_id)
                if dep is not None and dep_id not in visited:
                    visited.add(dep_id)
                    stack.append((dep, iter(dep.depends_on)))
                    break
            else:
                stack.pop()
                ordered.append(task)
    return ordered


def detect_cycles(tasks: Iterable[Task]) -> list[list[str]]:
    """Return every dependency cycle found, each closed on its first id.

    ``2.1 -> 2.2 -> 2.1`` comes back as ``["2.1", "2.2", "2.1"]``. Each back
    edge met during the depth-first walk yields one cycle, so independent
    cycles are all reported.
    """
    task_list = list(tasks)
    by_id = {t.id: t for t in task_list}
    visited: set[str] = set()
    on_stack: set[str] = set()
    path: list[str] = []
    cycles: list[list[str]] = []

    for root in task_list:
        if root.id in visited:
            continue
        visited.add(root.id)
        on_stack.add(root.id)
        path.append(root.id)
        stack: list[Iterator[str]] = [iter(root.depends_on)]
        while stack:
            for dep_id in stack[-1]:
                if dep_id not in by_id:
                    continue
                if dep_id in on_stack:
                    start = path.index(dep_id)
                    cycles.append(path[start:] + [dep_id])
                elif dep_id not in visited:
                    visited.add(dep_id)
                    on_stack.add(dep_id)
                    path.append(dep_id)
                    stack.append(iter(by_id[dep_id].depends_on))
                    break
            else:
                stack.pop()
                on_stack.discard(path.pop())
    return cycles


# ── readiness ────────────────────────────────────────────────────


def deps_satisfied(task: Task, by_id: dict[str, Task]) -> bool:
    for dep_id in task.depends_on:
        dep = by_id.get(dep_id)
        if dep is None or dep.status != TaskStatus.DONE:
            return False
    return True


def actionable_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Pending tasks whose dependencies are all done, best candidate first."""
    task_list = list(tasks)
    by_id = {t.id: t for t in task_list}
    ready = [
        t for t in task_list
        if t.status == TaskStatus.PENDING and deps_satisfied(t, by_id)
    ]
    ready.sort(key=lambda t: (t.priority, id_sort_key(t.id)))
    return ready


def next_actionable_task(tasks: Iterable[Task]) -> Task | None:
    """The pending, unblocked task with the lowest priority, then lowest id."""
    ready = actionable_tasks(tasks)
    return ready[0] if ready else None


def get_next_actionable(plan: Plan) -> Task | None:
    return next_actionable_task(plan.task_list())


def dependents(tasks: Iterable[Task], task_id: str) -> list[str]:
    """Ids of the tasks that list *task_id* as a dependency."""
    return [t.id for t in tasks if task_id in t.depends_on]


def explain_block(plan: Plan, task_id: str) -> str:
    """Human-readable explanation of why *task_id* is not actionable."""
    task = plan.get_task(task_id)
    if task is None:
        return f"unknown task {task_id}"

    reasons: list[str] = []
    if task.status != TaskStatus.PENDING:
        reasons.append(f"status: {task.status.value}")

    waiting: list[str] = []
    for dep_id in task.depends_on:
        dep = plan.get_task(dep_id)
        if dep is None:
            waiting.append(f"{dep_id} (missing)")
        elif dep.status != TaskStatus.DONE:
            waiting.append(f"{dep_id} ({dep.status.value})")
    if waiting:
        reasons.append(f"dependsOn: {' '.join(waiting)}")

    return " ".join(reasons)


# ── projection ───────────────────────────────────────────────────


def dependency_graph(tasks: Iterable[Task]) -> DependencyGraph:
    """Node/edge view for visualization; edges run from dependency to dependent."""
    graph = DependencyGraph()
    for t in tasks:
        graph.nodes.append(GraphNode(id=t.id, label=f"{t.id}: {t.title}", status=t.status))
        for dep_id in t.depends_on:
            graph.edges.append(GraphEdge(source=dep_id, target=t.id))
    return graph
