"""Tests for specdriven.tasks.graph — ordering, cycles, readiness, projection."""

from __future__ import annotations

from specdriven.tasks.graph import (
    actionable_tasks,
    dependency_graph,
    dependents,
    detect_cycles,
    explain_block,
    get_next_actionable,
    id_sort_key,
    next_actionable_task,
    topological_order,
)
from specdriven.tasks.model import TaskStatus
from specdriven.tasks.parser import parse

DONE = TaskStatus.DONE
BLOCKED = TaskStatus.BLOCKED


def _ids(tasks) -> list[str]:
    return [t.id for t in tasks]


def _assert_valid_order(tasks) -> None:
    ordered = _ids(topological_order(tasks))
    position = {tid: i for i, tid in enumerate(ordered)}
    for t in tasks:
        for dep in t.depends_on:
            assert position[dep] < position[t.id], f"{dep} should precede {t.id}"


# ═══════════════════════════════════════════════════════════════════
#  Topological order
# ═══════════════════════════════════════════════════════════════════


class TestTopologicalOrder:
    """topological_order() places dependencies first, otherwise keeps input order."""

    def test_independent_tasks_keep_input_order(self, make_task):
        tasks = [make_task("1.3"), make_task("1.1"), make_task("1.2")]
        assert _ids(topological_order(tasks)) == ["1.3", "1.1", "1.2"]

    def test_dependency_moved_first(self, make_task):
        tasks = [make_task("1.1", depends_on=["1.2"]), make_task("1.2")]
        assert _ids(topological_order(tasks)) == ["1.2", "1.1"]

    def test_chain(self, make_task):
        tasks = [
            make_task("1.3", depends_on=["1.2"]),
            make_task("1.2", depends_on=["1.1"]),
            make_task("1.1"),
        ]
        assert _ids(topological_order(tasks)) == ["1.1", "1.2", "1.3"]

    def test_diamond(self, make_task):
        tasks = [
            make_task("4.1", depends_on=["2.1", "3.1"]),
            make_task("2.1", depends_on=["1.1"]),
            make_task("3.1", depends_on=["1.1"]),
            make_task("1.1"),
        ]
        ordered = _ids(topological_order(tasks))
        assert ordered == ["1.1", "2.1", "3.1", "4.1"]
        _assert_valid_order(tasks)

    def test_every_task_once(self, make_task):
        tasks = [
            make_task("1.1"),
            make_task("1.2", depends_on=["1.1"]),
            make_task("1.3", depends_on=["1.1", "1.2"]),
            make_task("2.1", depends_on=["1.3"]),
        ]
        ordered = _ids(topological_order(tasks))
        assert sorted(ordered) == sorted(_ids(tasks))
        _assert_valid_order(tasks)

    def test_unknown_dependency_ignored(self, make_task):
        tasks = [make_task("1.1", depends_on=["9.9"])]
        assert _ids(topological_order(tasks)) == ["1.1"]

    def test_cycle_still_terminates(self, make_task):
        tasks = [make_task("1.1", depends_on=["1.2"]), make_task("1.2", depends_on=["1.1"])]
        assert sorted(_ids(topological_order(tasks))) == ["1.1", "1.2"]

    def test_long_chain(self, make_task):
        n = 3000
        tasks = [make_task(f"1.{i}", depends_on=[f"1.{i + 1}"] if i < n else []) for i in range(1, n + 1)]
        ordered = _ids(topological_order(tasks))
        assert ordered[0] == f"1.{n}"
        assert ordered[-1] == "1.1"

    def test_empty(self):
        assert topological_order([]) == []


# ═══════════════════════════════════════════════════════════════════
#  Cycle detection
# ═══════════════════════════════════════════════════════════════════


class TestDetectCycles:
    """detect_cycles() reports each cycle as a closed id path."""

    def test_no_cycles_chain(self, make_task):
        tasks = [
            make_task("A"),
            make_task("B", depends_on=["A"]),
            make_task("C", depends_on=["B"]),
        ]
        assert detect_cycles(tasks) == []

    def test_diamond_no_cycle(self, make_task):
        tasks = [
            make_task("A"),
            make_task("B", depends_on=["A"]),
            make_task("C", depends_on=["A"]),
            make_task("D", depends_on=["B", "C"]),
        ]
        assert detect_cycles(tasks) == []

    def test_two_task_cycle(self, make_task):
        tasks = [make_task("2.1", depends_on=["2.2"]), make_task("2.2", depends_on=["2.1"])]
        assert detect_cycles(tasks) == [["2.1", "2.2", "2.1"]]

    def test_three_task_cycle(self, make_task):
        tasks = [
            make_task("A", depends_on=["C"]),
            make_task("B", depends_on=["A"]),
            make_task("C", depends_on=["B"]),
        ]
        cycles = detect_cycles(tasks)
        assert len(cycles) == 1
        assert set(cycles[0]) == {"A", "B", "C"}
        assert cycles[0][0] == cycles[0][-1]

    def test_self_cycle(self, make_task):
        assert detect_cycles([make_task("A", depends_on=["A"])]) == [["A", "A"]]

    def test_independent_cycles_all_reported(self, make_task):
        tasks = [
            make_task("1.1", depends_on=["1.2"]),
            make_task("1.2", depends_on=["1.1"]),
            make_task("2.1", depends_on=["2.2"]),
            make_task("2.2", depends_on=["2.1"]),
            make_task("3.1"),
        ]
        assert detect_cycles(tasks) == [["1.1", "1.2", "1.1"], ["2.1", "2.2", "2.1"]]

    def test_cycle_reached_from_outside(self, make_task):
        tasks = [
            make_task("1.1", depends_on=["1.2"]),
            make_task("1.2", depends_on=["1.3"]),
            make_task("1.3", depends_on=["1.2"]),
        ]
        assert detect_cycles(tasks) == [["1.2", "1.3", "1.2"]]

    def test_unknown_dependency_ignored(self, make_task):
        assert detect_cycles([make_task("1.1", depends_on=["9.9"])]) == []

    def test_empty(self):
        assert detect_cycles([]) == []


# ═══════════════════════════════════════════════════════════════════
#  Next actionable task
# ═══════════════════════════════════════════════════════════════════


class TestNextActionable:
    """next_actionable_task() picks pending tasks with every dependency done."""

    def test_example_plan(self):
        text = (
            "## Phase 1: Setup\n\n"
            "### Task 1.1: First\n\n- **Status**: pending\n\n"
            "### Task 1.2: Second\n\n- **Status**: blocked\n- **Depends On**: 1.1\n"
        )
        plan = parse(text, "p")
        assert get_next_actionable(plan).id == "1.1"

    def test_priority_then_id(self, make_task):
        tasks = [
            make_task("1.10", priority=2),
            make_task("1.9", priority=2),
            make_task("1.1", priority=5),
        ]
        assert next_actionable_task(tasks).id == "1.9"

    def test_lower_priority_wins(self, make_task):
        tasks = [make_task("1.1", priority=3), make_task("2.1", priority=1)]
        assert next_actionable_task(tasks).id == "2.1"

    def test_unsatisfied_dependency_never_returned(self, make_task):
        tasks = [
            make_task("1.1", status=TaskStatus.IN_PROGRESS),
            make_task("1.2", depends_on=["1.1"], priority=0),
            make_task("1.3", priority=50),
        ]
        assert next_actionable_task(tasks).id == "1.3"

    def test_partially_done_dependencies(self, make_task):
        tasks = [
            make_task("1.1", status=DONE),
            make_task("1.2"),
            make_task("1.3", depends_on=["1.1", "1.2"], priority=0),
        ]
        assert _ids(actionable_tasks(tasks)) == ["1.2"]

    def test_all_dependencies_done(self, make_task):
        tasks = [
            make_task("1.1", status=DONE),
            make_task("1.2", status=DONE),
            make_task("1.3", depends_on=["1.1", "1.2"], priority=0),
        ]
        assert next_actionable_task(tasks).id == "1.3"

    def test_only_pending_considered(self, make_task):
        tasks = [
            make_task("1.1", status=BLOCKED),
            make_task("1.2", status=TaskStatus.SKIPPED),
            make_task("1.3", status=DONE),
        ]
        assert next_actionable_task(tasks) is None

    def test_missing_dependency_not_satisfied(self, make_task):
        assert next_actionable_task([make_task("1.1", depends_on=["9.9"])]) is None

    def test_empty(self):
        assert next_actionable_task([]) is None


def test_id_sort_key_is_natural():
    ids = ["1.10", "1.2", "10.1", "2.1", "1.2.1"]
    assert sorted(ids, key=id_sort_key) == ["1.2", "1.2.1", "1.10", "2.1", "10.1"]


# ═══════════════════════════════════════════════════════════════════
#  Projection and explanations
# ═══════════════════════════════════════════════════════════════════


class TestDependencyGraph:
    def test_nodes_and_edges(self, make_task):
        tasks = [
            make_task("1.1", title="Model", status=DONE),
            make_task("1.2", title="API", depends_on=["1.1"]),
        ]
        graph = dependency_graph(tasks)
        assert [(n.id, n.label, n.status) for n in graph.nodes] == [
            ("1.1", "1.1: Model", DONE),
            ("1.2", "1.2: API", TaskStatus.PENDING),
        ]
        assert [(e.source, e.target) for e in graph.edges] == [("1.1", "1.2")]

    def test_to_dict(self, make_task):
        graph = dependency_graph([make_task("1.1", title="A"), make_task("1.2", title="B", depends_on=["1.1"])])
        assert graph.to_dict() == {
            "nodes": [
                {"id": "1.1", "label": "1.1: A", "status": "pending"},
                {"id": "1.2", "label": "1.2: B", "status": "pending"},
            ],
            "edges": [{"from": "1.1", "to": "1.2"}],
        }


class TestExplain:
    def test_dependents(self, make_task):
        tasks = [
            make_task("1.1"),
            make_task("1.2", depends_on=["1.1"]),
            make_task("1.3", depends_on=["1.2", "1.1"]),
        ]
        assert dependents(tasks, "1.1") == ["1.2", "1.3"]
        assert dependents(tasks, "1.3") == []

    def test_explain_block(self, make_task, make_plan):
        plan = make_plan([
            make_task("1.1", status=TaskStatus.IN_PROGRESS),
            make_task("1.2", status=DONE),
            make_task("1.3", status=BLOCKED, depends_on=["1.1", "1.2"]),
        ])
        assert explain_block(plan, "1.3") == "status: blocked dependsOn: 1.1 (in-progress)"

    def test_explain_actionable_is_empty(self, make_task, make_plan):
        plan = make_plan([make_task("1.1")])
        assert explain_block(plan, "1.1") == ""

    def test_explain_unknown(self, make_task, make_plan):
        plan = make_plan([make_task("1.1")])
        assert explain_block(plan, "7.7") == "unknown task 7.7"
