# tests/test_task_api.py

from __future__ import annotations

from taskpilot.core.state import AppState
from taskpilot.prioritization.flow import LLMPrioritizer
from taskpilot.tasks import task_api
from taskpilot.tasks.task_models import TaskFilter, TaskSummary

from .fakes import FakeLLMClient, FakePrioritizer, FlakyTaskStore


def _ids(result) -> list[str]:
    assert result.success, result.error
    return [t.id for t in result.data]


def test_add_then_list_includes_new_task(state, make_fields) -> None:
    res = task_api.add_task(state, make_fields(title="Buy milk", predicted_effort="10 minutes"))
    assert res.success
    created = res.data

    listed = task_api.get_tasks(state, "all")
    assert listed.success
    match = [t for t in listed.data if t.id == created.id]
    assert len(match) == 1
    t = match[0]
    assert t.title == "Buy milk"
    assert t.predicted_effort == "10 minutes"
    assert t.completed is False
    assert t.priority_score is None
    assert t.reasoning is None


def test_filters_active_completed_all(state, make_fields) -> None:
    a = task_api.add_task(state, make_fields(title="Alpha")).data
    b = task_api.add_task(state, make_fields(title="Bravo")).data
    task_api.toggle_task_complete(state, b.id, True)

    assert _ids(task_api.get_tasks(state, TaskFilter.ACTIVE)) == [a.id]
    assert _ids(task_api.get_tasks(state, TaskFilter.COMPLETED)) == [b.id]
    assert sorted(_ids(task_api.get_tasks(state, TaskFilter.ALL))) == sorted([a.id, b.id])


def test_toggle_moves_between_filters_and_back(state, make_fields) -> None:
    t = task_api.add_task(state, make_fields()).data

    assert task_api.toggle_task_complete(state, t.id, True).success
    assert t.id not in _ids(task_api.get_tasks(state, "active"))
    assert t.id in _ids(task_api.get_tasks(state, "completed"))

    assert task_api.toggle_task_complete(state, t.id, False).success
    assert t.id in _ids(task_api.get_tasks(state, "active"))
    assert t.id not in _ids(task_api.get_tasks(state, "completed"))


def test_delete_removes_task_from_every_filter(state, make_fields) -> None:
    t = task_api.add_task(state, make_fields()).data
    task_api.get_tasks(state, "all")  # warm the cache

    assert task_api.delete_task(state, t.id).success
    for flt in ("all", "active", "completed"):
        assert t.id not in _ids(task_api.get_tasks(state, flt))


def test_update_overwrites_fields_only(state, make_fields) -> None:
    t = task_api.add_task(state, make_fields(title="Old title")).data
    task_api.toggle_task_complete(state, t.id, True)

    res = task_api.update_task(state, t.id, make_fields(title="New title", predicted_effort="1 day"))
    assert res.success

    got = task_api.get_tasks(state, "all").data[0]
    assert got.title == "New title"
    assert got.predicted_effort == "1 day"
    assert got.completed is True


def test_unknown_filter_is_a_failed_result(state) -> None:
    res = task_api.get_tasks(state, "someday")
    assert res.success is False
    assert res.error == task_api.FETCH_FAILED


def test_prioritize_only_touches_returned_titles(state, make_fields, prioritizer: FakePrioritizer) -> None:
    for title in ("A", "B", "C"):
        task_api.add_task(state, make_fields(title=title))
    prioritizer.scores = {"A": (80, "Due soon."), "C": (30, "Can wait.")}

    tasks = task_api.get_tasks(state, "all").data
    res = task_api.get_prioritized_tasks(state, tasks)
    assert res.success
    assert {p.title for p in res.data} == {"A", "C"}

    # The adapter saw summaries of all three tasks.
    assert sorted(s.title for s in prioritizer.calls[0]) == ["A", "B", "C"]

    after = {t.title: t for t in task_api.get_tasks(state, "all").data}
    assert (after["A"].priority_score, after["A"].reasoning) == (80, "Due soon.")
    assert (after["C"].priority_score, after["C"].reasoning) == (30, "Can wait.")
    assert after["B"].priority_score is None
    assert after["B"].reasoning is None

    ordered = [t.title for t in task_api.get_tasks(state, "all").data]
    assert ordered == ["A", "C", "B"]


def test_prioritize_failure_persists_nothing(state, make_fields, prioritizer: FakePrioritizer) -> None:
    task_api.add_task(state, make_fields(title="A"))
    prioritizer.scores = {"A": (80, "x")}
    prioritizer.fail = True

    res = task_api.get_prioritized_tasks(state, task_api.get_tasks(state, "all").data)
    assert res.success is False
    assert res.error == task_api.PRIORITIZE_FAILED
    assert task_api.get_tasks(state, "all").data[0].priority_score is None


def test_prioritize_unmatched_title_is_silent(state, make_fields) -> None:
    state.prioritizer = FakePrioritizer({"Ghost": (99, "not stored")})
    # Ghost is sent directly as a summary, it has no stored row.
    ghost = make_fields(title="Ghost")
    summary = TaskSummary(
        title=ghost.title,
        description=ghost.description,
        deadline=ghost.deadline,
        importance=ghost.importance,
        predicted_effort=ghost.predicted_effort,
    )
    res = task_api.get_prioritized_tasks(state, [summary])
    assert res.success
    assert task_api.get_tasks(state, "all").data == []


def test_cache_serves_reads_and_mutations_invalidate(settings, make_fields) -> None:
    store = FlakyTaskStore()
    state = AppState(settings=settings, task_store=store, prioritizer=FakePrioritizer())

    task_api.get_tasks(state, "all")
    task_api.get_tasks(state, "all")
    assert store.list_calls == 1
    assert TaskFilter.ALL in state.view_cache

    t = task_api.add_task(state, make_fields()).data
    assert TaskFilter.ALL not in state.view_cache
    assert len(task_api.get_tasks(state, "all").data) == 1
    assert store.list_calls == 2

    for action in (
        lambda: task_api.toggle_task_complete(state, t.id, True),
        lambda: task_api.update_task(state, t.id, make_fields(title="Renamed")),
        lambda: task_api.delete_task(state, t.id),
    ):
        task_api.get_tasks(state, "all")
        assert TaskFilter.ALL in state.view_cache
        assert action().success
        assert TaskFilter.ALL not in state.view_cache


def test_store_failures_become_error_results(settings, make_fields) -> None:
    store = FlakyTaskStore(failing={"list_tasks", "add_task", "update_task", "delete_task", "set_completed"})
    state = AppState(settings=settings, task_store=store, prioritizer=FakePrioritizer())

    assert task_api.get_tasks(state).error == task_api.FETCH_FAILED
    assert task_api.add_task(state, make_fields()).error == task_api.ADD_FAILED
    assert task_api.update_task(state, "x", make_fields()).error == task_api.UPDATE_FAILED
    assert task_api.delete_task(state, "x").error == task_api.DELETE_FAILED
    assert task_api.toggle_task_complete(state, "x", True).error == task_api.TOGGLE_FAILED


def test_failed_sibling_update_does_not_roll_back_others(settings, make_fields) -> None:
    store = FlakyTaskStore(failing_titles={"B"})
    prioritizer = FakePrioritizer({"A": (10, "a"), "B": (20, "b"), "C": (30, "c")})
    state = AppState(settings=settings, task_store=store, prioritizer=prioritizer)
    for title in ("A", "B", "C"):
        task_api.add_task(state, make_fields(title=title))

    res = task_api.get_prioritized_tasks(state, task_api.get_tasks(state).data)
    assert res.success is False
    assert res.error == task_api.PRIORITIZE_FAILED

    after = {t.title: t.priority_score for t in task_api.get_tasks(state).data}
    assert after == {"A": 10, "B": None, "C": 30}


def test_non_finite_score_is_dropped_not_raised(state, make_fields) -> None:
    for title in ("A", "B"):
        task_api.add_task(state, make_fields(title=title))
    answer = (
        '{"tasks": [{"title": "A", "priorityScore": 1e999, "reasoning": "huge"},'
        ' {"title": "B", "priorityScore": 42, "reasoning": "fine"}]}'
    )
    state.prioritizer = LLMPrioritizer(FakeLLMClient(answer))

    res = task_api.get_prioritized_tasks(state, task_api.get_tasks(state).data)
    assert res.success
    assert [(p.title, p.priority_score) for p in res.data] == [("B", 42)]

    after = {t.title: t.priority_score for t in task_api.get_tasks(state).data}
    assert after == {"A": None, "B": 42}


def test_unexpected_adapter_error_becomes_failed_result(state, make_fields) -> None:
    task_api.add_task(state, make_fields(title="A"))
    state.prioritizer = LLMPrioritizer(FakeLLMClient(error=ValueError("bad")))

    res = task_api.get_prioritized_tasks(state, task_api.get_tasks(state).data)
    assert res.success is False
    assert res.error == task_api.PRIORITIZE_FAILED
    assert task_api.get_tasks(state).data[0].priority_score is None


def test_unexpected_store_error_becomes_failed_result(state, make_fields, monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise KeyError("corrupt row")

    for name in ("list_tasks", "add_task", "set_priority_by_title"):
        monkeypatch.setattr(state.task_store, name, boom)

    assert task_api.get_tasks(state).error == task_api.FETCH_FAILED
    assert task_api.add_task(state, make_fields()).error == task_api.ADD_FAILED

    state.prioritizer = FakePrioritizer({"A": (50, "x")})
    f = make_fields(title="A")
    summary = TaskSummary(
        title=f.title,
        description=f.description,
        deadline=f.deadline,
        importance=f.importance,
        predicted_effort=f.predicted_effort,
    )
    assert task_api.get_prioritized_tasks(state, [summary]).error == task_api.PRIORITIZE_FAILED
