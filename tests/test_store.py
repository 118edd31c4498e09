from datetime import date

import pytest

from tasktalk.store.json_file import JsonFileStore
from tasktalk.store.memory import MemoryStore


def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(str(path))
    goal = store.create_goal({"userId": "u1", "title": "Learn Python", "targetYear": 2025})
    objective = store.create_objective({"userId": "u1", "goalId": goal.id, "title": "Basics", "targetMonth": 2})
    task = store.create_task({"userId": "u1", "title": "Read docs", "scheduledDate": "2025-02-03",
                              "objectiveId": objective.id, "goalId": goal.id})

    reopened = JsonFileStore(str(path))
    assert reopened.list_goals("u1")[0].title == "Learn Python"
    assert reopened.list_objectives("u1")[0].target_month == 2
    assert reopened.list_tasks("u1")[0] == task
    assert reopened.list_tasks("u2") == []


def test_update_and_delete(tmp_path):
    store = JsonFileStore(str(tmp_path / "store.json"))
    task = store.create_task({"userId": "u1", "title": "Gym", "scheduledDate": "2025-01-15"})
    updated = store.update_task(task.id, {"priority": "high", "scheduledTime": "18:00"})
    assert (updated.priority, updated.scheduled_time) == ("high", "18:00")
    assert store.delete_task(task.id) is True
    assert store.delete_task(task.id) is False
    assert store.list_tasks("u1") == []


def test_update_rejects_unknown_fields_and_missing_tasks():
    store = MemoryStore()
    task = store.create_task({"userId": "u1", "title": "Gym"})
    with pytest.raises(ValueError):
        store.update_task(task.id, {"colour": "red"})
    with pytest.raises(ValueError):
        store.update_task(task.id, {"userId": "u2"})
    with pytest.raises(KeyError):
        store.update_task("missing", {"priority": "low"})


def test_create_requires_title():
    with pytest.raises(ValueError):
        MemoryStore().create_task({"userId": "u1", "title": ""})


def test_list_tasks_date_range_is_inclusive():
    store = MemoryStore()
    for day in ("2025-01-14", "2025-01-15", "2025-01-16", "2025-01-17"):
        store.create_task({"userId": "u1", "title": day, "scheduledDate": day})
    got = store.list_tasks("u1", date(2025, 1, 15), date(2025, 1, 16))
    assert [t.title for t in got] == ["2025-01-15", "2025-01-16"]
    assert [t.title for t in store.list_tasks("u1", date(2025, 1, 17))] == ["2025-01-17"]


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json")
    assert JsonFileStore(str(path)).list_tasks("u1") == []
