from tasktalk.nl.resolver import TaskResolver, similarity
from tasktalk.store.memory import MemoryStore
from tasktalk.store.models import Task


def _tasks(*titles):
    return [Task(id=str(i), user_id="u1", title=t, scheduled_date="2025-01-15") for i, t in enumerate(titles, 1)]


def _resolver():
    return TaskResolver(MemoryStore())


def test_similarity_is_reflexive_and_symmetric():
    assert similarity("team meeting", "team meeting") == 1.0
    assert similarity("", "") == 1.0
    assert similarity("kitten", "sitting") == similarity("sitting", "kitten")
    assert round(similarity("kitten", "sitting"), 4) == round(4 / 7, 4)


def test_contains_stage_picks_first_in_creation_order():
    tasks = _tasks("Team Meeting", "Weekly Meeting Notes")
    assert _resolver().match(tasks, "meeting").title == "Team Meeting"


def test_earlier_stage_wins_over_later_position():
    tasks = _tasks("Meeting prep", "Meeting")
    assert _resolver().match(tasks, "MEETING").title == "Meeting"
    tasks = _tasks("Team Meeting", "Meeting notes")
    assert _resolver().match(tasks, "meeting").title == "Meeting notes"


def test_exact_id_and_token_overlap():
    tasks = _tasks("Write report", "Call the dentist")
    assert _resolver().match(tasks, "2").title == "Call the dentist"
    assert _resolver().match(tasks, " 2\n").title == "Call the dentist"
    assert _resolver().match(tasks, "  write   REPORT ").title == "Write report"
    assert _resolver().match(tasks, "dentist call").title == "Call the dentist"


def test_fuzzy_stage_and_threshold():
    tasks = _tasks("Team Meeting", "Dentist appointment")
    assert _resolver().match(tasks, "dentist apointment").title == "Dentist appointment"
    assert _resolver().match(tasks, "xyz") is None
    assert _resolver().match([], "anything") is None
    assert _resolver().match(tasks, "  ") is None


def test_rank_is_sorted_and_fresh():
    tasks = _tasks("abc", "abd", "xyz")
    ranked = _resolver().rank(tasks, "abc")
    assert [c.task.title for c in ranked] == ["abc", "abd", "xyz"]
    assert ranked[0].score == 1.0


def test_resolve_reads_store_and_is_idempotent():
    store = MemoryStore()
    store.create_task({"userId": "u1", "title": "Team Meeting", "scheduledDate": "2025-01-15"})
    store.create_task({"userId": "u2", "title": "Team Meeting", "scheduledDate": "2025-01-15"})
    resolver = TaskResolver(store)
    first = resolver.resolve("u1", "team meeting")
    assert first is not None and first.user_id == "u1"
    assert resolver.resolve("u1", "team meeting").id == first.id
    assert resolver.resolve("u3", "team meeting") is None
