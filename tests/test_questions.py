from datetime import date

from tasktalk.config import Config
from tasktalk.nl.pipeline import Interpreter
from tasktalk.nl.questions import QuestionAnswerer
from tasktalk.store.memory import MemoryStore

TODAY = date(2025, 1, 15)


def _cfg(**overrides) -> Config:
    base = dict(
        data_dir="artifacts",
        store_backend="memory",
        llm_provider="",
        ollama_base_url="http://localhost:11434",
        ollama_model="llama3.1",
        llm_timeout_s=60,
        text_threshold=0.7,
        voice_threshold=0.6,
        chat_threshold=0.6,
        match_threshold=0.6,
        candidate_limit=5,
        confirm_secret="",
        confirm_ttl_s=600,
        ledger_enabled=True,
        log_level="INFO",
    )
    base.update(overrides)
    return Config(**base)


def _seed(store, title, day="2025-01-15", **extra):
    return store.create_task({"userId": "u1", "title": title, "scheduledDate": day, **extra})


def _answer(store, **entities):
    return QuestionAnswerer(store, today=lambda: TODAY).answer("u1", entities)


def _ask(store, text):
    return Interpreter(store, cfg=_cfg(), today=lambda: TODAY).process("u1", text)


def test_count_today_through_the_pipeline():
    store = MemoryStore()
    _seed(store, "A")
    _seed(store, "B")
    _seed(store, "C", day="2025-01-16")
    result = _ask(store, "how many tasks do I have today")
    assert result.success
    assert result.message == "You have 2 total tasks for today"
    assert result.data["count"] == 2


def test_count_by_status_and_subject():
    store = MemoryStore()
    _seed(store, "A", status="completed")
    _seed(store, "B")
    assert _answer(store, questionType="count", status="done").message == "You have 1 completed task"
    store.create_goal({"userId": "u1", "title": "G"})
    assert _answer(store, questionType="count", subject="goal").message == "You have 1 goal"


def test_time_left_sums_pending_durations():
    store = MemoryStore()
    _seed(store, "A", estimatedDuration=60)
    _seed(store, "B")
    _seed(store, "C", status="completed", estimatedDuration=120)
    _seed(store, "D", day="2025-01-16", estimatedDuration=240)
    result = _ask(store, "How much time do I have left today?")
    assert result.message == (
        "You have approximately 1 hour and 30 minutes of work remaining today (2 pending tasks)"
    )
    assert result.data["totalMinutes"] == 90


def test_time_left_when_nothing_pending():
    result = _answer(MemoryStore(), questionType="time")
    assert result.message == "You have no pending tasks for today. Great job staying on top of things!"


def test_next_task_prefers_timed_tasks():
    store = MemoryStore()
    _seed(store, "Old", day="2025-01-10")
    _seed(store, "Untimed", priority="high")
    _seed(store, "Timed", scheduledTime="09:00")
    result = _ask(store, "What's my next task?")
    assert result.message == 'Your next task is "Timed" today at 09:00 (estimated 30 minutes)'
    assert result.data["nextTask"]["title"] == "Timed"


def test_next_task_on_a_later_day():
    store = MemoryStore()
    _seed(store, "Later", day="2025-01-20")
    result = _answer(store, questionType="next_task")
    assert result.message == 'Your next task is "Later" on 2025-01-20 at no specific time (estimated 30 minutes)'


def test_weekly_progress_starts_on_sunday():
    store = MemoryStore()
    _seed(store, "Sunday", day="2025-01-12", status="completed")
    _seed(store, "Tuesday", day="2025-01-14")
    _seed(store, "Last week", day="2025-01-11", status="completed")
    _seed(store, "Tomorrow", day="2025-01-16", status="completed")
    result = _ask(store, "What's my progress this week?")
    assert result.message == "This week you've completed 1 out of 2 tasks (50% completion rate)"
    assert result.data["completionPercentage"] == 50


def test_goal_progress():
    store = MemoryStore()
    store.create_goal({"userId": "u1", "title": "G1", "status": "completed"})
    result = _answer(store, questionType="progress", subject="goal")
    assert result.message == "You have 1 completed goals and 0 active goals. Time to set new goals!"


def test_schedule_lists_only_timed_tasks():
    store = MemoryStore()
    _seed(store, "Gym", day="2025-01-16", scheduledTime="18:00")
    _seed(store, "Standup", day="2025-01-16", scheduledTime="09:30")
    _seed(store, "Someday", day="2025-01-16")
    result = _answer(store, questionType="schedule", timeframe="tomorrow")
    assert result.message == "Your schedule tomorrow: Standup at 09:30 on 2025-01-16, Gym at 18:00 on 2025-01-16"
    empty = _answer(MemoryStore(), questionType="schedule")
    assert empty.message == "You don't have any scheduled tasks today"


def test_stats():
    store = MemoryStore()
    _seed(store, "A", status="completed", estimatedDuration=40)
    _seed(store, "B", status="completed", estimatedDuration=20)
    _seed(store, "C")
    result = _answer(store, questionType="stats")
    assert result.data == {
        "totalTasks": 3,
        "completedTasks": 2,
        "pendingTasks": 1,
        "inProgressTasks": 0,
        "averageCompletionTime": 30,
    }
    assert result.message.endswith("with an average completion time of 30 minutes")


def test_unrecognized_question_gets_help_text():
    result = _ask(MemoryStore(), "what is the meaning of life")
    assert result.success
    assert result.message.startswith("I can help you with tasks, goals, schedules")
    assert "What's my next task?" in result.data["supportedQuestions"]


def test_questions_run_below_threshold():
    result = Interpreter(MemoryStore(), cfg=_cfg(text_threshold=0.99), today=lambda: TODAY).process(
        "u1", "what can you do")
    assert result.success
    assert result.data["supportedQuestions"]
