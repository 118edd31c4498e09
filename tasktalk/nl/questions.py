from __future__ import annotations
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from tasktalk.core.types import CommandResult
from tasktalk.store.base import Store
from tasktalk.store.models import Task
from .fields import STATUS_SYNONYMS

PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}

SUPPORTED_QUESTIONS = [
    "What's my next task?",
    "How many tasks do I have today?",
    "What's my progress this week?",
    "What's my schedule for tomorrow?",
    "How much time do I have left today?",
]


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def _span(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{_plural(hours, 'hour')} and {_plural(rest, 'minute')}"
    if hours:
        return _plural(hours, "hour")
    return _plural(rest, "minute")


def _next_key(task: Task):
    # Timed tasks before untimed ones on the same day, then by priority.
    return (
        task.scheduled_date,
        task.scheduled_time is None,
        task.scheduled_time or "",
        PRIORITY_ORDER.get(task.priority, 2),
    )


class QuestionAnswerer:
    """Answers ``ask_question`` commands from what the Store holds."""

    def __init__(self, store: Store, today: Optional[Callable[[], date]] = None):
        self.store = store
        self._today = today or date.today
        self.handlers: Dict[str, Callable[[str, Dict[str, Any]], CommandResult]] = {
            "count": self.count,
            "time": self.time_left,
            "next_task": self.next_task,
            "progress": self.progress,
            "schedule": self.schedule,
            "stats": self.stats,
        }

    def answer(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        handler = self.handlers.get(entities.get("questionType") or "", self.general)
        return handler(user_id, entities)

    def count(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        subject = entities.get("subject") or "task"
        timeframe = entities.get("timeframe")
        if subject == "goal":
            n = len(self.store.list_goals(user_id))
            return CommandResult(True, f"You have {_plural(n, 'goal')}", {"count": n, "subject": subject})
        if subject == "objective":
            n = len(self.store.list_objectives(user_id))
            return CommandResult(True, f"You have {_plural(n, 'objective')}", {"count": n, "subject": subject})
        tasks = self._tasks_in(user_id, timeframe)
        status = entities.get("status")
        suffix = f" for {timeframe}" if timeframe else ""
        if status:
            status = STATUS_SYNONYMS.get(status, status)
            n = sum(1 for t in tasks if t.status == status)
            label = status.replace("_", " ")
            message = f"You have {n} {label} {'task' if n == 1 else 'tasks'}{suffix}"
        else:
            n = len(tasks)
            message = f"You have {n} total {'task' if n == 1 else 'tasks'}{suffix}"
        return CommandResult(True, message, {"count": n, "subject": subject, "timeframe": timeframe})

    def time_left(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        today = self._today()
        pending = [t for t in self.store.list_tasks(user_id, today, today) if t.status == "pending"]
        if not pending:
            return CommandResult(True, "You have no pending tasks for today. Great job staying on top of things!",
                                 {"freeTime": True})
        total = sum(t.estimated_duration or 30 for t in pending)
        return CommandResult(
            True,
            f"You have approximately {_span(total)} of work remaining today ({_plural(len(pending), 'pending task')})",
            {
                "totalMinutes": total,
                "pendingTaskCount": len(pending),
                "tasks": [{"title": t.title, "duration": t.estimated_duration} for t in pending],
            },
        )

    def next_task(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        today = self._today()
        pending = [t for t in self.store.list_tasks(user_id, today) if t.status == "pending"]
        if not pending:
            return CommandResult(True, "You don't have any pending tasks. Time to relax or plan ahead!", {"nextTask": None})
        task = min(pending, key=_next_key)
        at = task.scheduled_time or "no specific time"
        when = "today" if task.scheduled_date == today.isoformat() else f"on {task.scheduled_date}"
        message = f'Your next task is "{task.title}" {when} at {at}'
        if task.estimated_duration:
            message += f" (estimated {task.estimated_duration} minutes)"
        return CommandResult(True, message, {"nextTask": task.to_dict()})

    def progress(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        if entities.get("subject") == "goal":
            goals = self.store.list_goals(user_id)
            done = sum(1 for g in goals if g.status == "completed")
            active = sum(1 for g in goals if g.status == "active")
            tail = "Keep pushing forward!" if active else "Time to set new goals!"
            return CommandResult(
                True,
                f"You have {done} completed goals and {active} active goals. {tail}",
                {"totalGoals": len(goals), "completedGoals": done, "activeGoals": active},
            )
        today = self._today()
        # Weeks start on Sunday.
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        tasks = self.store.list_tasks(user_id, start, today)
        done = sum(1 for t in tasks if t.status == "completed")
        pct = round(done * 100 / len(tasks)) if tasks else 0
        return CommandResult(
            True,
            f"This week you've completed {done} out of {len(tasks)} tasks ({pct}% completion rate)",
            {"completedTasks": done, "totalTasks": len(tasks), "completionPercentage": pct},
        )

    def schedule(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        today = self._today()
        timeframe = entities.get("timeframe") or ""
        start, end, label = today, today, "today"
        if timeframe == "tomorrow":
            start = end = today + timedelta(days=1)
            label = "tomorrow"
        elif timeframe == "week":
            end = today + timedelta(days=7)
            label = "this week"
        timed = sorted(
            (t for t in self.store.list_tasks(user_id, start, end) if t.scheduled_time),
            key=lambda t: (t.scheduled_date, t.scheduled_time),
        )
        if not timed:
            return CommandResult(True, f"You don't have any scheduled tasks {label}", {"tasks": []})
        listing = ", ".join(f"{t.title} at {t.scheduled_time} on {t.scheduled_date}" for t in timed)
        return CommandResult(
            True,
            f"Your schedule {label}: {listing}",
            {"tasks": [{"title": t.title, "scheduledDate": t.scheduled_date, "scheduledTime": t.scheduled_time,
                        "priority": t.priority} for t in timed]},
        )

    def stats(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        tasks = self.store.list_tasks(user_id)
        by_status: Dict[str, List[Task]] = {}
        for t in tasks:
            by_status.setdefault(t.status, []).append(t)
        completed = by_status.get("completed", [])
        avg = round(sum(t.estimated_duration for t in completed) / len(completed)) if completed else 0
        data = {
            "totalTasks": len(tasks),
            "completedTasks": len(completed),
            "pendingTasks": len(by_status.get("pending", [])),
            "inProgressTasks": len(by_status.get("in_progress", [])),
            "averageCompletionTime": avg,
        }
        return CommandResult(
            True,
            f"Your productivity stats: {data['completedTasks']} completed tasks, {data['pendingTasks']} pending tasks, "
            f"with an average completion time of {avg or 'N/A'} minutes",
            data,
        )

    def general(self, user_id: str, entities: Dict[str, Any]) -> CommandResult:
        return CommandResult(
            True,
            "I can help you with tasks, goals, schedules, and productivity questions. "
            "Try asking about your next task, how many tasks you have, or your progress this week!",
            {"supportedQuestions": list(SUPPORTED_QUESTIONS)},
        )

    def _tasks_in(self, user_id: str, timeframe: Optional[str]) -> List[Task]:
        today = self._today()
        if timeframe == "today":
            return self.store.list_tasks(user_id, today, today)
        if timeframe == "tomorrow":
            day = today + timedelta(days=1)
            return self.store.list_tasks(user_id, day, day)
        if timeframe == "week":
            return self.store.list_tasks(user_id, today, today + timedelta(days=7))
        return self.store.list_tasks(user_id)
