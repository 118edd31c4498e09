"""Executes a ParsedCommand against the Store.

Handlers raise TaskTalkError subclasses for anything the user can fix; the
dispatcher turns those into a failed CommandResult. A missing handler raises
UnknownIntentError and is not caught here.
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Dict, Iterator, List, Optional

from tasktalk.core.errors import (
    AmbiguousReferenceError,
    DownstreamError,
    InvalidValueError,
    MissingFieldError,
    NotFoundError,
    TaskTalkError,
    UnknownIntentError,
)
from tasktalk.core.types import CommandResult, FieldUpdate, ParsedCommand
from tasktalk.llm.planner import GenerativePlanner
from tasktalk.store.base import Store
from tasktalk.store.models import Goal, Objective, Task
from .datetime_phrases import resolve_date
from .extractor import MONTHS
from .fields import (
    PRIORITIES,
    SUPPORTED_FIELDS,
    field_display_name,
    normalize_field,
    normalize_value,
    validate_field_value,
    value_display_text,
)
from .questions import QuestionAnswerer
from .resolver import DEFAULT_THRESHOLD, TaskResolver

logger = logging.getLogger(__name__)

Handler = Callable[[str, Dict[str, Any], Dict[str, Any]], CommandResult]

_INT_FIELDS = ("estimatedDuration",)


@contextmanager
def _downstream(what: str) -> Iterator[None]:
    """Any Store fault becomes a generic DownstreamError."""
    try:
        yield
    except TaskTalkError:
        raise
    except Exception as e:
        logger.exception("store failure while trying to %s", what)
        raise DownstreamError(f"Failed to {what}") from e


def _month_name(month: int) -> str:
    return MONTHS[month - 1].capitalize()


def _find_by_title(items: List[Any], fragment: str) -> Optional[Any]:
    needle = fragment.lower().strip()
    for item in items:
        if needle in item.title.lower():
            return item
    return None


class CommandDispatcher:
    def __init__(
        self,
        store: Store,
        planner: Optional[GenerativePlanner] = None,
        match_threshold: float = DEFAULT_THRESHOLD,
        candidate_limit: int = 5,
        today: Optional[Callable[[], date]] = None,
    ):
        self.store = store
        self.planner = planner
        self.resolver = TaskResolver(store, threshold=match_threshold)
        self.candidate_limit = candidate_limit
        self._today = today or date.today
        self.answerer = QuestionAnswerer(store, today=self._today)
        self.handlers: Dict[str, Handler] = {
            "add_task": self.add_task,
            "modify_task": self.modify_task,
            "delete_task": self.delete_task,
            "schedule_task": self.schedule_task,
            "create_goal": self.create_goal,
            "create_objective": self.create_objective,
            "create_roadmap": self.create_roadmap,
            "ask_question": self.ask_question,
        }

    def dispatch(self, user_id: str, command: ParsedCommand, user: Optional[Dict[str, Any]] = None) -> CommandResult:
        handler = self.handlers.get(command.intent)
        if handler is None:
            raise UnknownIntentError(f"no handler for intent {command.intent!r}")
        profile = user or {"id": user_id}
        try:
            result = handler(user_id, dict(command.entities), profile)
        except TaskTalkError as e:
            logger.info("%s failed for %s: %s", command.intent, user_id, e.message)
            return CommandResult(False, e.message)
        logger.info("%s succeeded for %s", command.intent, user_id)
        return result

    # ------------------------------------------------------------ helpers

    def resolve_task(self, user_id: str, entities: Dict[str, Any], verb: str) -> Task:
        reference = entities.get("taskIdentifier") or entities.get("title")
        if not reference:
            raise MissingFieldError("taskIdentifier", f"Please specify which task to {verb} by title or identifier")
        with _downstream(f"{verb} task"):
            task = self.resolver.resolve(user_id, str(reference))
            if task is None:
                tasks = self.store.list_tasks(user_id)
                titles = [t.title for t in tasks[: self.candidate_limit]]
                raise AmbiguousReferenceError(str(reference), titles, len(tasks))
        return task

    def _canonical(self, update: FieldUpdate) -> Dict[str, Any]:
        value: Any = update.value
        if update.field in _INT_FIELDS:
            value = int(value)
        return {update.field: value}

    def _field_update(self, raw_field: str, raw_value: Any) -> FieldUpdate:
        name = normalize_field(raw_field)
        if not name:
            raise InvalidValueError(
                f"Cannot modify field: {raw_field}. Supported fields: {', '.join(SUPPORTED_FIELDS)}"
            )
        value = normalize_value(name, raw_value, today=self._today())
        check = validate_field_value(name, value)
        if not check.valid:
            raise InvalidValueError(check.message)
        return FieldUpdate(name, value)

    # ------------------------------------------------------------ tasks

    def add_task(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        title = (entities.get("title") or "").strip()
        if not title:
            raise MissingFieldError("title", 'Task title is required. Try: add task "call mom" tomorrow at 5pm')
        title = self._field_update("title", title).value
        duration = entities.get("duration")
        minutes = self._field_update("duration", 30 if duration in (None, "") else duration).value
        today = self._today()
        record: Dict[str, Any] = {
            "userId": user_id,
            "title": title,
            "description": entities.get("description") or "",
            "scheduledDate": resolve_date(entities["date"], today).isoformat() if entities.get("date") else today.isoformat(),
            "scheduledTime": normalize_value("scheduledTime", entities["time"]) if entities.get("time") else None,
            "estimatedDuration": int(minutes),
            "priority": normalize_value("priority", entities.get("priority") or "medium"),
            "status": "pending",
            "tags": [],
        }
        link = ""
        if entities.get("objective"):
            with _downstream("create task"):
                objective = _find_by_title(self.store.list_objectives(user_id), entities["objective"])
            if objective is None:
                raise NotFoundError(f'I couldn\'t find an objective matching "{entities["objective"]}"')
            record["objectiveId"], record["goalId"] = objective.id, objective.goal_id
            link = f' under objective "{objective.title}"'
        elif entities.get("goal"):
            with _downstream("create task"):
                goal = _find_by_title(self.store.list_goals(user_id), entities["goal"])
            if goal is None:
                raise NotFoundError(f'I couldn\'t find a goal matching "{entities["goal"]}"')
            record["goalId"] = goal.id
            link = f' under goal "{goal.title}"'
        with _downstream("create task"):
            task = self.store.create_task(record)
        when = value_display_text("scheduledDate", task.scheduled_date)
        if task.scheduled_time:
            when += f" at {task.scheduled_time}"
        return CommandResult(True, f'Task "{task.title}" created for {when}{link}', {"task": task.to_dict()})

    def modify_task(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        if not (entities.get("taskIdentifier") or entities.get("title")):
            raise MissingFieldError("taskIdentifier", "Please specify which task to modify by title or identifier")
        if not entities.get("field") or entities.get("newValue") in (None, ""):
            raise MissingFieldError(
                "field", "Please specify what field to change and the new value, e.g. change meeting priority to high"
            )
        task = self.resolve_task(user_id, entities, "modify")
        update = self._field_update(str(entities["field"]), entities["newValue"])
        with _downstream("modify task"):
            updated = self.store.update_task(task.id, self._canonical(update))
        shown = value_display_text(update.field, update.value)
        return CommandResult(
            True,
            f'Updated "{task.title}": {field_display_name(update.field)} is now {shown}',
            {"task": updated.to_dict(), "field": update.field, "value": update.value},
        )

    def delete_task(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        if entities.get("deleteType") == "by_date" and entities.get("dateFilter"):
            return self._delete_by_date(user_id, entities["dateFilter"])
        task = self.resolve_task(user_id, entities, "delete")
        with _downstream("delete task"):
            if not self.store.delete_task(task.id):
                raise NotFoundError(f'Task "{task.title}" no longer exists')
        return CommandResult(True, f'Task "{task.title}" deleted', {"deletedTaskId": task.id})

    def _delete_by_date(self, user_id: str, phrase: str) -> CommandResult:
        day = resolve_date(phrase, self._today())
        shown = value_display_text("scheduledDate", day.isoformat())
        with _downstream("delete tasks"):
            tasks = self.store.list_tasks(user_id, day, day)
        if not tasks:
            raise NotFoundError(f"You have no tasks scheduled for {shown}")
        deleted: List[str] = []
        with _downstream("delete tasks"):
            for task in tasks:
                if self.store.delete_task(task.id):
                    deleted.append(task.id)
        noun = "task" if len(deleted) == 1 else "tasks"
        return CommandResult(True, f"Deleted {len(deleted)} {noun} scheduled for {shown}", {"deletedTaskIds": deleted})

    def schedule_task(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        if not (entities.get("date") or entities.get("time")):
            raise MissingFieldError("date", "Please say when to move it, e.g. move dentist appointment to friday at 3pm")
        task = self.resolve_task(user_id, entities, "reschedule")
        fields: Dict[str, Any] = {}
        for key, name in (("date", "date"), ("time", "time")):
            if entities.get(key):
                fields.update(self._canonical(self._field_update(name, entities[key])))
        with _downstream("reschedule task"):
            updated = self.store.update_task(task.id, fields)
        when = value_display_text("scheduledDate", updated.scheduled_date)
        if updated.scheduled_time:
            when += f" at {updated.scheduled_time}"
        return CommandResult(True, f'Moved "{task.title}" to {when}', {"task": updated.to_dict()})

    # ---------------------------------------------------- goals and plans

    def create_goal(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        title = (entities.get("title") or "").strip()
        if not title:
            raise MissingFieldError("title", "Goal title is required. Try: create a goal to learn Spanish this year")
        year = int(entities.get("year") or self._today().year)
        priority = entities.get("priority") or "medium"
        if priority not in PRIORITIES:
            priority = "medium"
        with _downstream("create goal"):
            goal = self.store.create_goal({
                "userId": user_id,
                "title": title,
                "description": entities.get("description") or "",
                "category": entities.get("category") or "personal",
                "targetYear": year,
                "priority": priority,
                "status": "active",
            })
        message = f'Goal "{goal.title}" created for {goal.target_year}'
        data: Dict[str, Any] = {"goal": goal.to_dict()}
        if entities.get("decompose"):
            message += self._decompose(user_id, goal, user, data)
        return CommandResult(True, message, data)

    def _decompose(self, user_id: str, goal: Goal, user: Dict[str, Any], data: Dict[str, Any]) -> str:
        if self.planner is None:
            return ". Breaking it into objectives needs an AI provider; add objectives with: create an objective ..."
        try:
            plan = self.planner.decompose_goal(goal, user)
        except DownstreamError as e:
            logger.warning("goal %s created but decomposition failed: %s", goal.id, e.message)
            return f". {e.message}"
        objectives = []
        with _downstream("create objectives"):
            for item in plan.monthlyObjectives:
                objectives.append(self.store.create_objective({
                    "userId": user_id,
                    "goalId": goal.id,
                    "title": item.title,
                    "description": item.description,
                    "targetMonth": item.targetMonth,
                    "targetYear": goal.target_year,
                    "keyResults": [kr.model_dump(exclude_none=True) for kr in item.keyResults],
                    "status": "active",
                }))
        data["objectives"] = [o.to_dict() for o in objectives]
        return f" with {len(objectives)} monthly objectives"

    def create_objective(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        title = (entities.get("title") or "").strip()
        if not title:
            raise MissingFieldError("title", "Objective title is required. Try: create an objective to finish the course for march")
        today = self._today()
        month = int(entities.get("month") or today.month)
        if not 1 <= month <= 12:
            raise InvalidValueError("Month must be between 1 and 12")
        with _downstream("create objective"):
            goals = self.store.list_goals(user_id)
        if entities.get("goal"):
            goal = _find_by_title(goals, entities["goal"])
            if goal is None:
                raise NotFoundError(f'I couldn\'t find a goal matching "{entities["goal"]}"')
        else:
            active = [g for g in goals if g.status == "active"]
            if not active:
                raise NotFoundError("Please create a goal first before adding objectives")
            goal = active[-1]
        with _downstream("create objective"):
            objective = self.store.create_objective({
                "userId": user_id,
                "goalId": goal.id,
                "title": title,
                "description": entities.get("description") or "",
                "targetMonth": month,
                "targetYear": int(entities.get("year") or today.year),
                "keyResults": [],
                "status": "active",
            })
        message = f'Objective "{objective.title}" created for {_month_name(month)} under goal "{goal.title}"'
        data: Dict[str, Any] = {"objective": objective.to_dict()}
        if entities.get("planTasks"):
            message += self._plan_tasks(user_id, objective, goal, user, data)
        return CommandResult(True, message, data)

    def _plan_tasks(self, user_id: str, objective: Objective, goal: Goal, user: Dict[str, Any], data: Dict[str, Any]) -> str:
        if self.planner is None:
            return ". Planning its tasks needs an AI provider; add tasks with: add task ..."
        try:
            plan = self.planner.generate_tasks(objective, goal, user, 1)
        except DownstreamError as e:
            logger.warning("objective %s created but task planning failed: %s", objective.id, e.message)
            return f". {e.message}"
        fallback = self._month_start(objective.target_year, objective.target_month)
        tasks = []
        with _downstream("create tasks"):
            for item in plan.tasks:
                tasks.append(self.store.create_task(self._planned_task(user_id, item, fallback, objective.id, goal.id)))
        data["tasks"] = [t.to_dict() for t in tasks]
        return f" with {len(tasks)} planned tasks"

    def create_roadmap(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        prompt = (entities.get("prompt") or entities.get("description") or "").strip()
        if not prompt:
            raise MissingFieldError("prompt", "Please provide a description of what you want to achieve")
        if self.planner is None:
            return CommandResult(
                False,
                "Roadmap creation requires an AI provider. Try creating a goal first, "
                "then break it into objectives and tasks.",
                {"alternativeCommands": [f"create a goal {prompt}", f"create an objective {prompt}"]},
            )
        roadmap = self.planner.create_roadmap(prompt, user)
        year = roadmap.goal.year or int(entities.get("year") or self._today().year)
        with _downstream("create roadmap"):
            goal = self.store.create_goal({
                "userId": user_id,
                "title": roadmap.goal.title,
                "description": roadmap.goal.description,
                "category": roadmap.goal.category,
                "targetYear": year,
                "priority": roadmap.goal.priority,
                "status": "active",
            })
            by_month: Dict[int, Objective] = {}
            objectives: List[Objective] = []
            for item in roadmap.objectives:
                objective = self.store.create_objective({
                    "userId": user_id,
                    "goalId": goal.id,
                    "title": item.title,
                    "description": item.description,
                    "targetMonth": item.targetMonth,
                    "targetYear": year,
                    "keyResults": [kr.model_dump(exclude_none=True) for kr in item.keyResults],
                    "status": "active",
                })
                objectives.append(objective)
                by_month.setdefault(item.targetMonth, objective)
            tasks: List[Task] = []
            for item in roadmap.tasks:
                objective = by_month.get(item.objectiveMonth or 0)
                month = objective.target_month if objective else (item.objectiveMonth or 1)
                tasks.append(self.store.create_task(self._planned_task(
                    user_id, item, self._month_start(year, month), objective.id if objective else None, goal.id)))
        return CommandResult(
            True,
            f'Roadmap created: goal "{goal.title}" with {len(objectives)} objectives and {len(tasks)} tasks',
            {
                "goal": goal.to_dict(),
                "objectives": [o.to_dict() for o in objectives],
                "tasks": [t.to_dict() for t in tasks],
                "reasoning": roadmap.reasoning,
            },
        )

    def _month_start(self, year: int, month: int) -> date:
        today = self._today()
        if (year, month) == (today.year, today.month):
            return today
        return date(year, month, 1)

    def _planned_task(self, user_id: str, item: Any, fallback: date, objective_id: Optional[str], goal_id: str) -> Dict[str, Any]:
        raw_date = getattr(item, "scheduledDate", None) or getattr(item, "suggestedDate", None)
        try:
            day = resolve_date(raw_date, fallback) if raw_date else fallback
        except InvalidValueError:
            day = fallback
        raw_time = getattr(item, "scheduledTime", None)
        return {
            "userId": user_id,
            "objectiveId": objective_id,
            "goalId": goal_id,
            "title": item.title,
            "description": item.description,
            "scheduledDate": day.isoformat(),
            "scheduledTime": normalize_value("scheduledTime", raw_time) if raw_time else None,
            "estimatedDuration": item.estimatedDuration,
            "priority": item.priority,
            "status": "pending",
            "tags": list(item.tags),
        }

    # ------------------------------------------------------------ questions

    def ask_question(self, user_id: str, entities: Dict[str, Any], user: Dict[str, Any]) -> CommandResult:
        with _downstream("answer the question"):
            return self.answerer.answer(user_id, entities)
