from __future__ import annotations
import json
from typing import Any, Dict

_KEY_RESULT = '{"description": str, "targetValue": number?, "unit": str?}'
_OBJECTIVE = '{"title": str, "description": str, "targetMonth": 1-12, "keyResults": [' + _KEY_RESULT + ']}'
_TASK = ('{"title": str, "description": str, "estimatedDuration": minutes 5-480, '
         '"priority": "low|medium|high|critical", "scheduledDate": "YYYY-MM-DD", '
         '"scheduledTime": "HH:MM"?, "tags": [str]')


def _user_context(user: Dict[str, Any]) -> str:
    return json.dumps(
        {k: user.get(k) for k in ("name", "timezone", "workingHours") if user.get(k)},
        ensure_ascii=False,
    )


def system_decompose_goal() -> str:
    return (
        "You break an annual goal into monthly objectives with 2-4 measurable key results each. "
        "Return strict JSON only: "
        '{"monthlyObjectives": [' + _OBJECTIVE + '], "reasoning": str, "confidence": 0-1}'
    )


def user_decompose_goal(goal_json: str, user: Dict[str, Any]) -> str:
    return f"User: {_user_context(user)}\n\nGoal:\n{goal_json}\n\nDecompose it into monthly objectives."


def system_generate_tasks() -> str:
    return (
        "You turn a monthly objective into 5-10 concrete tasks for one week. "
        "Return strict JSON only: "
        '{"tasks": [' + _TASK + '}], "reasoning": str, "confidence": 0-1}'
    )


def user_generate_tasks(objective_json: str, goal_json: str, user: Dict[str, Any], week: int) -> str:
    return (
        f"User: {_user_context(user)}\n\nGoal:\n{goal_json}\n\n"
        f"Objective:\n{objective_json}\n\nPlan the tasks for week {week} of the month."
    )


def system_roadmap() -> str:
    return (
        "You create a roadmap: one annual goal, monthly objectives with key results, and scheduled tasks. "
        "Return strict JSON only: "
        '{"goal": {"title": str, "description": str, '
        '"category": "career|health|personal|financial|education|other", "year": int, '
        '"priority": "low|medium|high|critical"}, '
        '"objectives": [' + _OBJECTIVE + '], '
        '"tasks": [' + _TASK + ', "objectiveMonth": 1-12}], '
        '"reasoning": str, "confidence": 0-1}'
    )


def user_roadmap(prompt: str, user: Dict[str, Any]) -> str:
    return f"User: {_user_context(user)}\n\nRequest:\n{prompt}"
