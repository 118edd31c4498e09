from __future__ import annotations
import json
import logging
from typing import Any, Dict, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from tasktalk.core.errors import DownstreamError
from tasktalk.store.models import Goal, Objective
from .promptlib import (
    system_decompose_goal,
    system_generate_tasks,
    system_roadmap,
    user_decompose_goal,
    user_generate_tasks,
    user_roadmap,
)
from .sanitize import sanitize_untrusted_text
from .schemas import DecompositionJSON, RoadmapJSON, TaskGenerationJSON
from .types import LLM

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class GenerativePlanner(Protocol):
    def decompose_goal(self, goal: Goal, user: Dict[str, Any]) -> DecompositionJSON:
        ...

    def generate_tasks(self, objective: Objective, goal: Goal, user: Dict[str, Any], week: int = 1) -> TaskGenerationJSON:
        ...

    def create_roadmap(self, prompt: str, user: Dict[str, Any]) -> RoadmapJSON:
        ...


def _record_json(rec: Dict[str, Any]) -> str:
    safe = {k: sanitize_untrusted_text(v, 1000) if isinstance(v, str) else v for k, v in rec.items()}
    safe.pop("userId", None)
    return json.dumps(safe, ensure_ascii=False)


class LLMPlanner:
    """Planner over any provider from the router; replies are validated against the schemas."""

    def __init__(self, llm: LLM):
        self.llm = llm

    def _ask(self, model: Type[M], *, system: str, user: str, what: str) -> M:
        try:
            resp = self.llm.complete(system=system, user=user, json_mode=True)
        except (OSError, ValueError) as e:
            logger.warning("planner %s request failed: %s", what, e)
            raise DownstreamError(f"The planning service is unavailable right now ({what}).") from e
        if not resp.json:
            logger.warning("planner %s returned no JSON", what)
            raise DownstreamError(f"The planning service returned an unusable answer ({what}).")
        try:
            return model.model_validate(resp.json)
        except ValidationError as e:
            logger.warning("planner %s returned invalid JSON: %s", what, e.error_count())
            raise DownstreamError(f"The planning service returned an unusable answer ({what}).") from e

    def decompose_goal(self, goal: Goal, user: Dict[str, Any]) -> DecompositionJSON:
        return self._ask(
            DecompositionJSON,
            system=system_decompose_goal(),
            user=user_decompose_goal(_record_json(goal.to_dict()), user),
            what="goal decomposition",
        )

    def generate_tasks(self, objective: Objective, goal: Goal, user: Dict[str, Any], week: int = 1) -> TaskGenerationJSON:
        return self._ask(
            TaskGenerationJSON,
            system=system_generate_tasks(),
            user=user_generate_tasks(_record_json(objective.to_dict()), _record_json(goal.to_dict()), user, week),
            what="task generation",
        )

    def create_roadmap(self, prompt: str, user: Dict[str, Any]) -> RoadmapJSON:
        return self._ask(
            RoadmapJSON,
            system=system_roadmap(),
            user=user_roadmap(sanitize_untrusted_text(prompt, 2000), user),
            what="roadmap",
        )
