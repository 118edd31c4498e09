from __future__ import annotations
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from .models import Goal, Objective, Task


class Store(Protocol):
    def list_tasks(self, user_id: str, date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[Task]:
        ...

    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Task:
        ...

    def delete_task(self, task_id: str) -> bool:
        ...

    def list_goals(self, user_id: str) -> List[Goal]:
        ...

    def list_objectives(self, user_id: str) -> List[Objective]:
        ...

    def create_goal(self, data: Dict[str, Any]) -> Goal:
        ...

    def create_objective(self, data: Dict[str, Any]) -> Objective:
        ...

    def create_task(self, data: Dict[str, Any]) -> Task:
        ...
