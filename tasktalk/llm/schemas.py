from __future__ import annotations
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, conint, confloat, constr

Priority = Literal["low", "medium", "high", "critical"]
Category = Literal["career", "health", "personal", "financial", "education", "other"]
Month = conint(ge=1, le=12)


class KeyResultJSON(BaseModel):
    description: str
    targetValue: Optional[float] = None
    unit: Optional[str] = None


class ObjectiveJSON(BaseModel):
    title: constr(min_length=1)
    description: str = ""
    targetMonth: Month
    keyResults: List[KeyResultJSON] = Field(default_factory=list)


class GoalJSON(BaseModel):
    title: constr(min_length=1, max_length=200)
    description: str = ""
    category: Category = "personal"
    year: Optional[int] = None
    priority: Priority = "medium"


class PlannedTaskJSON(BaseModel):
    title: constr(min_length=1, max_length=200)
    description: str = ""
    estimatedDuration: conint(ge=5, le=480) = 30
    priority: Priority = "medium"
    scheduledDate: Optional[str] = None
    scheduledTime: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    objectiveMonth: Optional[Month] = None


class DecompositionJSON(BaseModel):
    monthlyObjectives: List[ObjectiveJSON] = Field(min_length=1)
    reasoning: str = ""
    confidence: confloat(ge=0.0, le=1.0) = 0.5


class TaskGenerationJSON(BaseModel):
    tasks: List[PlannedTaskJSON] = Field(min_length=1)
    reasoning: str = ""
    confidence: confloat(ge=0.0, le=1.0) = 0.5


class RoadmapJSON(BaseModel):
    goal: GoalJSON
    objectives: List[ObjectiveJSON] = Field(min_length=1)
    tasks: List[PlannedTaskJSON] = Field(default_factory=list)
    reasoning: str = ""
    confidence: confloat(ge=0.0, le=1.0) = 0.5
