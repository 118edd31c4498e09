from __future__ import annotations
from typing import List, Optional


class TaskTalkError(Exception):
    """Base class for failures reported back to the user as a CommandResult."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AmbiguousReferenceError(TaskTalkError):
    def __init__(self, reference: str, candidates: Optional[List[str]] = None, total: int = 0):
        self.reference = reference
        self.candidates = list(candidates or [])
        self.total = total
        if self.candidates:
            listed = ", ".join(f'"{t}"' for t in self.candidates)
            more = "..." if total > len(self.candidates) else ""
            hint = f"Available tasks: {listed}{more}"
        else:
            hint = "You have no tasks yet."
        super().__init__(f"I couldn't find a task matching \"{reference}\". {hint}")


class MissingFieldError(TaskTalkError):
    def __init__(self, field: str, hint: str):
        self.field = field
        super().__init__(hint)


class InvalidValueError(TaskTalkError):
    pass


class NotFoundError(TaskTalkError):
    pass


class DownstreamError(TaskTalkError):
    pass


class UnknownIntentError(RuntimeError):
    """Raised when an intent has no registered handler. Indicates a wiring defect."""
