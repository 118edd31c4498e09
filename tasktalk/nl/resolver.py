from __future__ import annotations
import logging
from typing import Callable, List, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from tasktalk.core.types import ResolutionCandidate
from tasktalk.store.base import Store
from tasktalk.store.models import Task

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.6


def similarity(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - Levenshtein.distance(a, b)) / longest


def _tokens_overlap(query_words: Sequence[str], title: str) -> bool:
    title_words = title.split()
    return all(any(w in t or t in w for t in title_words) for w in query_words)


class TaskResolver:
    """Map a textual task reference to a single stored task.

    Matching is staged: exact id, exact title, starts-with, contains, token
    overlap, then edit-distance similarity. The first stage that matches
    anything wins even if a later stage would score higher; only the fuzzy
    stage compares scores.
    """

    def __init__(self, store: Store, threshold: float = DEFAULT_THRESHOLD):
        self.store = store
        self.threshold = threshold

    def resolve(self, user_id: str, reference: str) -> Optional[Task]:
        tasks = self.store.list_tasks(user_id)
        task = self.match(tasks, reference)
        if task:
            logger.debug("resolved %r to task %s", reference, task.id)
        else:
            logger.info("no task matched %r among %d tasks", reference, len(tasks))
        return task

    def match(self, tasks: Sequence[Task], reference: str) -> Optional[Task]:
        ref = " ".join((reference or "").split())
        query = ref.lower()
        if not query or not tasks:
            return None
        by_id = [t for t in tasks if t.id == ref]
        if by_id:
            return by_id[0]
        words = query.split()
        stages: List[Callable[[str], bool]] = [
            lambda title: title == query,
            lambda title: title.startswith(query),
            lambda title: query in title,
            lambda title: _tokens_overlap(words, title),
        ]
        for stage in stages:
            for task in tasks:
                if stage(task.title.lower()):
                    return task
        ranked = self.rank(tasks, query)
        if ranked and ranked[0].score > self.threshold:
            return ranked[0].task
        return None

    def rank(self, tasks: Sequence[Task], reference: str) -> List[ResolutionCandidate]:
        query = " ".join((reference or "").lower().split())
        scored = [ResolutionCandidate(task=t, score=similarity(query, t.title.lower())) for t in tasks]
        # sorted() is stable, so equal scores keep creation order.
        return sorted(scored, key=lambda c: c.score, reverse=True)
