from __future__ import annotations

import logging
from typing import Callable, List, Optional

from cdrgov.core import config
from cdrgov.core.dictionary.dictionary import CanonicalDictionary
from cdrgov.core.observability.metrics import inc_resolution

from .models import Exact, NoMatch, ResolutionResult, Suggestion, Suggestions
from .similarity import similarity

log = logging.getLogger("cdrgov.resolver")

Scorer = Callable[[str, str], float]


class FieldResolver:
    """
    Resolve a proposed field against the canonical dictionary.

    The threshold is inclusive: a candidate scoring exactly ``threshold`` is
    suggested. It defaults to CDRGOV_SIMILARITY_THRESHOLD (0.35), which keeps
    names with no shared camelCase segment out unless they are near-identical
    spellings.
    """

    def __init__(
        self,
        dictionary: CanonicalDictionary,
        *,
        threshold: Optional[float] = None,
        max_suggestions: Optional[int] = None,
        scorer: Scorer = similarity,
    ):
        self._dictionary = dictionary
        self.threshold = float(threshold) if threshold is not None else config.similarity_threshold()
        self.max_suggestions = int(max_suggestions) if max_suggestions is not None else config.max_suggestions()
        self._scorer = scorer

    def resolve(self, concept: str, context: str, field_name: str) -> ResolutionResult:
        if not field_name or not field_name.strip():
            raise ValueError("field_name must be a non-empty string")

        candidates = self._dictionary.filter(concept, context)
        for row in candidates:
            if row.data_requirement == field_name:
                inc_resolution("exact")
                return Exact(row)

        scored: List[Suggestion] = []
        for row in candidates:
            score = self._scorer(field_name, row.data_requirement)
            if score >= self.threshold:
                scored.append(Suggestion(row=row, score=score))

        # stable sort keeps dictionary order for equal scores
        scored.sort(key=lambda s: -s.score)
        scored = scored[: self.max_suggestions]

        if not scored:
            inc_resolution("no_match")
            log.info("resolve no_match concept=%s context=%s field=%s", concept, context, field_name)
            return NoMatch()

        inc_resolution("suggestions")
        log.info(
            "resolve suggestions concept=%s context=%s field=%s top=%s count=%s",
            concept,
            context,
            field_name,
            scored[0].row.data_requirement,
            len(scored),
        )
        return Suggestions(tuple(scored))
