from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union

from cdrgov.core.dictionary.models import CdrRow


@dataclass(frozen=True)
class Suggestion:
    row: CdrRow
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row.to_dict(), "score": round(self.score, 4)}


@dataclass(frozen=True)
class Exact:
    row: CdrRow
    kind: str = field(default="exact", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "row": self.row.to_dict()}


@dataclass(frozen=True)
class Suggestions:
    candidates: Tuple[Suggestion, ...]
    kind: str = field(default="suggestions", init=False)

    @property
    def rows(self) -> Tuple[CdrRow, ...]:
        return tuple(s.row for s in self.candidates)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "suggestions": [s.to_dict() for s in self.candidates]}


@dataclass(frozen=True)
class NoMatch:
    kind: str = field(default="no_match", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}


ResolutionResult = Union[Exact, Suggestions, NoMatch]
