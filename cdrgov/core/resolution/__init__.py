from .models import Exact, NoMatch, ResolutionResult, Suggestion, Suggestions
from .resolver import FieldResolver
from .similarity import similarity, split_segments

__all__ = [
    "Exact",
    "NoMatch",
    "ResolutionResult",
    "Suggestion",
    "Suggestions",
    "FieldResolver",
    "similarity",
    "split_segments",
]
