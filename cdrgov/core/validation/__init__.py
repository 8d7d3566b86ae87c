from .engine import StructuralValidator
from .models import Severity, Violation
from .registry import RuleChecker, rule
from .rules import ALL_RULES

DEFAULT_VALIDATOR = StructuralValidator(checkers=ALL_RULES)

__all__ = [
    "DEFAULT_VALIDATOR",
    "StructuralValidator",
    "Severity",
    "Violation",
    "RuleChecker",
    "rule",
]
