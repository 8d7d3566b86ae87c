from .naming import NAMING_RULES
from .nesting import NESTING_RULES
from .fields import FIELD_RULES
from .http import HTTP_RULES
from .uri import URI_RULES
from .crosscutting import CROSSCUTTING_RULES

ALL_RULES = [
    *NAMING_RULES,
    *NESTING_RULES,
    *FIELD_RULES,
    *HTTP_RULES,
    *URI_RULES,
    *CROSSCUTTING_RULES,
]

__all__ = ["ALL_RULES"]
