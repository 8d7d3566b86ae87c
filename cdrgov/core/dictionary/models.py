from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from cdrgov.core.errors import InvalidRowError


CAMEL_CASE_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")


class DataType(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    ENUM = "enum"
    OBJECT = "object"
    ARRAY = "array"


DATA_TYPES = frozenset(t.value for t in DataType)


def normalize_data_type(value: Any) -> str:
    raw = str(value.value if isinstance(value, DataType) else (value or "")).strip().lower()
    if raw not in DATA_TYPES:
        raise InvalidRowError(
            f"Unsupported data type {value!r}. Expected one of {sorted(DATA_TYPES)}.",
            details={"data_type": value},
        )
    return raw


def derive_long_name(concept: str, context: str, data_requirement: str) -> str:
    return f"{concept}:{context}:{data_requirement}"


@dataclass(frozen=True)
class CdrRow:
    concept: str
    context: str
    data_requirement: str
    definition: str
    data_type: str
    uid: str

    def __post_init__(self) -> None:
        for name in ("concept", "context", "data_requirement", "uid"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v.strip():
                raise InvalidRowError(f"{name} must be a non-empty string", details={"field": name})
        if not CAMEL_CASE_RE.match(self.data_requirement):
            raise InvalidRowError(
                f"data requirement {self.data_requirement!r} is not camelCase",
                details={"data_requirement": self.data_requirement},
            )
        object.__setattr__(self, "data_type", normalize_data_type(self.data_type))
        object.__setattr__(self, "definition", self.definition or "")

    @property
    def long_name(self) -> str:
        return derive_long_name(self.concept, self.context, self.data_requirement)

    @property
    def key(self) -> tuple:
        return (self.concept, self.context, self.data_requirement)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "concept": self.concept,
            "context": self.context,
            "data_requirement": self.data_requirement,
            "long_name": self.long_name,
            "definition": self.definition,
            "data_type": self.data_type,
            "uid": self.uid,
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "CdrRow":
        row = cls(
            concept=str(obj.get("concept") or ""),
            context=str(obj.get("context") or ""),
            data_requirement=str(obj.get("data_requirement") or ""),
            definition=str(obj.get("definition") or ""),
            data_type=str(obj.get("data_type") or ""),
            uid=str(obj.get("uid") or ""),
        )
        check_long_name(row, obj.get("long_name"))
        return row


def check_long_name(row: CdrRow, supplied: Optional[str]) -> None:
    """Reject a supplied long name that disagrees with the derived one."""
    if supplied is None or supplied == "":
        return
    if supplied != row.long_name:
        raise InvalidRowError(
            f"long name {supplied!r} does not match derived {row.long_name!r}",
            details={"supplied": supplied, "derived": row.long_name},
        )
