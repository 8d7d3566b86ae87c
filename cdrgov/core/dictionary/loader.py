"""
CDR seed import.

Reads a spreadsheet export (CSV), or a JSON/YAML document, into CdrRow
objects. Accepted shapes for JSON/YAML:

    - a list of row mappings
    - {"rows": [...]}  (the JsonFileStore format)

CSV headers are matched case- and space-insensitively, so both
"Data Requirement" and "data_requirement" work.
"""
from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from cdrgov.core.errors import InvalidRowError

from .models import CdrRow

_log = logging.getLogger("cdrgov.loader")

_HEADER_ALIASES = {
    "concept": "concept",
    "context": "context",
    "datarequirement": "data_requirement",
    "field": "data_requirement",
    "fieldname": "data_requirement",
    "longname": "long_name",
    "definition": "definition",
    "description": "definition",
    "datatype": "data_type",
    "type": "data_type",
    "uid": "uid",
    "uniqueid": "uid",
    "uniqueidentifier": "uid",
}


def _normalize_header(h: str) -> str:
    k = "".join(ch for ch in (h or "").lower() if ch.isalnum())
    return _HEADER_ALIASES.get(k, k)


def _normalize_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in raw.items():
        if k is None:
            continue
        out[_normalize_header(str(k))] = v.strip() if isinstance(v, str) else v
    return out


def _read_csv(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8-sig", newline="") as fh:
        return [_normalize_record(r) for r in csv.DictReader(fh)]


def _read_structured(path: Path) -> List[Dict[str, Any]]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if isinstance(data, dict):
        data = data.get("rows")
    if not isinstance(data, list):
        raise InvalidRowError(f"{path} must contain a list of rows or a 'rows' list")
    return [_normalize_record(r) for r in data if isinstance(r, dict)]


def load_rows(path: Path) -> List[CdrRow]:
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".csv":
        records = _read_csv(p)
    elif suffix in (".json", ".yaml", ".yml"):
        records = _read_structured(p)
    else:
        raise ValueError(f"Unsupported dictionary file type: {p.suffix or p.name}")

    rows: List[CdrRow] = []
    for i, rec in enumerate(records, start=1):
        if not any(str(v or "").strip() for v in rec.values()):
            continue
        try:
            rows.append(CdrRow.from_dict(rec))
        except InvalidRowError as e:
            raise InvalidRowError(f"{p.name} record {i}: {e.message}", details=e.details) from e
    _log.info("Loaded %d CDR rows from %s", len(rows), p)
    return rows
