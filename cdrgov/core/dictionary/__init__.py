from .models import CdrRow, DataType, DATA_TYPES, derive_long_name
from .store import DictionaryStore, JsonFileStore, MemoryStore
from .dictionary import CanonicalDictionary
from .loader import load_rows

__all__ = [
    "CdrRow",
    "DataType",
    "DATA_TYPES",
    "derive_long_name",
    "DictionaryStore",
    "JsonFileStore",
    "MemoryStore",
    "CanonicalDictionary",
    "load_rows",
]
