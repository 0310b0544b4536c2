"""Client-local key/value persistence.

Views never touch raw keys: ``ClientState`` owns the key names and the schema
stored under each one. A value that does not match its schema is logged and
treated as absent, so a corrupted entry can never break a view.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaError

from roster import DEFAULT_STUDENTS, normalize_roster
from schemas import InterestLead

logger = logging.getLogger(__name__)


class LocalStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def clear(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore:
    """All keys in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Local state at {self.path} unreadable, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def clear(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class Draft(BaseModel):
    selected_tags: list[str] = []
    supplement: str = ""
    problems: str = ""
    plan_tomorrow: str = ""

    def is_empty(self) -> bool:
        return not (self.selected_tags or self.supplement or self.problems or self.plan_tomorrow)


LAST_STUDENT_KEY = "last_student"
ROSTER_KEY = "lab_students"
LEADS_KEY = "interest_submissions"

_roster_adapter = TypeAdapter(list[str])
_leads_adapter = TypeAdapter(list[InterestLead])


def draft_key(student_name: str, report_date: str) -> str:
    return f"draft_{student_name}_{report_date}"


class ClientState:
    """Typed access to everything the client keeps locally."""

    def __init__(self, store: LocalStore):
        self.store = store

    def _read(self, key: str, adapter: TypeAdapter):
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return adapter.validate_python(raw)
        except SchemaError:
            logger.warning(f"Ignoring malformed local value for {key!r}")
            return None

    # Drafts

    def load_draft(self, student_name: str, report_date: str) -> Draft | None:
        return self._read(draft_key(student_name, report_date), TypeAdapter(Draft))

    def save_draft(self, student_name: str, report_date: str, draft: Draft) -> None:
        """Store the draft; an empty one removes the key instead."""
        if draft.is_empty():
            self.clear_draft(student_name, report_date)
            return
        self.store.set(draft_key(student_name, report_date), draft.model_dump())

    def clear_draft(self, student_name: str, report_date: str) -> None:
        self.store.clear(draft_key(student_name, report_date))

    # Last selected student

    @property
    def last_student(self) -> str:
        value = self._read(LAST_STUDENT_KEY, TypeAdapter(str))
        return value or ""

    @last_student.setter
    def last_student(self, name: str) -> None:
        self.store.set(LAST_STUDENT_KEY, name)

    # Roster override

    def get_students(self) -> list[str]:
        """The custom roster if one is saved and non-empty, else the defaults."""
        names = self._read(ROSTER_KEY, _roster_adapter)
        if names:
            return names
        return list(DEFAULT_STUDENTS)

    def save_students(self, names: list[str]) -> list[str]:
        names = normalize_roster(names)
        self.store.set(ROSTER_KEY, names)
        return names

    def is_custom_roster(self) -> bool:
        return self.store.get(ROSTER_KEY) is not None

    def reset_students(self) -> None:
        self.store.clear(ROSTER_KEY)

    # Interest leads

    def list_leads(self) -> list[InterestLead]:
        return self._read(LEADS_KEY, _leads_adapter) or []

    def append_lead(self, lead: InterestLead) -> None:
        leads = self.list_leads()
        leads.append(lead)
        self.store.set(LEADS_KEY, [item.model_dump() for item in leads])


def default_state() -> ClientState:
    """Client state persisted at LAB_DAILY_STATE_PATH (default ~/.lab_daily/state.json)."""
    path = os.getenv("LAB_DAILY_STATE_PATH", str(Path.home() / ".lab_daily" / "state.json"))
    return ClientState(JsonFileStore(path))
