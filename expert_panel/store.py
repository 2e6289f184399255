"""
Key-value persistence for the expert library, team, project and analysis history.
"""

import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Protocol

from .config import ModelConfig
from .experts import DEFAULT_EXPERTS, Expert, Team
from .i18n import t
from .orchestration.analysis import AnalysisResult

STATE_DIR_NAME = ".expert-panel.d"

KEY_EXPERTS = "experts"
KEY_TEAM = "team"
KEY_PROJECT = "project"
KEY_HISTORY = "history"


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    def __init__(self, data: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileStore:
    """Whole-document JSON store; every set() rewrites the file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path or Path.home() / STATE_DIR_NAME / "state.json"
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)


def load_experts(store: KeyValueStore) -> list[Expert]:
    data = store.get(KEY_EXPERTS)
    if not data:
        return list(DEFAULT_EXPERTS)
    return [Expert.from_dict(item) for item in data]


def save_experts(store: KeyValueStore, experts: list[Expert]) -> None:
    store.set(KEY_EXPERTS, [e.to_dict() for e in experts])


def load_team(store: KeyValueStore, experts: list[Expert]) -> Team:
    by_id = {e.id: e for e in experts}
    return Team(members=[by_id[i] for i in store.get(KEY_TEAM, []) if i in by_id])


def save_team(store: KeyValueStore, team: Team) -> None:
    store.set(KEY_TEAM, [e.id for e in team])


def load_project(store: KeyValueStore) -> str:
    return store.get(KEY_PROJECT, "")


def save_project(store: KeyValueStore, project: str) -> None:
    store.set(KEY_PROJECT, project)


def load_history(store: KeyValueStore) -> list[AnalysisResult]:
    return [AnalysisResult.from_dict(item) for item in store.get(KEY_HISTORY, [])]


def append_history(store: KeyValueStore, results: list[AnalysisResult]) -> None:
    history = store.get(KEY_HISTORY, [])
    store.set(KEY_HISTORY, [r.to_dict() for r in results] + history)


BACKUP_VERSION = "1.0"


def backup_filename() -> str:
    return f"ExpertPanel_Backup_{datetime.now().strftime('%Y-%m-%d')}.json"


def export_backup(store: KeyValueStore, models: list[ModelConfig]) -> dict[str, Any]:
    experts = load_experts(store)
    return {
        "timestamp": int(time.time() * 1000),
        "version": BACKUP_VERSION,
        "data": {
            "experts": [e.to_dict() for e in experts],
            "team": [e.to_dict() for e in load_team(store, experts)],
            "projectDescription": load_project(store),
            "analysisHistory": store.get(KEY_HISTORY, []),
            "models": [m.to_payload() for m in models],
        },
    }


def import_backup(store: KeyValueStore, backup: Any) -> Optional[list[ModelConfig]]:
    """Write every section present in ``backup``; returns its models, if any.

    The whole file is validated before anything is written.
    """
    data = backup.get("data") if isinstance(backup, dict) else None
    if not isinstance(data, dict):
        raise ValueError(t("restore_invalid"))

    try:
        experts = [Expert.from_dict(item) for item in data.get("experts") or []]
        team = [item["id"] if isinstance(item, dict) else str(item) for item in data.get("team") or []]
        history = [AnalysisResult.from_dict(item) for item in data.get("analysisHistory") or []]
        models = [ModelConfig.from_payload(item) for item in data.get("models") or []]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValueError(t("restore_invalid")) from e

    if data.get("experts") is not None:
        save_experts(store, experts)
    if data.get("team") is not None:
        store.set(KEY_TEAM, team)
    if data.get("projectDescription"):
        save_project(store, data["projectDescription"])
    if data.get("analysisHistory") is not None:
        store.set(KEY_HISTORY, [h.to_dict() for h in history])
    return models or None
