"""
Interactive session state: expert library, team, selection, project and the task engine.
"""

import json
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from .clients import ChatBackend
from .config import Config, ModelConfig
from .experts import Expert, ExpertRole, Team
from .i18n import t
from .orchestration import (
    AnalysisResult,
    EngineEvent,
    TaskEngine,
    TaskInvocation,
    TaskResult,
    generate_persona,
    run_arena,
    run_team_analysis,
)
from .orchestration.log import PendingMarker
from . import store as kv
from .ui import ui

console = Console()

MENTION_PATTERN = re.compile(r"@(\S+)")

# /edit field aliases
EDITABLE_FIELDS = {"name": "name", "desc": "description", "description": "description", "avatar": "avatar"}


@dataclass
class PanelSession:
    config: Config
    store: kv.KeyValueStore
    backend: Optional[ChatBackend] = None
    experts: list[Expert] = field(default_factory=list)
    team: Team = field(default_factory=Team)
    selected: set[str] = field(default_factory=set)
    project: str = ""
    engine: Optional[TaskEngine] = None

    def __post_init__(self):
        if self.backend is None:
            self.backend = ChatBackend(self.config)
        if not self.experts:
            self.experts = kv.load_experts(self.store)
        if len(self.team) == 0:
            self.team = kv.load_team(self.store, self.experts)
        if not self.project:
            self.project = kv.load_project(self.store)
        if not self.selected and len(self.team) > 0:
            self.selected = {self.team.members[0].id}

        self.engine = TaskEngine(
            backend=self.backend,
            team=self.team,
            project_context=self.project,
            model=self.config.get_default_model(),
            language=self.config.language,
            delegation_delay=self.config.delegation_delay,
            on_event=self._on_event,
            verbose=self.config.verbose,
        )

    def _on_event(self, event: EngineEvent, payload: Any):
        if event == EngineEvent.STARTED and isinstance(payload, PendingMarker):
            suffix = f" [magenta]({t('triggered_by', name=payload.trigger_by)})[/magenta]" if payload.trigger_by else ""
            console.print(f"[dim]→ {payload.expert_name} {t('thinking')}...[/dim]{suffix}")
        elif event == EngineEvent.SUCCEEDED and isinstance(payload, TaskResult):
            ui.print_result(payload)
        elif event == EngineEvent.FAILED and isinstance(payload, PendingMarker):
            console.print(f"[red]✗ {payload.expert_name}: {payload.error_message}[/red]")
        elif event == EngineEvent.DELEGATED and isinstance(payload, TaskInvocation):
            console.print(f"[magenta]↳ {payload.trigger_by} → {payload.expert.name}[/magenta]")
        elif event == EngineEvent.CANCELLED:
            ui.print_notice(str(payload))

    def find_expert(self, ref: str) -> Optional[Expert]:
        for expert in self.experts:
            if expert.id == ref:
                return expert
        needle = ref.strip().lower()
        for expert in self.experts:
            if needle and needle in expert.name.lower():
                return expert
        return None

    def add_to_team(self, ref: str) -> Optional[Expert]:
        expert = self.find_expert(ref)
        if expert and self.team.add(expert):
            kv.save_team(self.store, self.team)
        return expert

    def remove_from_team(self, ref: str) -> Optional[Expert]:
        expert = self.find_expert(ref)
        if expert and self.team.remove(expert.id):
            self.selected.discard(expert.id)
            kv.save_team(self.store, self.team)
        return expert

    def select(self, refs: list[str]) -> list[Expert]:
        if refs == ["all"]:
            if len(self.selected) == len(self.team):
                self.selected = set()
            else:
                self.selected = {e.id for e in self.team}
            return self.team.select(self.selected)

        chosen = []
        for ref in refs:
            expert = self.team.get(ref) or self.team.find_by_name(ref)
            if expert:
                chosen.append(expert)
        self.selected = {e.id for e in chosen}
        return chosen

    def apply_mentions(self, text: str) -> list[Expert]:
        """Select every teammate mentioned as @name in ``text``."""
        mentioned = []
        for name in MENTION_PATTERN.findall(text):
            expert = self.team.find_by_name(name)
            if expert:
                self.selected.add(expert.id)
                mentioned.append(expert)
        return mentioned

    def set_project(self, text: str):
        self.project = text.strip()
        self.engine.project_context = self.project
        kv.save_project(self.store, self.project)

    def set_model(self, model_id: str) -> Optional[ModelConfig]:
        model = self.config.get_model(model_id)
        if model:
            self.config.default_model = model.id
            self.engine.model = model
        return model

    def run_task(self, instruction: str) -> list[TaskInvocation]:
        self.apply_mentions(instruction)
        return self.engine.dispatch_batch(self.team.select(self.selected), instruction)

    def stop(self) -> Optional[str]:
        if not self.engine.is_processing:
            return None
        return self.engine.cancel()

    def export_result(self, result_id: str, directory: Path) -> Optional[Path]:
        result = self.engine.log.get_result(result_id)
        if result is None:
            return None
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / result.export_filename()
        path.write_text(result.to_markdown(), encoding="utf-8")
        return path

    async def analyze(self) -> AnalysisResult:
        model = self.backend.resolve_model(self.engine.model)
        if len(self.team) == 0:
            raise ValueError(t("arena_no_team"))
        if not self.project.strip():
            raise ValueError(t("validation_no_project"))
        result = await run_team_analysis(self.backend, self.project, self.team, model)
        kv.append_history(self.store, [result])
        return result

    async def arena(self, model_ids: list[str]) -> list[AnalysisResult]:
        models = [m for m in (self.config.get_model(i) for i in model_ids) if m]
        results = await run_arena(self.backend, self.project, self.team, models)
        kv.append_history(self.store, results)
        return results

    async def hire(self, role: ExpertRole, prompt: str, name: Optional[str] = None) -> Expert:
        expert = await generate_persona(self.backend, role, prompt, custom_name=name, model=self.engine.model)
        self.experts.append(expert)
        kv.save_experts(self.store, self.experts)
        return expert

    def edit_expert(self, ref: str, field_name: str, value: str) -> Optional[Expert]:
        attr = EDITABLE_FIELDS.get(field_name.lower())
        value = value.strip()
        if attr is None or not value:
            raise ValueError(t("edit_usage"))

        expert = self.find_expert(ref)
        if expert is None:
            return None
        updated = replace(expert, **{attr: value})
        self.experts = [updated if e.id == expert.id else e for e in self.experts]
        self.team.replace(updated)
        kv.save_experts(self.store, self.experts)
        return updated

    def history(self) -> list[AnalysisResult]:
        return kv.load_history(self.store)

    def backup(self, path: Path) -> Path:
        data = kv.export_backup(self.store, self.config.models)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return path

    def restore(self, path: Path) -> Optional[list[ModelConfig]]:
        """Import a backup file and reload everything it touched."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(t("restore_invalid")) from e
        models = kv.import_backup(self.store, data)

        self.experts = kv.load_experts(self.store)
        self.team = kv.load_team(self.store, self.experts)
        self.selected = {i for i in self.selected if i in self.team}
        self.project = kv.load_project(self.store)
        self.engine.team = self.team
        self.engine.project_context = self.project
        if models:
            self.config.models = models
            self.engine.model = self.config.get_default_model()
        return models

    async def close(self):
        await self.engine.shutdown()
        await self.backend.close()
