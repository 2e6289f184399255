"""
Tests for the interactive session and its slash commands.
"""

import json

import pytest

from expert_panel import store as kv
from expert_panel.cli import handle_command, read_project
from expert_panel.config import Config
from expert_panel.experts import ExpertRole
from expert_panel.orchestration import BatchValidationError
from expert_panel.orchestration.analysis import AnalysisResult
from expert_panel.session import PanelSession
from expert_panel.ui import ui

from .conftest import ScriptedBackend


@pytest.fixture
def session(team, model):
    store = kv.MemoryStore()
    kv.save_experts(store, list(team))
    kv.save_team(store, team)
    kv.save_project(store, "A coffee chain")
    return PanelSession(
        config=Config(models=[model], default_model=model.id, delegation_delay=0),
        store=store,
        backend=ScriptedBackend(),
    )


class TestSessionState:
    def test_loads_from_store(self, session):
        assert [e.name for e in session.team] == ["Alice", "Bob", "Carol"]
        assert session.selected == {"a"}
        assert session.engine.project_context == "A coffee chain"
        assert session.engine.model.id == "m1"

    def test_team_edits_persist(self, session):
        session.remove_from_team("bob")
        assert session.store.get(kv.KEY_TEAM) == ["a", "c"]
        session.add_to_team("b")
        assert session.store.get(kv.KEY_TEAM) == ["a", "c", "b"]

    def test_unknown_expert(self, session):
        assert session.add_to_team("nobody") is None

    def test_select_all_toggles(self, session):
        session.select(["all"])
        assert session.selected == {"a", "b", "c"}
        session.select(["all"])
        assert session.selected == set()

    def test_select_by_name(self, session):
        chosen = session.select(["bob", "carol"])
        assert [e.id for e in chosen] == ["b", "c"]
        assert session.selected == {"b", "c"}

    def test_mentions_add_to_selection(self, session):
        mentioned = session.apply_mentions("@Carol please check this, @nobody")
        assert [e.id for e in mentioned] == ["c"]
        assert session.selected == {"a", "c"}

    def test_set_project(self, session):
        session.set_project("  A bakery  ")
        assert session.engine.project_context == "A bakery"
        assert kv.load_project(session.store) == "A bakery"

    def test_stop_when_idle(self, session):
        assert session.stop() is None


class TestSessionTasks:
    @pytest.mark.asyncio
    async def test_run_task_and_export(self, session, tmp_path):
        session.backend.script["Alice"] = "Report :::DELEGATE:::Bob:::check:::"
        invocations = session.run_task("Assess the risks")
        assert len(invocations) == 1

        await session.engine.wait_until_idle()

        assert [r.expert_name for r in session.engine.results] == ["Bob", "Alice"]
        result = session.engine.results[1]
        path = session.export_result(result.id, tmp_path)
        assert path.name == result.export_filename()
        assert "## 执行结果\n\nReport " in path.read_text(encoding="utf-8")
        assert session.export_result("missing", tmp_path) is None

    @pytest.mark.asyncio
    async def test_run_task_without_selection(self, session):
        session.selected = set()
        with pytest.raises(BatchValidationError):
            session.run_task("go")

    @pytest.mark.asyncio
    async def test_hire_saves_expert(self, session):
        session.backend.default = json.dumps({"name": "Grace", "description": "Ops lead."})
        expert = await session.hire(ExpertRole.OPERATIONS, "supply chain")

        assert expert in session.experts
        assert session.store.get(kv.KEY_EXPERTS)[-1]["name"] == expert.name


class TestCommands:
    @pytest.mark.asyncio
    async def test_exit(self, session):
        assert await handle_command(session, "/exit", "") is False

    @pytest.mark.asyncio
    async def test_unknown_command_keeps_running(self, session):
        assert await handle_command(session, "/frobnicate", "") is True

    @pytest.mark.asyncio
    async def test_task_and_delete(self, session):
        assert await handle_command(session, "/task", "Assess")
        await session.engine.wait_until_idle()
        result_id = session.engine.results[0].id

        await handle_command(session, "/delete", result_id)
        assert session.engine.results == []

    @pytest.mark.asyncio
    async def test_dismiss_error(self, session):
        session.backend.script["Alice"] = RuntimeError("boom")
        await handle_command(session, "/task", "Assess")
        await session.engine.wait_until_idle()
        assert len(session.engine.pending) == 1

        await handle_command(session, "/dismiss", "alice")
        assert session.engine.pending == []

    def test_read_project_from_file(self, tmp_path):
        path = tmp_path / "project.md"
        path.write_text("Coffee", encoding="utf-8")
        assert read_project(f"@{path}") == "Coffee"
        assert read_project("inline") == "inline"


class TestExpertEdits:
    def test_edit_updates_library_and_team(self, session):
        expert = session.edit_expert("bob", "desc", "Contracts and IP.")

        assert expert.description == "Contracts and IP."
        assert session.team.get("b") == expert
        assert session.engine.team.get("b").description == "Contracts and IP."
        assert kv.load_experts(session.store)[1].description == "Contracts and IP."

    def test_rename_keeps_id(self, session):
        expert = session.edit_expert("c", "name", "Caroline")
        assert expert.id == "c"
        assert session.find_expert("caroline") == expert

    def test_edit_unknown_expert(self, session):
        assert session.edit_expert("nobody", "name", "X") is None

    @pytest.mark.parametrize("field_name, value", [("role", "x"), ("name", "  ")])
    def test_edit_rejects_bad_input(self, session, field_name, value):
        with pytest.raises(ValueError):
            session.edit_expert("bob", field_name, value)

    @pytest.mark.asyncio
    async def test_edit_command(self, session):
        assert await handle_command(session, "/edit", "alice avatar https://example.com/a.png")
        assert session.team.get("a").avatar == "https://example.com/a.png"

    @pytest.mark.asyncio
    async def test_edit_command_needs_three_parts(self, session):
        assert await handle_command(session, "/edit", "alice name")
        assert session.team.get("a").name == "Alice"


class TestHistoryAndBackup:
    @pytest.mark.asyncio
    async def test_history_command(self, session, monkeypatch):
        shown = []
        monkeypatch.setattr(ui, "print_history", shown.append)
        kv.append_history(session.store, [AnalysisResult(id="h1", model_name="M", content="x")])

        assert await handle_command(session, "/history", "")
        assert [r.id for r in shown[0]] == ["h1"]

    def test_backup_and_restore(self, session, model, tmp_path):
        path = session.backup(tmp_path / "backup.json")
        assert json.loads(path.read_text(encoding="utf-8"))["version"] == "1.0"

        session.set_project("Something else")
        session.remove_from_team("bob")
        session.config.models = []

        models = session.restore(path)

        assert models == [model]
        assert session.config.models == [model]
        assert session.engine.model == model
        assert session.project == "A coffee chain"
        assert session.engine.project_context == "A coffee chain"
        assert [e.id for e in session.team] == ["a", "b", "c"]
        assert session.engine.team is session.team

    def test_restore_drops_selection_outside_team(self, session, tmp_path):
        path = tmp_path / "backup.json"
        path.write_text(json.dumps({"data": {"team": ["b"]}}), encoding="utf-8")

        assert session.restore(path) is None
        assert [e.id for e in session.team] == ["b"]
        assert session.selected == set()

    def test_restore_rejects_non_json(self, session, tmp_path):
        path = tmp_path / "backup.json"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(ValueError):
            session.restore(path)

    @pytest.mark.asyncio
    async def test_backup_command_default_name(self, session, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert await handle_command(session, "/backup", "")
        assert [p.name for p in tmp_path.iterdir()] == [kv.backup_filename()]

    @pytest.mark.asyncio
    async def test_restore_command_saves_models(self, session, tmp_path, monkeypatch):
        saved = []
        monkeypatch.setattr("expert_panel.cli.save_config", saved.append)
        path = session.backup(tmp_path / "backup.json")

        assert await handle_command(session, "/restore", str(path))
        assert saved == [session.config]

    @pytest.mark.asyncio
    async def test_restore_command_invalid_file(self, session, tmp_path, monkeypatch):
        saved = []
        monkeypatch.setattr("expert_panel.cli.save_config", saved.append)
        path = tmp_path / "backup.json"
        path.write_text(json.dumps({"experts": []}), encoding="utf-8")

        assert await handle_command(session, "/restore", str(path))
        assert saved == []
        assert session.project == "A coffee chain"


class TestAnalysisDisplay:
    def test_unparsed_analysis_is_flagged(self, monkeypatch):
        notices = []
        monkeypatch.setattr(ui, "print_notice", notices.append)
        ui.print_analysis(AnalysisResult(id="1", model_name="M", content="not json"))
        assert notices == ["评估结果无法解析，以下为模型原始回复"]
