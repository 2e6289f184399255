"""
Main CLI entry point for Expert Panel.
"""

import argparse
import asyncio
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from . import stats
from .clients import BACKEND_ERRORS
from .config import Config, create_sample_config, get_config_path, load_config, save_config
from .experts import ExpertRole
from .i18n import Language, get_i18n, t
from .orchestration import BatchValidationError
from .session import PanelSession
from .store import JsonFileStore, backup_filename
from .ui import ui

console = Console()


def print_help():
    help_text = f"""
[bold]{t("help_commands")}:[/bold]
  [cyan]/help[/cyan]                 - {t("cmd_help")}
  [cyan]/experts[/cyan]              - {t("cmd_experts")}
  [cyan]/team[/cyan]                 - {t("cmd_team")}
  [cyan]/add <id|name>[/cyan]        - {t("cmd_add")}
  [cyan]/remove <id|name>[/cyan]     - {t("cmd_remove")}
  [cyan]/hire <role> <desc>[/cyan]   - {t("cmd_hire")}
  [cyan]/edit <id|name> <field> <value>[/cyan] - {t("cmd_edit")}
  [cyan]/project <text|@file>[/cyan] - {t("cmd_project")}
  [cyan]/select <names|all>[/cyan]   - {t("cmd_select")}
  [cyan]/task <text>[/cyan]          - {t("cmd_task")}
  [cyan]/stop[/cyan]                 - {t("cmd_stop")}
  [cyan]/status[/cyan]               - {t("cmd_status")}
  [cyan]/pending[/cyan]              - {t("cmd_status")}
  [cyan]/results[/cyan]              - {t("cmd_results")}
  [cyan]/dismiss <id|name>[/cyan]    - {t("cmd_dismiss")}
  [cyan]/delete <result id>[/cyan]   - {t("cmd_delete")}
  [cyan]/clear[/cyan]                - {t("cmd_clear")}
  [cyan]/export <result id>[/cyan]   - {t("cmd_export")}
  [cyan]/analyze[/cyan]              - {t("cmd_analyze")}
  [cyan]/arena <model ids>[/cyan]    - {t("cmd_arena")}
  [cyan]/history[/cyan]              - {t("cmd_history")}
  [cyan]/backup \\[file][/cyan]        - {t("cmd_backup")}
  [cyan]/restore <file>[/cyan]       - {t("cmd_restore")}
  [cyan]/models \\[id][/cyan]          - {t("cmd_models")}
  [cyan]/test <model id>[/cyan]      - {t("cmd_test")}
  [cyan]/lang[/cyan]                 - {t("cmd_lang")}
  [cyan]/stats[/cyan]                - {t("cmd_stats")}
  [cyan]/exit[/cyan]                 - {t("cmd_exit")}

[dim]@Name in a task selects that teammate as well.[/dim]
"""
    console.print(Panel(help_text, title="[bold blue] Help [/bold blue]", border_style="blue"))


def read_project(arg: str) -> str:
    if arg.startswith("@"):
        return Path(arg[1:]).expanduser().read_text(encoding="utf-8")
    return arg


def show_status(session: PanelSession):
    engine = session.engine
    model = engine.model.name if engine.model else "-"
    ui.print_stats({
        "Model": model,
        "Active tasks": engine.active_count,
        "Results": len(engine.results),
        "Errors": len(engine.log.errors()),
        "Project": (session.project[:50] + "...") if len(session.project) > 50 else (session.project or "-"),
    })
    if engine.termination_notice:
        ui.print_notice(engine.termination_notice)
    ui.print_team(session.team, session.selected)
    ui.print_pending(engine.pending, engine.active_count)


async def handle_command(session: PanelSession, command: str, arg: str) -> bool:
    """Run one slash command; returns False when the loop should end."""
    engine = session.engine

    if command in ("/exit", "/quit", "/q"):
        return False
    elif command == "/help":
        print_help()
    elif command == "/experts":
        ui.print_experts(session.experts, session.team)
    elif command == "/team":
        ui.print_team(session.team, session.selected)
    elif command in ("/add", "/remove"):
        action = session.add_to_team if command == "/add" else session.remove_from_team
        expert = action(arg)
        if expert is None:
            console.print(f"[red]{t('not_found')}: {arg}[/red]")
        ui.print_team(session.team, session.selected)
    elif command == "/hire":
        role_str, _, desc = arg.partition(" ")
        expert = await session.hire(ExpertRole.parse(role_str), desc)
        ui.print_experts([expert], session.team)
    elif command == "/project":
        if arg:
            session.set_project(read_project(arg))
            console.print(f"[green]{t('project_set')}[/green]")
        console.print(Panel(session.project or "-", border_style="cyan"))
    elif command == "/select":
        chosen = session.select(arg.split()) if arg else session.team.select(session.selected)
        console.print(f"[green]{t('selected')}: {', '.join(e.name for e in chosen) or '-'}[/green]")
    elif command == "/task":
        invocations = session.run_task(arg)
        console.print(f"[dim]{t('dispatched', count=len(invocations))}[/dim]")
    elif command == "/stop":
        notice = session.stop()
        if notice is None:
            console.print(f"[dim]{t('nothing_running')}[/dim]")
    elif command == "/status":
        show_status(session)
    elif command == "/results":
        ui.print_results(engine.results)
    elif command == "/pending":
        ui.print_pending(engine.pending, engine.active_count)
    elif command == "/dismiss":
        expert = session.find_expert(arg)
        if expert:
            engine.clear_pending_error(expert.id)
        ui.print_pending(engine.pending, engine.active_count)
    elif command == "/delete":
        if engine.delete_result(arg):
            console.print(f"[green]{t('deleted')}[/green]")
        else:
            console.print(f"[red]{t('not_found')}: {arg}[/red]")
    elif command == "/clear":
        engine.clear_all_results()
        console.print(f"[green]{t('cleared')}[/green]")
    elif command == "/export":
        path = session.export_result(arg, Path.cwd())
        if path:
            console.print(f"[green]{t('exported')} {path}[/green]")
        else:
            console.print(f"[red]{t('not_found')}: {arg}[/red]")
    elif command == "/analyze":
        ui.print_phase(t("cmd_analyze"))
        ui.print_analysis(await session.analyze())
    elif command == "/arena":
        ui.print_phase(t("cmd_arena"))
        for result in await session.arena(arg.split()):
            ui.print_analysis(result)
    elif command == "/edit":
        parts = arg.split(maxsplit=2)
        if len(parts) < 3:
            console.print(f"[dim]{t('edit_usage')}[/dim]")
        else:
            expert = session.edit_expert(*parts)
            if expert is None:
                console.print(f"[red]{t('not_found')}: {parts[0]}[/red]")
            else:
                console.print(f"[green]{t('expert_updated')}[/green]")
                ui.print_experts([expert], session.team)
    elif command == "/history":
        ui.print_history(session.history())
    elif command == "/backup":
        path = session.backup(Path(arg).expanduser() if arg else Path.cwd() / backup_filename())
        console.print(f"[green]{t('backup_saved')} {path}[/green]")
    elif command == "/restore":
        if not arg:
            console.print(f"[red]{t('restore_invalid')}[/red]")
            return True
        try:
            models = session.restore(Path(arg).expanduser())
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            return True
        if models:
            save_config(session.config)
        console.print(f"[green]{t('restored')}[/green]")
        ui.print_team(session.team, session.selected)
    elif command == "/models":
        if arg and session.set_model(arg) is None:
            console.print(f"[red]{t('not_found')}: {arg}[/red]")
        ui.print_models(session.config.models, engine.model)
    elif command == "/test":
        model = session.config.get_model(arg)
        if model is None:
            console.print(f"[red]{t('not_found')}: {arg}[/red]")
        else:
            ok, msg = await session.backend.test_connection(model)
            console.print(f"[{'green' if ok else 'red'}]{model.name}: {msg}[/]")
    elif command == "/lang":
        new_lang = get_i18n().toggle_language()
        session.config.language = new_lang.value
        engine.language = new_lang.value
        console.print(f"[green]{t('language_switched')}[/green]")
    elif command == "/stats":
        console.print(Panel(stats.get_stats().get_summary(), title="[yellow]API[/yellow]", border_style="yellow"))
    else:
        console.print(f"[red]{t('unknown_command')}: {command}[/red]")
        console.print(f"[dim]{t('type_help')}[/dim]")

    return True


async def run_interactive(session: PanelSession):
    ui.print_banner()
    console.print(f"[dim blue]│[/dim blue] Type [yellow]/help[/yellow] for commands")
    ui.print_team(session.team, session.selected)

    while True:
        try:
            console.print()
            # the prompt blocks, so it runs in a worker thread and tasks keep progressing
            user_input = (await asyncio.to_thread(Prompt.ask, "[bold green]>[/bold green]")).strip()
            if not user_input:
                continue

            if user_input.startswith("/"):
                parts = user_input.split(maxsplit=1)
                command = parts[0].lower()
                arg = parts[1].strip() if len(parts) > 1 else ""
            else:
                command, arg = "/task", user_input

            try:
                if not await handle_command(session, command, arg):
                    break
            except (ValueError, OSError) + BACKEND_ERRORS as e:
                ui.print_error(str(e))

        except KeyboardInterrupt:
            console.print(f"\n[cyan]{t('use_exit')}[/cyan]")
        except EOFError:
            break

    if session.engine.is_processing:
        session.engine.cancel()
        await session.engine.wait_until_idle()
    await session.close()
    console.print(f"[cyan]Goodbye! 👋[/cyan]")


async def run_once(session: PanelSession, instruction: str):
    session.selected = {e.id for e in session.team}
    try:
        session.run_task(instruction)
        await session.engine.wait_until_idle()
    finally:
        await session.close()
    ui.print_pending(session.engine.pending, session.engine.active_count)


def apply_language(config: Config, lang: Optional[str] = None):
    if lang:
        config.language = lang
    get_i18n().set_language(Language.EN if config.language == "en" else Language.ZH)


def main():
    parser = argparse.ArgumentParser(description="Expert Panel - AI advisory board")
    parser.add_argument("--config", "-c", action="store_true", help="Show current configuration")
    parser.add_argument("--init", action="store_true", help="Create a sample configuration file")
    parser.add_argument("--lang", "-l", type=str, choices=["zh", "en"], help="Language (zh/en)")
    parser.add_argument("--models", action="store_true", help="List configured models")
    parser.add_argument("--model", "-m", type=str, help="Model id to use")
    parser.add_argument("--project", "-p", type=str, help="Read the project description from a file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Trace task scheduling")
    parser.add_argument("prompt", nargs="?", help="Single task for the whole team (non-interactive mode)")

    args = parser.parse_args()

    if args.init:
        create_sample_config()
        console.print(f"[green]{t('created_config')} {get_config_path()}[/green]")
        console.print(f"[dim]{t('edit_config')}[/dim]")
        return

    config = load_config()
    apply_language(config, args.lang)
    if args.verbose:
        config.verbose = True

    if args.config:
        console.print(Panel(get_config_path().read_text(encoding="utf-8") if get_config_path().exists() else "-",
                            title=str(get_config_path()), border_style="cyan"))
        return

    if args.models:
        ui.print_models(config.models, config.get_default_model())
        return

    if args.model:
        if config.get_model(args.model) is None:
            ui.print_error(f"{t('not_found')}: {args.model}")
            return
        config.default_model = args.model
        save_config(config)

    if not config.get_configured_models():
        console.print(f"[red]{t('no_api_keys')}[/red]")
        console.print(f"[dim]{t('run_init')}[/dim]")
        return

    session = PanelSession(config=config, store=JsonFileStore())
    project_file = args.project or config.project_file
    if project_file:
        session.set_project(Path(project_file).expanduser().read_text(encoding="utf-8"))

    try:
        if args.prompt:
            asyncio.run(run_once(session, args.prompt))
        else:
            asyncio.run(run_interactive(session))
    except BatchValidationError as e:
        ui.print_error(str(e))


if __name__ == "__main__":
    main()
