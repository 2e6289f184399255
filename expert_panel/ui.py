"""
Terminal UI components for Expert Panel.
"""

from datetime import datetime
from typing import Optional

from rich.box import ROUNDED
from rich.console import Console, Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from .config import ModelConfig
from .experts import Expert, Team
from .i18n import t
from .orchestration.analysis import AnalysisResult, format_for_display
from .orchestration.log import PendingMarker, PendingStatus, TaskResult

console = Console()


class PendingBoardRenderer:
    """Renders in-flight and failed tasks."""
    def __init__(self, markers: list[PendingMarker], active_count: int = 0):
        self.markers = markers
        self.active_count = active_count
        self.spinner = Spinner("dots", style="cyan")

    def __rich__(self) -> RenderableType:
        table = Table(box=None, show_header=False, padding=(0, 2))
        table.add_column("Status", width=3)
        table.add_column("Expert")
        table.add_column("State", style="dim")

        for marker in self.markers:
            if marker.status == PendingStatus.ERROR:
                icon: RenderableType = Text("✗", style="red")
                state = Text(marker.error_message or t("unknown_error"), style="red")
            else:
                icon = self.spinner
                state = Text(f"{t('thinking')}...")
            name = Text(marker.expert_name)
            if marker.trigger_by:
                name.append(f"  {t('triggered_by', name=marker.trigger_by)}", style="magenta")
            table.add_row(icon, name, state)

        return Panel(
            table,
            title=f"[bold]{t('thinking')} ({self.active_count})[/bold]",
            border_style="blue",
            box=ROUNDED,
        )


class PanelUI:
    def print_banner(self):
        console.print(
            "[bold blue]╭─────────────────────────────────────────────────╮[/bold blue]\n"
            "[bold blue]│[/bold blue]  [bold white]Expert Panel[/bold white] - AI 专家团 / AI advisory board  [bold blue]│[/bold blue]\n"
            "[bold blue]╰─────────────────────────────────────────────────╯[/bold blue]"
        )

    def print_phase(self, phase: str, description: str = ""):
        console.print()
        console.print(f"[bold blue]╭─ ▶ {phase} ─{'─' * max(10, 45 - len(phase))}[/bold blue]")
        if description:
            console.print(f"[bold blue]│[/bold blue] [dim]{description}[/dim]")
        console.print(f"[bold blue]╰──────────────────────────────────────────────────[/bold blue]")

    def print_experts(self, experts: list[Expert], team: Team, title: str = ""):
        table = Table(title=title or t("experts_title"), show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="yellow")
        table.add_column("Role", style="green")
        table.add_column("Persona")

        for expert in experts:
            marker = "[green]✓[/green] " if expert.id in team else ""
            description = expert.description
            if len(description) > 60:
                description = description[:60] + "..."
            table.add_row(expert.id, f"{marker}{expert.name}", expert.role.value, description)

        console.print(table)

    def print_team(self, team: Team, selected: Optional[set[str]] = None):
        if len(team) == 0:
            console.print(f"[yellow]{t('no_team')}[/yellow]")
            return

        selected = selected or set()
        lines = []
        for expert in team:
            check = "[green]●[/green]" if expert.id in selected else "[dim]○[/dim]"
            lines.append(f"{check} [white]{expert.name}[/white] [dim]({expert.role.value}, {expert.id})[/dim]")
        console.print(Panel("\n".join(lines), title=f"[bold]{t('team_title')}[/bold]", border_style="cyan", box=ROUNDED))

    def print_models(self, models: list[ModelConfig], active: Optional[ModelConfig] = None):
        table = Table(title=t("models_title"), show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="yellow")
        table.add_column("Provider", style="green")
        table.add_column("Model")
        table.add_column("Key")

        for model in models:
            name = model.name
            if active and model.id == active.id:
                name = f"[bold]{name} ←[/bold]"
            if not model.enabled:
                name = f"[dim]{name}[/dim]"
            key = "[green]✓[/green]" if model.api_key else "[red]✗[/red]"
            table.add_row(model.id, name, model.provider, model.model_id, key)

        console.print(table)

    def print_pending(self, markers: list[PendingMarker], active_count: int = 0):
        if markers:
            console.print(PendingBoardRenderer(markers, active_count))

    def print_result(self, result: TaskResult):
        when = datetime.fromtimestamp(result.timestamp).strftime("%H:%M:%S")
        header = Text()
        if result.trigger_by:
            header.append(f"{t('replied_to', name=result.trigger_by)}\n", style="magenta")
        header.append(result.task_description, style="dim")

        console.print(Panel(
            Group(header, Text(" "), Markdown(result.result_content)),
            title=f"[bold]{result.expert_name}[/bold] [dim]{when}[/dim]",
            subtitle=f"[dim]{result.id}[/dim]",
            border_style="green",
            box=ROUNDED,
            title_align="left",
        ))

    def print_results(self, results: list[TaskResult], limit: Optional[int] = None):
        if not results:
            console.print(f"[dim]{t('no_results')}[/dim]")
            return
        for result in results[:limit] if limit else results:
            self.print_result(result)

    def print_analysis(self, result: AnalysisResult):
        if result.structured is None:
            self.print_notice(t("analysis_failed"))
        border = "green"
        if result.structured and result.structured.risk_level in ("High", "Critical"):
            border = "red"
        console.print(Panel(
            format_for_display(result),
            title=f"[bold]{result.model_name}[/bold]",
            border_style=border,
            box=ROUNDED,
        ))

    def print_history(self, history: list[AnalysisResult]):
        if not history:
            console.print(f"[dim]{t('no_history')}[/dim]")
            return
        table = Table(box=ROUNDED, border_style="cyan")
        table.add_column("Time", style="dim")
        table.add_column("Model")
        table.add_column("Score", justify="right")
        table.add_column("Risk")
        table.add_column("Team", style="dim")
        for result in history:
            when = datetime.fromtimestamp(result.timestamp).strftime("%Y-%m-%d %H:%M")
            score = str(result.structured.overall_score) if result.structured else "-"
            risk = result.structured.risk_level if result.structured else "-"
            table.add_row(when, result.model_name, score, risk, ", ".join(result.team_composition))
        console.print(table)

    def print_notice(self, message: str):
        console.print(f"[bold yellow]{message}[/bold yellow]")

    def print_error(self, error: str):
        console.print()
        console.print(f"[red]╭─ ✗ Error ─{'─' * 48}[/red]")
        for line in error.split("\n")[:10]:
            console.print(f"[red]│[/red] {line[:90]}")
        console.print(f"[red]╰──────────────────────────────────────────────────[/red]")

    def print_stats(self, stats_data: dict):
        console.print()
        console.print(f"[yellow]╭─ 📊 Statistics ─{'─' * 42}[/yellow]")
        for k, v in stats_data.items():
            console.print(f"[yellow]│[/yellow] [cyan]{k}:[/cyan] {v}")
        console.print(f"[yellow]╰──────────────────────────────────────────────────[/yellow]")


ui = PanelUI()
