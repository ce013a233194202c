"""
Generation Renderer - live terminal view of generation steps

Shows one row per generated file (and the preview) while the response
streams, then a summary of the written files.
"""

from typing import List, Optional, Sequence

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.box import SIMPLE

from aether.modules.generation.models import FileAction, GeneratedProject, GenerationStep, StepStatus


STATUS_STYLES = {
    StepStatus.PENDING: ("○", "dim"),
    StepStatus.IN_PROGRESS: ("◐", "yellow"),
    StepStatus.COMPLETED: ("✓", "green"),
}


def build_steps_table(steps: Sequence[GenerationStep]) -> Table:
    """Table with one row per step"""
    table = Table(box=SIMPLE, show_header=False, padding=(0, 1))
    table.add_column("status", width=2)
    table.add_column("step")
    table.add_column("lines", justify="right", style="dim")

    for step in steps:
        icon, style = STATUS_STYLES[step.status]
        lines = f"{step.line_count} lines" if step.line_count else ""
        table.add_row(Text(icon, style=style), Text(step.label, style=style), lines)
    return table


class GenerationRenderer:
    """Renders step snapshots with a rich Live display"""

    def __init__(self, console: Optional[Console] = None, transient: bool = False):
        self.console = console or Console()
        self.transient = transient
        self.steps: List[GenerationStep] = []
        self.build_plan: Optional[str] = None
        self._live: Optional[Live] = None

    def __enter__(self) -> "GenerationRenderer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()

    def start(self):
        self.steps = []
        self._live = Live(
            self._render(),
            console=self.console,
            refresh_per_second=10,
            transient=self.transient,
        )
        self._live.start()

    def _render(self):
        parts = []
        if self.build_plan:
            parts.append(Panel(self.build_plan, title="Plan", border_style="cyan"))
        if self.steps:
            parts.append(build_steps_table(self.steps))
        else:
            parts.append(Text("Waiting for the first file...", style="dim"))
        return Group(*parts)

    def update(self, steps: List[GenerationStep]):
        """Step callback for GenerationSession"""
        self.steps = steps
        if self._live:
            self._live.update(self._render())

    def show_build_plan(self, build_plan: str):
        """Build-plan callback for GenerationSession"""
        self.build_plan = build_plan
        if self._live:
            self._live.update(self._render())

    def finish(self):
        if self._live:
            self._live.stop()
            self._live = None

    def print_summary(self, project: GeneratedProject, actions: Sequence[FileAction],
                      elapsed_seconds: float = 0.0):
        """Print what was generated after the stream ended"""
        if project.build_summary:
            self.console.print(Panel(project.build_summary, title="Summary", border_style="green"))

        table = Table(title="Files", box=SIMPLE)
        table.add_column("File", style="cyan")
        table.add_column("Lines", justify="right")
        for action in actions:
            table.add_row(action.file_name, str(action.line_count))
        self.console.print(table)

        for name in project.incomplete_files:
            self.console.print(f"[yellow]⚠ {name} was cut off before it finished and was not saved[/yellow]")

        footer = f"[dim]{len(actions)} files"
        if project.token_count:
            footer += f" · {project.token_count:,} tokens"
        if elapsed_seconds:
            footer += f" · {elapsed_seconds:.0f}s"
        self.console.print(footer + "[/dim]")
