"""
Rich Console Inspector - 基于 Rich 的终端可视化

Renders a kernel's state for debugging:
1. Listener registry (pattern, id, priority, dependencies, cardinality)
2. Resolved execution plan of one event, grouped by dependency level
3. Listener failures recorded by the last emission
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from weft.errors import DependencyError
from weft.kernel.kernel import Kernel
from weft.types import ListenerEntry


def _cardinality(entry: ListenerEntry) -> str:
    if entry.once is True:
        return "once"
    if callable(entry.once):
        return "until predicate"
    return "forever"


def _priority(entry: ListenerEntry) -> str:
    if entry.priority == float("-inf"):
        return "-inf"
    return str(entry.priority)


class KernelInspector:
    """
    Kernel 状态可视化

    Example:
        inspector = KernelInspector(kernel)
        inspector.print_listeners()
        inspector.print_plan("user:created")
    """

    def __init__(self, kernel: Kernel, console: Optional[Console] = None):
        self.kernel = kernel
        self.console = console or Console()

    def listeners_table(self) -> Table:
        table = Table(title="Registered Listeners")
        table.add_column("Pattern", style="cyan")
        table.add_column("Id", style="bold")
        table.add_column("Priority", justify="right")
        table.add_column("After")
        table.add_column("Cardinality")

        for entry in self.kernel.registry:
            table.add_row(
                entry.pattern,
                entry.id,
                _priority(entry),
                ", ".join(entry.after) or "-",
                _cardinality(entry),
            )
        return table

    def plan_tree(self, event_name: str) -> Tree:
        """Execution plan for ``event_name``; ordering errors are shown in the tree."""
        root = Tree(f"[bold blue]{event_name}[/bold blue]")
        try:
            levels = self.kernel.resolve(event_name)
        except DependencyError as e:
            root.add(f"[red]{e.code}[/red]: {e}")
            return root

        if not levels:
            root.add("[dim]no listeners[/dim]")
            return root

        for index, level in enumerate(levels):
            branch = root.add(f"[bold]Level {index}[/bold]")
            for entry in level:
                label = f"{entry.id} [dim](priority {_priority(entry)}, {entry.pattern})[/dim]"
                if entry.after:
                    label += f" after {', '.join(entry.after)}"
                branch.add(label)
        return root

    def errors_table(self) -> Table:
        table = Table(title="Execution Errors")
        table.add_column("Time")
        table.add_column("Event", style="cyan")
        table.add_column("Listener", style="bold")
        table.add_column("Error", style="red")

        for record in self.kernel.get_execution_errors():
            table.add_row(
                datetime.fromtimestamp(record.timestamp).strftime("%H:%M:%S.%f")[:-3],
                record.event_name,
                record.listener_id,
                f"{type(record.error).__name__}: {record.error}",
            )
        return table

    def print_listeners(self) -> None:
        self.console.print(self.listeners_table())

    def print_plan(self, event_name: str) -> None:
        self.console.print(self.plan_tree(event_name))

    def print_errors(self) -> None:
        self.console.print(self.errors_table())
