"""Output formatting utilities for CLI."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console
from rich.table import Table


class OutputFormat(Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


class OutputFormatter:
    """Render command results as a rich table, JSON or YAML."""

    def __init__(self, format_type: str = "table", console: Optional[Console] = None):
        """
        Initialize output formatter.

        Args:
            format_type: Output format (table, json, yaml); unknown values fall back to table
            console: Console to print to
        """
        self.console = console or Console()
        try:
            self.format = OutputFormat(format_type.lower())
        except ValueError:
            self.format = OutputFormat.TABLE

    @property
    def structured(self) -> bool:
        return self.format != OutputFormat.TABLE

    def _dump(self, data: Any) -> None:
        if self.format == OutputFormat.JSON:
            text = json.dumps(data, indent=2, default=str)
        else:
            text = yaml.safe_dump(data, default_flow_style=False).rstrip("\n")

        # Paths may contain brackets and must not be wrapped
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def print_names(self, names: List[str], title: Optional[str] = None):
        """
        Print directory entry names, one per row.

        Args:
            names: Names to print
            title: Table title (for table format)
        """
        if self.structured:
            self._dump(names)
            return

        if not names:
            self.console.print("[dim]No entries found[/dim]")
            return

        table = Table(title=title, show_header=False)
        table.add_column("Name", overflow="fold")
        for name in names:
            table.add_row(name)

        self.console.print(table)

    def print_detail(self, item: Dict[str, Any], title: Optional[str] = None):
        """
        Print the fields of a single result.

        Args:
            item: Field names mapped to values
            title: Optional title (for table format)
        """
        if self.structured:
            self._dump(item)
            return

        if title:
            self.console.print(f"[bold]{title}[/bold]\n")

        for key, value in item.items():
            label = key.replace("_", " ").title()

            if value is None:
                rendered = "[dim]None[/dim]"
            elif isinstance(value, bool):
                rendered = "[green]Yes[/green]" if value else "[red]No[/red]"
            elif value == "":
                rendered = "[dim]''[/dim]"
            else:
                rendered = str(value).replace("[", "\\[")

            self.console.print(f"[cyan]{label}:[/cyan] {rendered}", soft_wrap=True)

    def print_success(self, message: str):
        self._print_status("success", "[green]✓[/green]", message)

    def print_error(self, message: str):
        self._print_status("error", "[red]✗[/red]", message)

    def _print_status(self, status: str, marker: str, message: str) -> None:
        if self.structured:
            self._dump({"status": status, "message": message})
        else:
            self.console.print(marker, message, soft_wrap=True)
