"""
Terminal UI utilities using Rich.
"""

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

# Global console instance
console = Console()


def print_error(message: str):
    console.print(f"[red]✗ {message}[/red]")


def print_warning(message: str):
    console.print(f"[yellow]! {message}[/yellow]")


def print_success(message: str):
    console.print(f"[green]✓ {message}[/green]")


def show_caret_context(content: str, offset: int, context_lines: int = 2):
    """Show the lines around the caret with a marker at the caret."""
    marked = content[:offset] + "‸" + content[offset:]
    lines = marked.split("\n")
    caret_line = content[:offset].count("\n")
    start = max(0, caret_line - context_lines)
    end = min(len(lines), caret_line + context_lines + 1)

    snippet = "\n".join(lines[start:end])
    console.print(Panel(
        Syntax(snippet, "java", line_numbers=True, start_line=start + 1),
        title="Caret",
        border_style="dim",
    ))


def show_match(matched: bool, prefix: str):
    if matched:
        typed = f" (typed prefix: '{prefix}')" if prefix else ""
        print_success(f"Caret is in a Beam apply(...) argument{typed}")
    else:
        print_warning("Caret does not trigger a Beam completion")


def show_suggestions(suggestions):
    """
    Display completion items in a table.

    Args:
        suggestions: Iterable of LookupElement
    """
    suggestions = list(suggestions)
    if not suggestions:
        console.print("[dim]No suggestions[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=3)
    table.add_column("Suggestion", style="cyan")
    table.add_column("Source")
    table.add_column("Type", style="dim")

    for i, element in enumerate(suggestions, 1):
        table.add_row(str(i), element.lookup_string, element.source, element.type_text or "")

    console.print(table)
