"""Terminal output handling using Rich library.

Status messages go to stderr through a Rich console; command results
(the page version and URL, or compiled storage format) go to stdout
unstyled so they can be piped.
"""

import typer
from rich.console import Console
from rich.markup import escape


class OutputHandler:
    """Handles all terminal output of the mdpublish command.

    Example:
        >>> output = OutputHandler(no_color=True)
        >>> output.error("Publish failed")
        >>> output.result("version 3")
    """

    def __init__(self, no_color: bool = False):
        """Initialize output handler.

        Args:
            no_color: Disable color output if True
        """
        self.console = Console(
            stderr=True,
            no_color=no_color,
            highlight=False,
        )

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {escape(message)}", style="red")

    def result(self, text: str) -> None:
        """Write a command result to stdout."""
        typer.echo(text)
