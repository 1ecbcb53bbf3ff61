"""
console.py

Responsibility: everything that talks to the terminal.

- `out` / `err`: rich consoles for progress lines and error reports.
- `print_error`: the single error formatting helper used by every command.
- `Prompter`: interactive questions, injectable so tests never need a TTY.
- `resolve`: the "use the value, or ask for it" step.
"""

from __future__ import annotations

from typing import Callable, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

out = Console(highlight=False)
err = Console(stderr=True, highlight=False)


def info(message: str) -> None:
    out.print(message, markup=False)


def success(message: str) -> None:
    out.print(f"[green]{escape(message)}[/green]")


def warning(message: str) -> None:
    out.print(f"[red]{escape(message)}[/red]")


def print_error(error: BaseException | str) -> None:
    message = str(error) or error.__class__.__name__
    err.print(f"[bold red]{escape(message)}[/bold red]")


class Prompter:
    """Asks questions on the terminal using rich prompts."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or out

    def ask(self, message: str, default: str | None = None, password: bool = False) -> str:
        if default is None:
            answer = Prompt.ask(message, console=self._console, password=password)
        else:
            answer = Prompt.ask(message, console=self._console, password=password, default=default)
        return (answer or "").strip()

    def confirm(self, message: str, default: bool = True) -> bool:
        return bool(Confirm.ask(message, console=self._console, default=default))

    def choose(self, message: str, choices: Sequence[tuple[str, str]], default: str | None = None) -> str:
        """
        Show a numbered list of (value, label) pairs and return the chosen value.
        """
        for i, (_value, label) in enumerate(choices, start=1):
            self._console.print(f"  {i}) {label}")
        values = [value for value, _label in choices]
        default_index = str(values.index(default) + 1) if default in values else "1"
        answer = Prompt.ask(
            message,
            console=self._console,
            choices=[str(i) for i in range(1, len(values) + 1)],
            default=default_index,
        )
        return values[int(answer) - 1]


def resolve(
    value: str | None,
    *,
    valid: Callable[[str | None], bool],
    ask: Callable[[], str],
    error: Exception,
) -> str:
    """
    Return `value` if `valid(value)`, otherwise ask for it once.

    Raises `error` when the answer is still not valid.
    """
    value = (value or "").strip()
    if valid(value):
        return value
    answer = (ask() or "").strip()
    if not valid(answer):
        raise error
    return answer
