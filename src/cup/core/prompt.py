"""Interactive selection of tracked files."""

from __future__ import annotations

from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

ALL_ANSWERS = ("a", "all", "*")


def parse_selection(answer: str, count: int) -> List[int]:
    """Turn an answer such as ``1,3-5`` into sorted zero-based indices.

    ``all`` (or ``a`` / ``*``) selects everything; an empty answer selects
    nothing.

    Raises:
        ValueError: If the answer is not a list of numbers and ranges within
            ``1..count``.
    """
    answer = answer.strip().lower()
    if not answer:
        return []
    if answer in ALL_ANSWERS:
        return list(range(count))

    chosen = set()
    for token in answer.replace(" ", ",").split(","):
        if not token:
            continue
        if "-" in token:
            start_text, _, end_text = token.partition("-")
            start, end = int(start_text), int(end_text)
            if start > end:
                raise ValueError(f"Invalid range '{token}'")
        else:
            start = end = int(token)
        if start < 1 or end > count:
            raise ValueError(f"'{token}' is outside 1-{count}")
        chosen.update(range(start - 1, end))
    return sorted(chosen)


def select(
    candidates: Sequence[str],
    console: Optional[Console] = None,
    message: str = "Select files",
) -> List[str]:
    """Let the user pick any number of ``candidates``.

    Shows a numbered table and asks until the answer parses.

    Returns:
        The chosen candidates, in their original order.
    """
    console = console or Console()
    if not candidates:
        return []

    table = Table(title=message)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("File", style="green")
    for number, candidate in enumerate(candidates, start=1):
        table.add_row(str(number), escape(candidate))
    console.print(table)

    while True:
        answer = Prompt.ask(
            "Numbers or ranges (e.g. 1,3-5), 'all', or empty for none",
            console=console,
            default="",
            show_default=False,
        )
        try:
            indices = parse_selection(answer, len(candidates))
        except ValueError as e:
            console.print(f"[red]{escape(str(e))}")
            continue
        return [candidates[i] for i in indices]
