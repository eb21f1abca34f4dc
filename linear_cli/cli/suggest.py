"""Suggestions for mistyped or misplaced command names."""

from __future__ import annotations

from dataclasses import dataclass

from .click_compat import click

MAX_DISTANCE = 2
MAX_SUBCOMMAND_SUGGESTIONS = 3


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


@dataclass(frozen=True, slots=True)
class CommandEntry:
    path: str  # e.g. "issue comment"
    name: str  # e.g. "comment"


def build_index(group: click.Group, prefix: str = "") -> list[CommandEntry]:
    entries: list[CommandEntry] = []
    for name, command in group.commands.items():
        if getattr(command, "hidden", False):
            continue
        path = f"{prefix} {name}" if prefix else name
        entries.append(CommandEntry(path=path, name=name))
        if isinstance(command, click.Group):
            entries.extend(build_index(command, path))
    return entries


def _close(needle: str, name: str) -> int | None:
    distance = levenshtein(needle, name.lower())
    if distance <= MAX_DISTANCE and distance < len(name):
        return distance
    return None


def suggest_command(text: str, index: list[CommandEntry], top_level: list[str]) -> list[str]:
    """
    Suggest commands for unknown input, nearest first.

    Typos of top-level names win; then an exact subcommand name anywhere in the tree
    (a misplaced command); then near subcommand names. An empty list means the caller
    should list what is available.
    """
    needle = text.lower()

    top = [(d, name) for name in top_level if (d := _close(needle, name)) is not None]
    if top:
        return [name for _, name in sorted(top, key=lambda pair: pair[0])]

    exact = [e.path for e in index if e.name.lower() == needle]
    if exact:
        return list(dict.fromkeys(exact))

    scored = [(d, e.path) for e in index if (d := _close(needle, e.name)) is not None]
    ranked = [path for _, path in sorted(scored, key=lambda pair: pair[0])]
    return list(dict.fromkeys(ranked))[:MAX_SUBCOMMAND_SUGGESTIONS]
