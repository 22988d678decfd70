"""Interactive prompts.

Thin questionary wrappers. The workflow only depends on the three methods
of :class:`Prompter`, so tests can pass any object with the same shape.
"""

from __future__ import annotations

import questionary
from questionary import Style

# Custom style for questionary
custom_style = Style(
    [
        ("qmark", "fg:cyan bold"),
        ("question", "fg:white bold"),
        ("answer", "fg:cyan"),
        ("pointer", "fg:cyan bold"),
        ("highlighted", "fg:cyan bold"),
        ("selected", "fg:green"),
        ("separator", "fg:gray"),
        ("instruction", "fg:gray"),
    ]
)


class Prompter:
    """questionary-backed prompts.

    ``unsafe_ask`` is used so Ctrl-C propagates as KeyboardInterrupt
    instead of being turned into a None answer.
    """

    def text(self, message: str, default: str = "") -> str:
        answer = questionary.text(message, default=default, style=custom_style).unsafe_ask()
        return (answer or "").strip()

    def confirm(self, message: str, default: bool = False) -> bool:
        return bool(questionary.confirm(message, default=default, style=custom_style).unsafe_ask())

    def checkbox(self, message: str, choices: list[str]) -> list[str]:
        answer = questionary.checkbox(message, choices=choices, style=custom_style).unsafe_ask()
        return list(answer or [])
