"""Confirmation callbacks guarding destructive replacement of an installation."""

from __future__ import annotations

from typing import Callable

ConfirmCallback = Callable[[str], bool]

__all__ = ["ConfirmCallback", "ConsoleConfirmation", "assume_yes"]


def assume_yes(prompt: str) -> bool:
    return True


class ConsoleConfirmation:
    """Ask on the terminal and accept answers starting with ``y`` or ``Y``."""

    def __init__(self, *, input_func: Callable[[str], str] | None = None) -> None:
        self._input = input_func or input

    def __call__(self, prompt: str) -> bool:
        try:
            answer = self._input(f"{prompt} [y/N] ")
        except EOFError:
            return False
        return answer.strip()[:1] in {"y", "Y"}
