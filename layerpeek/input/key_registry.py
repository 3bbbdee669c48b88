"""Key-token to command dispatch table."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyBinding:
    """Mapping from one or more key tokens to a single command callback.

    ``description`` feeds the help line; bindings without one stay hidden.
    """

    keys: tuple[str, ...]
    command: Callable[[], bool | None]
    description: str = ""


class KeyRegistry:
    """Exact-match key dispatch; later bindings override earlier ones."""

    def __init__(self) -> None:
        self._commands: dict[str, Callable[[], bool | None]] = {}
        self._bindings: list[KeyBinding] = []

    def register(self, *bindings: KeyBinding) -> KeyRegistry:
        """Register bindings and return ``self`` for fluent usage."""
        for binding in bindings:
            for key in binding.keys:
                self._commands[key] = binding.command
            self._bindings.append(binding)
        return self

    def dispatch(self, key: str) -> bool | None:
        """Invoke the command bound to ``key``; ``None`` when unbound."""
        command = self._commands.get(key)
        if command is None:
            return None
        return command()

    def help_entries(self) -> list[tuple[str, str]]:
        """Return ``(keys, description)`` pairs in registration order."""
        return [("/".join(binding.keys), binding.description) for binding in self._bindings if binding.description]
