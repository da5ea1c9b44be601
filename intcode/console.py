"""Interactive input source for synchronous machines."""

from __future__ import annotations

import logging
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .errors import InputUnavailableError

LOGGER = logging.getLogger("intcode.console")

DEFAULT_PROMPT = "Enter value: "


class ConsolePrompt:
    """Callable input provider that asks the user for one integer at a time.

    Non-integer answers are reported and asked again; end of input or an
    interrupt raises InputUnavailableError so the machine records a fault
    instead of blocking.
    """

    def __init__(self, message: str = DEFAULT_PROMPT, *, session: Optional[PromptSession] = None) -> None:
        self.message = message
        self.session = session or PromptSession(message, history=InMemoryHistory())
        self.answered = 0

    def __call__(self) -> int:
        while True:
            try:
                with patch_stdout():
                    line = self.session.prompt(self.message)
            except (EOFError, KeyboardInterrupt) as exc:
                raise InputUnavailableError("console input closed") from exc
            text = line.strip()
            try:
                value = int(text, 10)
            except ValueError:
                LOGGER.debug("rejected console input %r", line)
                print(f"not an integer: {text!r}")
                continue
            self.answered += 1
            return value


__all__ = ["ConsolePrompt", "DEFAULT_PROMPT"]
