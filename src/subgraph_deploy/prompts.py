"""Interactive decisions for the deploy pipeline."""

from typing import Any, Dict, Optional, Protocol, Sequence

from rich.console import Console
from rich.prompt import Confirm, Prompt

from .exceptions import ConfigurationError


class Decider(Protocol):
    """Answers the questions the pipeline asks at each gate."""

    def confirm(self, name: str, message: str, default: bool = True) -> bool:
        ...

    def choose(
        self, name: str, message: str, choices: Sequence[str], default: Optional[str] = None
    ) -> str:
        ...

    def text(
        self, name: str, message: str, default: Optional[str] = None, secret: bool = False
    ) -> str:
        ...


class ConsoleDecider:
    """Asks the user on the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def confirm(self, name: str, message: str, default: bool = True) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def choose(
        self, name: str, message: str, choices: Sequence[str], default: Optional[str] = None
    ) -> str:
        return Prompt.ask(message, choices=list(choices), default=default, console=self.console)

    def text(
        self, name: str, message: str, default: Optional[str] = None, secret: bool = False
    ) -> str:
        answer = Prompt.ask(message, default=default, password=secret, console=self.console)
        return answer or ""


class PresetDecider:
    """
    Returns answers given up front (e.g. CLI flags) and asks for the rest.

    An answer of None counts as "not given".
    """

    def __init__(self, answers: Dict[str, Any], fallback: Decider):
        self.answers = {name: value for name, value in answers.items() if value is not None}
        self.fallback = fallback

    def confirm(self, name: str, message: str, default: bool = True) -> bool:
        if name in self.answers:
            return bool(self.answers[name])
        return self.fallback.confirm(name, message, default)

    def choose(
        self, name: str, message: str, choices: Sequence[str], default: Optional[str] = None
    ) -> str:
        if name in self.answers:
            answer = str(self.answers[name])
            if answer not in choices:
                raise ConfigurationError(
                    f"Invalid {name} '{answer}'; expected one of: {', '.join(choices)}"
                )
            return answer
        return self.fallback.choose(name, message, choices, default)

    def text(
        self, name: str, message: str, default: Optional[str] = None, secret: bool = False
    ) -> str:
        if name in self.answers:
            return str(self.answers[name])
        return self.fallback.text(name, message, default, secret)
