"""User interaction used when a domain cannot be inferred."""

from typing import Optional, Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt


class Prompter(Protocol):
    """Asks the user for confirmations and domain names."""

    def confirm(self, question: str, default: bool = True, help: str = "") -> bool:
        ...

    def ask_domain(self, default: str = "", help: str = "") -> str:
        ...


def validate_domain_answer(answer: str) -> Optional[str]:
    """Return an error message when ``answer`` is not an acceptable domain."""
    if not answer:
        return "Value is required"
    if any(c.isspace() for c in answer):
        return "Value cannot contain whitespace"
    return None


class ConsolePrompter:
    """Prompts on the terminal using rich."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def confirm(self, question: str, default: bool = True, help: str = "") -> bool:
        if help:
            self.console.print(f"[dim]{help}[/dim]")
        return Confirm.ask(question, default=default, console=self.console)

    def ask_domain(self, default: str = "", help: str = "") -> str:
        if help:
            self.console.print(f"[dim]{help}[/dim]")
        while True:
            if default:
                answer = Prompt.ask("Domain", default=default, console=self.console)
            else:
                answer = Prompt.ask("Domain", console=self.console)
            answer = (answer or "").strip()
            error = validate_domain_answer(answer)
            if error is None:
                return answer
            self.console.print(f"[red]{error}[/red]")


class BatchPrompter:
    """Non-interactive prompter: every question is answered with its default."""

    def confirm(self, question: str, default: bool = True, help: str = "") -> bool:
        return default

    def ask_domain(self, default: str = "", help: str = "") -> str:
        return default
