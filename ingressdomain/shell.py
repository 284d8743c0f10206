"""Running external CLIs and registering custom domains."""

import subprocess
from typing import Protocol

from .errors import ShellCommandError
from .logging_config import get_logger

logger = get_logger(__name__)


class CommandRunner:
    """Runs a command and returns its standard output."""

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout

    def run(self, command: str, *args: str) -> str:
        """Run ``command`` with ``args``.

        Raises:
            ShellCommandError: If the command cannot be started or exits non-zero.
        """
        cmd = [command, *args]
        display = " ".join(cmd)
        logger.debug("Running command", command=display)
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ShellCommandError(display, stderr=str(e)) from e

        if result.returncode != 0:
            raise ShellCommandError(display, result.returncode, result.stderr)
        return result.stdout.strip()


class DomainRegistrar(Protocol):
    """Points a custom domain at a load balancer address."""

    def register(self, domain: str, address: str) -> None:
        ...


class LoggingDomainRegistrar:
    """Reports the wildcard DNS alias a custom domain needs.

    No record is written; the alias has to be created in the DNS provider.
    """

    def register(self, domain: str, address: str) -> None:
        logger.info("Create a wildcard DNS ALIAS record for the custom domain",
                    record=f"*.{domain}", target=address)
