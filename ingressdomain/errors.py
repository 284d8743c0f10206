"""Exceptions raised while resolving the ingress domain."""

from typing import Optional


class IngressDomainError(Exception):
    """Base class for all ingressdomain errors."""


class ConfigError(IngressDomainError):
    """A requirements or apps file could not be read or validated."""


class ResourceNotFoundError(IngressDomainError):
    """A Kubernetes resource (service, node) does not exist."""

    def __init__(self, kind: str, name: str, namespace: str = ""):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {location} not found")


class PollTimeoutError(IngressDomainError, TimeoutError):
    """A probe never became ready before its timeout elapsed."""

    def __init__(self, timeout: float, message: Optional[str] = None):
        self.timeout = timeout
        super().__init__(message or f"timed out after {timeout:g}s")


class MissingDomainError(IngressDomainError):
    """A provider requires an explicit domain which was not supplied in batch mode."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(
            f"Please specify a custom DNS name via --domain when installing on {provider} in batch mode"
        )


class ShellCommandError(IngressDomainError):
    """An external CLI invocation failed."""

    def __init__(self, command: str, returncode: Optional[int] = None, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "command could not be run"
        super().__init__(f"failed to run '{command}' (exit code {returncode}): {detail}")


class DomainDiscoveryFailed(IngressDomainError):
    """No domain could be discovered for the ingress controller service."""

    def __init__(self, service_ref, reason: str = ""):
        self.service_ref = service_ref
        message = f"failed to discover domain for ingress service {service_ref}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PersistenceError(IngressDomainError):
    """The requirements file could not be written."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        super().__init__(f"failed to save changes to file: {path}" + (f": {reason}" if reason else ""))


class IngressVerificationError(IngressDomainError):
    """The ingress settings are inconsistent (e.g. TLS on a magic DNS domain)."""


class NodeLookupError(IngressDomainError):
    """Cluster nodes could not be listed while looking for an external IP."""
