"""ingressdomain: discovery of the external DNS domain of a cluster's ingress controller."""

__version__ = "0.1.0"

# Lazy imports to avoid loading heavy dependencies for CLI usage
__all__ = [
    "DomainResolver",
    "EndpointLocator",
    "IngressDomainDiscovery",
    "ProviderTag",
    "RequirementsConfig",
    "ServiceRef",
    "poll_until",
]


def __getattr__(name):
    if name == "IngressDomainDiscovery":
        from .discovery import IngressDomainDiscovery
        return IngressDomainDiscovery
    elif name == "DomainResolver":
        from .resolution import DomainResolver
        return DomainResolver
    elif name == "EndpointLocator":
        from .locator import EndpointLocator
        return EndpointLocator
    elif name == "poll_until":
        from .polling import poll_until
        return poll_until
    elif name in ("ProviderTag", "RequirementsConfig", "ServiceRef"):
        from . import models
        return getattr(models, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
