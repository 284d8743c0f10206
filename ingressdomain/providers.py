"""Mapping of providers and declared add-ons onto discovery strategies."""

from enum import Enum
from typing import Optional, Union

from .logging_config import get_logger
from .models import AppConfig, IngressKind, ProviderTag, ServiceRef

logger = get_logger(__name__)

ISTIO_INGRESS = ServiceRef(namespace="istio-system", name="istio-ingressgateway")
NGINX_INGRESS = ServiceRef(namespace="nginx", name="nginx-ingress-controller")

ISTIO_APP_SUFFIX = "/istio"


class DiscoveryStrategy(str, Enum):
    """How the address of the ingress is found and turned into a domain."""

    # ask the local hypervisor CLI for the single node IP
    LOCAL_CLI = "local-cli"
    # read the ingress controller service and synthesize a magic DNS domain
    ENDPOINT = "endpoint"
    # register a custom domain as a DNS alias of the load balancer
    DNS_ALIAS = "dns-alias"
    # derive the domain the provider assigns to every cluster
    PROVIDER_DOMAIN = "provider-domain"


LOCAL_CLI_COMMANDS = {
    ProviderTag.MINIKUBE: "minikube",
    ProviderTag.MINISHIFT: "minishift",
}

_STRATEGIES = {
    ProviderTag.MINIKUBE: DiscoveryStrategy.LOCAL_CLI,
    ProviderTag.MINISHIFT: DiscoveryStrategy.LOCAL_CLI,
    ProviderTag.AWS: DiscoveryStrategy.DNS_ALIAS,
    ProviderTag.EKS: DiscoveryStrategy.DNS_ALIAS,
    ProviderTag.IKS: DiscoveryStrategy.PROVIDER_DOMAIN,
}


def strategy_for(provider: Union[str, ProviderTag, None]) -> DiscoveryStrategy:
    """Return the discovery strategy for a provider; unknown providers use ENDPOINT."""
    return _STRATEGIES.get(ProviderTag.parse(provider), DiscoveryStrategy.ENDPOINT)


def default_endpoint(ingress_kind: Optional[str], apps: Optional[AppConfig] = None) -> ServiceRef:
    """Detect the default location of the ingress controller service.

    An explicitly declared ingress kind wins. Otherwise the istio gateway is
    assumed when an istio add-on is declared, and the nginx controller in every
    other case.
    """
    if ingress_kind == IngressKind.ISTIO.value:
        return ISTIO_INGRESS
    if ingress_kind == IngressKind.INGRESS.value:
        return NGINX_INGRESS

    for app in (apps.apps if apps else []):
        if app.name.endswith(ISTIO_APP_SUFFIX):
            logger.debug("Found istio add-on, using the istio ingress gateway", app=app.name)
            return ISTIO_INGRESS
    return NGINX_INGRESS
