"""Verification of the ingress settings of a requirements document."""

from email.utils import parseaddr
from pathlib import Path
from typing import Union

from .config import load_app_config, load_requirements
from .discovery import IngressDomainDiscovery
from .errors import IngressVerificationError
from .logging_config import get_logger
from .models import ProviderTag, RequirementsConfig

logger = get_logger(__name__)


def is_valid_email(value: str) -> bool:
    _name, address = parseaddr(value or "")
    local, _, domain = address.partition("@")
    return bool(local and domain)


def verify_tls(requirements: RequirementsConfig) -> None:
    """Check the TLS settings of the ingress.

    Raises:
        IngressVerificationError: If TLS is requested for a magic DNS domain or
            without a valid e-mail address.
    """
    ingress = requirements.ingress
    if not ingress.tls.enabled:
        return

    if requirements.cluster.provider_tag is not ProviderTag.GKE:
        logger.warning("TLS support has only been tested on Google Kubernetes Engine with external-dns so far",
                       provider=requirements.cluster.provider)

    if ingress.is_auto_dns_domain():
        raise IngressVerificationError(
            f"TLS is not supported with automated domains like {ingress.domain}, "
            "you will need to use a real domain you own")

    if not is_valid_email(ingress.tls.email):
        raise IngressVerificationError(
            "You must provide a valid email address to enable TLS so you can receive "
            "notifications from LetsEncrypt about your certificates")


def verify_ingress(discovery: IngressDomainDiscovery, directory: Union[str, Path] = ".",
                   provider: str = "", ingress_namespace: str = "",
                   ingress_service: str = "") -> RequirementsConfig:
    """Default the ingress domain when necessary, verify TLS and save the requirements."""
    requirements, requirements_path = load_requirements(directory)

    if not requirements.cluster.provider:
        logger.warning("No provider configured")

    if not requirements.ingress.domain:
        apps, _ = load_app_config(directory)
        discovery.discover_domain(requirements, apps=apps, provider=provider,
                                  ingress_namespace=ingress_namespace, ingress_service=ingress_service)
        logger.info("Defaulting the ingress domain", domain=requirements.ingress.domain,
                    path=str(requirements_path))

    verify_tls(requirements)

    requirements.save_config(requirements_path)
    return requirements
