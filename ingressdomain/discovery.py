"""Discovery of the ingress domain of a cluster."""

import time
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from kubernetes.client.rest import ApiException

from .errors import DomainDiscoveryFailed, PollTimeoutError, ResourceNotFoundError
from .kube import KubeClient
from .locator import EndpointLocator, load_balancer_address
from .logging_config import get_logger, log_function_entry, log_function_exit, log_resolution_event
from .models import AppConfig, ProviderTag, RequirementsConfig, ServiceRef
from .polling import poll_until
from .prompts import BatchPrompter, Prompter
from .providers import DiscoveryStrategy, default_endpoint, strategy_for
from .resolution import DomainResolver
from .shell import CommandRunner, DomainRegistrar

logger = get_logger(__name__)

INGRESS_WAIT_TIMEOUT = 5 * 60.0
INGRESS_WAIT_INTERVAL = 3.0

DEFAULT_PLATFORM_NAMESPACE = "jx"
REGISTRY_SERVICE = "docker-registry"

REGION_LABELS = ("topology.kubernetes.io/region", "failure-domain.beta.kubernetes.io/region")


class IngressDomainDiscovery:
    """Fills in ``ingress.domain`` of a requirements document.

    The ingress controller service is looked up, waited for when it has no
    external address yet, and the address is handed to the DomainResolver.
    """

    def __init__(self,
                 kube: KubeClient,
                 batch_mode: bool = False,
                 prompter: Optional[Prompter] = None,
                 runner: Optional[CommandRunner] = None,
                 registrar: Optional[DomainRegistrar] = None,
                 resolver: Optional[DomainResolver] = None,
                 locator: Optional[EndpointLocator] = None,
                 poll_timeout: float = INGRESS_WAIT_TIMEOUT,
                 poll_interval: float = INGRESS_WAIT_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.kube = kube
        self.batch_mode = batch_mode
        self.prompter = prompter or BatchPrompter()
        self.runner = runner
        self.registrar = registrar
        self.resolver = resolver
        self.locator = locator or EndpointLocator(kube)
        self.poll_timeout = poll_timeout
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    def discover_domain(self, requirements: RequirementsConfig, requirements_path: Union[str, Path, None] = None,
                        apps: Optional[AppConfig] = None, provider: str = "",
                        ingress_namespace: str = "", ingress_service: str = "") -> RequirementsConfig:
        """Discover the ingress domain and store it in ``requirements``.

        Nothing happens when a domain is already configured. When
        ``requirements_path`` is given the updated requirements are saved there.

        Returns:
            The updated requirements.

        Raises:
            DomainDiscoveryFailed: If no address could be found for the ingress service.
            PersistenceError: If the requirements cannot be saved.
        """
        if requirements.ingress.domain:
            logger.debug("Ingress domain already configured", domain=requirements.ingress.domain)
            return requirements

        provider_tag = ProviderTag.parse(provider or requirements.cluster.provider)
        if provider_tag is ProviderTag.UNKNOWN:
            logger.warning("No provider configured")

        service_ref = self.ingress_service_ref(requirements, apps, ingress_namespace, ingress_service)
        node_port = requirements.ingress.is_node_port
        external_ip = requirements.ingress.external_ip
        log_function_entry(logger, "discover_domain", provider=str(provider_tag), service=str(service_ref),
                           node_port=node_port, external_ip=external_ip)

        address, node_port = self._locate(provider_tag, service_ref, external_ip, node_port)
        resolver = self.resolver or self._build_resolver(requirements)
        domain = resolver.resolve(provider_tag, address, "", self.batch_mode, node_port)
        if not domain:
            raise DomainDiscoveryFailed(service_ref)

        requirements.ingress.domain = domain
        self.default_registry(requirements, provider_tag)

        if requirements_path is not None:
            requirements.save_config(requirements_path)
            log_resolution_event(logger, "domain_saved", domain=domain, path=str(requirements_path))
        log_function_exit(logger, "discover_domain", domain=domain)
        return requirements

    def ingress_service_ref(self, requirements: RequirementsConfig, apps: Optional[AppConfig] = None,
                            namespace: str = "", name: str = "") -> ServiceRef:
        """Return the ingress controller service, falling back to the well known defaults."""
        namespace = namespace or requirements.ingress.namespace
        name = name or requirements.ingress.service
        if not namespace or not name:
            defaults = default_endpoint(requirements.ingress.kind, apps)
            namespace = namespace or defaults.namespace
            name = name or defaults.name
        return ServiceRef(namespace=namespace, name=name)

    def _locate(self, provider: ProviderTag, service_ref: ServiceRef, external_ip: str,
                node_port: bool) -> Tuple[str, bool]:
        """Return the ingress address and whether it is a node port address."""
        if strategy_for(provider) is DiscoveryStrategy.LOCAL_CLI:
            return external_ip, node_port

        try:
            address, exposed_on_node_port = self.locator.locate_endpoint(service_ref, provider, external_ip, node_port)
            if not address:
                if self.wait_for_ingress_controller_host(service_ref):
                    address, exposed_on_node_port = self.locator.locate_endpoint(
                        service_ref, provider, external_ip, node_port)
                else:
                    logger.warning("Could not find host for ingress service", service=str(service_ref))
        except PollTimeoutError as e:
            raise DomainDiscoveryFailed(service_ref, str(e)) from e
        except ResourceNotFoundError as e:
            raise DomainDiscoveryFailed(service_ref, str(e)) from e
        except ApiException as e:
            logger.error("Failed to read the ingress service", service=str(service_ref),
                         status=e.status, reason=e.reason)
            raise DomainDiscoveryFailed(service_ref, f"{e.status} {e.reason}") from e

        if not address:
            raise DomainDiscoveryFailed(service_ref)
        return address, exposed_on_node_port

    def wait_for_ingress_controller_host(self, service_ref: ServiceRef) -> bool:
        """Wait until the ingress controller service reports a load balancer host or IP.

        Raises:
            ResourceNotFoundError: If the service does not exist.
            PollTimeoutError: If no address appears in time.
        """
        if not service_ref.namespace or not service_ref.name:
            return False
        self.kube.get_service(service_ref.namespace, service_ref.name)

        def has_host() -> bool:
            svc = self.kube.get_service(service_ref.namespace, service_ref.name)
            return bool(load_balancer_address(svc))

        return poll_until(self.poll_timeout, self.poll_interval, has_host,
                          notice="Waiting for external host on the ingress service",
                          notice_fields={"namespace": service_ref.namespace, "service": service_ref.name},
                          clock=self._clock, sleep=self._sleep)

    def default_registry(self, requirements: RequirementsConfig, provider: ProviderTag) -> None:
        """Default the container registry host from the in-cluster registry service.

        Only applies to on premise clusters without a registry; failures are logged.
        """
        cluster = requirements.cluster
        if provider is not ProviderTag.KUBERNETES or cluster.registry:
            return
        if not cluster.namespace:
            cluster.namespace = DEFAULT_PLATFORM_NAMESPACE

        try:
            svc = self.kube.get_service(cluster.namespace, REGISTRY_SERVICE)
        except (ResourceNotFoundError, ApiException) as e:
            logger.warning("Could not read the registry service to default the container registry host",
                           namespace=cluster.namespace, service=REGISTRY_SERVICE, error=str(e))
            return

        cluster_ip = svc.spec.cluster_ip if svc.spec else None
        if cluster_ip:
            cluster.registry = cluster_ip
            logger.info("Defaulted the container registry host", registry=cluster_ip)
        else:
            logger.warning("Could not find the clusterIP of the registry service to default the container registry host",
                           namespace=cluster.namespace, service=REGISTRY_SERVICE)

    def _build_resolver(self, requirements: RequirementsConfig) -> DomainResolver:
        return DomainResolver(
            prompter=self.prompter,
            runner=self.runner,
            registrar=self.registrar,
            cluster_identity=lambda: self.cluster_identity(requirements),
            sleep=self._sleep,
        )

    def cluster_identity(self, requirements: RequirementsConfig) -> Tuple[str, str]:
        """Return the cluster name and region, reading the region from node labels when unset."""
        region = requirements.cluster.region
        if not region:
            for node in self.kube.list_nodes():
                labels = (node.metadata.labels if node.metadata else None) or {}
                region = next((labels[label] for label in REGION_LABELS if labels.get(label)), "")
                if region:
                    break
        return requirements.cluster.cluster_name, region
