"""Finds the raw address the ingress controller is reachable on."""

from typing import Tuple, Union

from kubernetes.client.rest import ApiException

from .errors import NodeLookupError, ResourceNotFoundError
from .kube import KubeClient
from .logging_config import get_logger, log_function_entry, log_function_exit
from .models import ProviderTag, ServiceRef

logger = get_logger(__name__)

NODE_PORT = "NodePort"
NODE_EXTERNAL_IP = "ExternalIP"

ON_PREM_DOCS = "https://jenkins-x.io/docs/labs/boot/getting-started/config/#ingress"


class EndpointLocator:
    """Reads load balancer and node addresses from the cluster.

    The locator never retries; an empty string means no address is known yet.
    """

    def __init__(self, kube: KubeClient):
        self.kube = kube

    def locate(self, service_ref: ServiceRef, provider: Union[str, ProviderTag] = ProviderTag.UNKNOWN,
               external_ip: str = "", node_port: bool = False) -> str:
        """Return the address of ``service_ref``.

        Load balancer services yield the last reported ingress entry, its IP
        preferred over its hostname. NodePort services yield ``ip:port`` built
        from ``external_ip`` (or the first node external IP) and the service
        node port.

        Raises:
            ResourceNotFoundError: If the service does not exist.
            NodeLookupError: If nodes cannot be listed to find an external IP.
        """
        address, _ = self.locate_endpoint(service_ref, provider, external_ip, node_port)
        return address

    def locate_endpoint(self, service_ref: ServiceRef, provider: Union[str, ProviderTag] = ProviderTag.UNKNOWN,
                        external_ip: str = "", node_port: bool = False) -> Tuple[str, bool]:
        """Like ``locate`` but also report whether the service is exposed through a node port."""
        log_function_entry(logger, "locate", service=str(service_ref), provider=str(provider),
                           external_ip=external_ip, node_port=node_port)
        logger.info("Looking up the external host of the ingress controller service",
                    namespace=service_ref.namespace, service=service_ref.name)
        if ProviderTag.parse(provider) is ProviderTag.KUBERNETES and not external_ip:
            logger.info("On premise installs can set 'ingress.externalIP' in the requirements file "
                        "to configure the external host for NodePort based ingress", docs=ON_PREM_DOCS)

        svc = self.kube.get_service(service_ref.namespace, service_ref.name)

        address = load_balancer_address(svc)

        node_port = node_port or (svc.spec is not None and svc.spec.type == NODE_PORT)
        if node_port:
            if not external_ip:
                external_ip = self.find_first_external_node_ip()
            if external_ip:
                address = node_port_address(svc, external_ip) or address

        log_function_exit(logger, "locate", service=str(service_ref), address=address, node_port=node_port)
        return address, node_port

    def find_first_external_node_ip(self) -> str:
        """Return the first node address of type ExternalIP, or an empty string."""
        try:
            nodes = self.kube.list_nodes()
        except ResourceNotFoundError:
            return ""
        except ApiException as e:
            raise NodeLookupError(
                "no externalIP specified and failed to find a Node externalIP probably due to RBAC"
            ) from e

        for node in nodes:
            addresses = (node.status.addresses if node.status else None) or []
            for node_address in addresses:
                if node_address.type == NODE_EXTERNAL_IP and node_address.address:
                    logger.debug("Found node external IP", node=node.metadata.name, address=node_address.address)
                    return node_address.address
        logger.info("No node carries an external IP address")
        return ""


def load_balancer_address(svc) -> str:
    """Return the address of the last load balancer ingress entry."""
    address = ""
    status = svc.status.load_balancer if svc.status else None
    for ingress in (status.ingress if status else None) or []:
        if ingress.ip:
            address = ingress.ip
        elif ingress.hostname:
            address = ingress.hostname
    return address


def node_port_address(svc, external_ip: str) -> str:
    """Combine ``external_ip`` with a node port of ``svc``.

    When several ports carry a node port the last one wins.
    """
    address = ""
    for port in (svc.spec.ports if svc.spec else None) or []:
        if port.node_port:
            address = f"{external_ip}:{port.node_port}"
    return address
