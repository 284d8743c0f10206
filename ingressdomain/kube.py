"""Thin Kubernetes API client used by the resolution engine."""

from typing import List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from .errors import ResourceNotFoundError
from .logging_config import get_logger, log_function_entry, log_function_exit, log_k8s_operation

logger = get_logger(__name__)


class KubeClient:
    """Read-only access to the services and nodes of a cluster."""

    def __init__(self, kubeconfig_path: Optional[str] = None, context: Optional[str] = None,
                 core_v1: Optional[client.CoreV1Api] = None):
        self.kubeconfig_path = kubeconfig_path
        self.context = context
        self._k8s_client: Optional[client.ApiClient] = None
        self._core_v1: Optional[client.CoreV1Api] = core_v1

    def connect(self) -> None:
        """Initialize connection to the Kubernetes cluster."""
        log_function_entry(logger, "connect", kubeconfig_path=self.kubeconfig_path, context=self.context)

        try:
            if self.kubeconfig_path or self.context:
                logger.debug("Loading kubeconfig from file",
                             kubeconfig_path=self.kubeconfig_path,
                             context=self.context)
                config.load_kube_config(config_file=self.kubeconfig_path, context=self.context)
            else:
                try:
                    config.load_incluster_config()
                    logger.debug("Loaded in-cluster config")
                except config.ConfigException:
                    logger.debug("Not running in a cluster, loading default kubeconfig")
                    config.load_kube_config()

            self._k8s_client = client.ApiClient()
            self._core_v1 = client.CoreV1Api(self._k8s_client)
            logger.debug("Successfully connected to cluster", context=self.context)
            log_function_exit(logger, "connect", status="success")

        except Exception as e:
            logger.error("Failed to connect to cluster",
                         error=str(e),
                         kubeconfig_path=self.kubeconfig_path,
                         context=self.context)
            log_function_exit(logger, "connect", status="error", error=str(e))
            raise

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            self.connect()
        return self._core_v1

    def get_service(self, namespace: str, name: str) -> client.V1Service:
        """Read a service.

        Raises:
            ResourceNotFoundError: If the service does not exist.
        """
        log_k8s_operation(logger, "get_service", namespace, service=name)
        try:
            return self.core_v1.read_namespaced_service(name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFoundError("service", name, namespace) from e
            logger.error("Could not read service", namespace=namespace, service=name, status=e.status, reason=e.reason)
            raise

    def list_nodes(self) -> List[client.V1Node]:
        """List the cluster nodes.

        Raises:
            ResourceNotFoundError: If the API reports the node list as absent.
        """
        log_k8s_operation(logger, "list_nodes")
        try:
            return self.core_v1.list_node().items or []
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFoundError("nodes", "*") from e
            logger.error("Could not list nodes", status=e.status, reason=e.reason)
            raise

    def close(self) -> None:
        """Clean up the connection."""
        if self._k8s_client:
            self._k8s_client.close()
            self._k8s_client = None
