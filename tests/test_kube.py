"""Tests for the Kubernetes client wrapper."""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException

from conftest import make_node, make_service
from ingressdomain.errors import ResourceNotFoundError
from ingressdomain.kube import KubeClient


class TestKubeClient:
    """Tests for KubeClient."""

    @pytest.fixture
    def core_v1(self):
        return MagicMock()

    @pytest.fixture
    def kube(self, core_v1):
        return KubeClient(core_v1=core_v1)

    @patch('ingressdomain.kube.config.load_kube_config')
    @patch('ingressdomain.kube.client.ApiClient')
    @patch('ingressdomain.kube.client.CoreV1Api')
    def test_connect_with_kubeconfig(self, mock_core, mock_api_client, mock_load_config):
        """Test connecting with a kubeconfig file."""
        client = KubeClient(kubeconfig_path="/path/to/kubeconfig", context="test-context")

        client.connect()

        mock_load_config.assert_called_once_with(config_file="/path/to/kubeconfig", context="test-context")
        mock_api_client.assert_called_once()
        mock_core.assert_called_once()

    @patch('ingressdomain.kube.config.load_incluster_config')
    @patch('ingressdomain.kube.client.ApiClient')
    @patch('ingressdomain.kube.client.CoreV1Api')
    def test_connect_incluster(self, mock_core, mock_api_client, mock_load_config):
        """Test connecting with in-cluster config."""
        KubeClient().connect()

        mock_load_config.assert_called_once()
        mock_api_client.assert_called_once()

    @patch('ingressdomain.kube.config.load_kube_config')
    @patch('ingressdomain.kube.config.load_incluster_config')
    @patch('ingressdomain.kube.client.ApiClient')
    @patch('ingressdomain.kube.client.CoreV1Api')
    def test_connect_falls_back_to_default_kubeconfig(self, mock_core, mock_api_client, mock_incluster, mock_kubeconfig):
        """Test the default kubeconfig is used outside of a cluster."""
        from kubernetes.config import ConfigException
        mock_incluster.side_effect = ConfigException("not in cluster")

        KubeClient().connect()

        mock_kubeconfig.assert_called_once_with()

    @patch('ingressdomain.kube.config.load_kube_config')
    def test_connect_failure(self, mock_load_config):
        """Test connection failures are raised."""
        mock_load_config.side_effect = Exception("Connection failed")

        with pytest.raises(Exception, match="Connection failed"):
            KubeClient(kubeconfig_path="/nope").connect()

    def test_lazy_connect(self):
        """Test the API is connected on first use."""
        client = KubeClient()
        core_v1 = MagicMock()

        def connect():
            client._core_v1 = core_v1

        with patch.object(client, 'connect', side_effect=connect) as mock_connect:
            client.list_nodes()

        mock_connect.assert_called_once()
        core_v1.list_node.assert_called_once()

    def test_get_service(self, kube, core_v1):
        svc = make_service()
        core_v1.read_namespaced_service.return_value = svc

        assert kube.get_service("nginx", "nginx-ingress-controller") is svc
        core_v1.read_namespaced_service.assert_called_once_with(name="nginx-ingress-controller", namespace="nginx")

    def test_get_service_not_found(self, kube, core_v1):
        """Test a 404 becomes ResourceNotFoundError."""
        core_v1.read_namespaced_service.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(ResourceNotFoundError) as exc_info:
            kube.get_service("nginx", "missing")

        assert str(exc_info.value) == "service nginx/missing not found"

    def test_get_service_other_error(self, kube, core_v1):
        """Test other API errors propagate."""
        core_v1.read_namespaced_service.side_effect = ApiException(status=500, reason="Internal")

        with pytest.raises(ApiException):
            kube.get_service("nginx", "svc")

    def test_list_nodes(self, kube, core_v1):
        nodes = [make_node()]
        core_v1.list_node.return_value.items = nodes

        assert kube.list_nodes() == nodes

    def test_list_nodes_not_found(self, kube, core_v1):
        core_v1.list_node.side_effect = ApiException(status=404)

        with pytest.raises(ResourceNotFoundError):
            kube.list_nodes()

    def test_close(self):
        client = KubeClient()
        api_client = MagicMock()
        client._k8s_client = api_client

        client.close()

        api_client.close.assert_called_once()
        assert client._k8s_client is None
