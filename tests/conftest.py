"""Shared fixtures building Kubernetes objects for the tests."""

from typing import List, Optional
from unittest.mock import MagicMock

import pytest
from kubernetes import client

from ingressdomain.errors import ResourceNotFoundError
from ingressdomain.kube import KubeClient


def make_service(name: str = "nginx-ingress-controller", namespace: str = "nginx",
                 service_type: str = "LoadBalancer", node_ports: Optional[List[int]] = None,
                 lb_ips: Optional[List[str]] = None, lb_hostnames: Optional[List[str]] = None,
                 lb_ingress: Optional[List[client.V1LoadBalancerIngress]] = None,
                 cluster_ip: Optional[str] = None) -> client.V1Service:
    ports = [
        client.V1ServicePort(name=f"port-{i}", port=80 + i, node_port=node_port)
        for i, node_port in enumerate(node_ports or [])
    ]
    ingress = list(lb_ingress or [])
    ingress += [client.V1LoadBalancerIngress(ip=ip) for ip in lb_ips or []]
    ingress += [client.V1LoadBalancerIngress(hostname=h) for h in lb_hostnames or []]
    return client.V1Service(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        spec=client.V1ServiceSpec(type=service_type, ports=ports or None, cluster_ip=cluster_ip),
        status=client.V1ServiceStatus(load_balancer=client.V1LoadBalancerStatus(ingress=ingress or None)),
    )


def make_node(name: str = "node1", internal_ip: Optional[str] = "1.2.3.4",
              external_ip: Optional[str] = None, labels: Optional[dict] = None) -> client.V1Node:
    addresses = []
    if internal_ip:
        addresses.append(client.V1NodeAddress(type="InternalIP", address=internal_ip))
    if external_ip:
        addresses.append(client.V1NodeAddress(type="ExternalIP", address=external_ip))
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=name, labels=labels),
        status=client.V1NodeStatus(addresses=addresses),
    )


class FakeClock:
    """Monotonic clock advanced by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    """A fake clock and sleep pair."""
    return FakeClock()


@pytest.fixture
def kube():
    """A KubeClient mock with no services and no nodes."""
    mock = MagicMock(spec=KubeClient)
    serve(mock)
    mock.list_nodes.return_value = []
    return mock


def serve(kube_mock, *services: client.V1Service) -> None:
    """Make ``kube_mock.get_service`` return ``services`` by namespace and name."""
    by_key = {(s.metadata.namespace, s.metadata.name): s for s in services}

    def get_service(namespace, name):
        if (namespace, name) not in by_key:
            raise ResourceNotFoundError("service", name, namespace)
        return by_key[(namespace, name)]

    kube_mock.get_service.side_effect = get_service


@pytest.fixture(autouse=True)
def outside_cluster(monkeypatch):
    """Run every test as if outside of a cluster bootstrap."""
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    monkeypatch.delenv("JX_INTERPRET_PIPELINE", raising=False)
