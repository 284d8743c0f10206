"""Data models for ingress domain resolution."""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .errors import PersistenceError

MAGIC_DNS_SUFFIX = "nip.io"
AUTO_DNS_SUFFIXES = (".nip.io", ".xip.io")


class ProviderTag(str, Enum):
    """The substrate a Kubernetes cluster runs on."""

    AKS = "aks"
    ALIBABA = "alibaba"
    AWS = "aws"
    EKS = "eks"
    GKE = "gke"
    ICP = "icp"
    IKS = "iks"
    KIND = "kind"
    KUBERNETES = "kubernetes"
    MINIKUBE = "minikube"
    MINISHIFT = "minishift"
    OKE = "oke"
    OPENSHIFT = "openshift"
    PKS = "pks"
    UNKNOWN = ""

    @classmethod
    def parse(cls, value: Optional[Union[str, "ProviderTag"]]) -> "ProviderTag":
        """Map a provider name onto a tag, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN

    def __str__(self) -> str:
        return self.value


def provider_options() -> str:
    """Return all known providers as a sorted, comma separated string."""
    return ", ".join(sorted(p.value for p in ProviderTag if p is not ProviderTag.UNKNOWN))


class IngressKind(str, Enum):
    """Declared kind of ingress controller."""

    ISTIO = "istio"
    INGRESS = "ingress"


class ServiceRef(BaseModel):
    """A (namespace, name) pair identifying a Kubernetes service."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., description="Service namespace")
    name: str = Field(..., description="Service name")

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class TLSConfig(BaseModel):
    """TLS settings of the ingress."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    enabled: bool = Field(False, description="Whether TLS certificates are requested")
    email: str = Field("", description="Contact e-mail for the certificate issuer")


class IngressRequirements(BaseModel):
    """Ingress section of the requirements file."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    domain: str = Field("", description="The externally reachable ingress domain")
    namespace: str = Field("", description="Namespace of the ingress controller service")
    service: str = Field("", description="Name of the ingress controller service")
    kind: str = Field("", description="Kind of ingress controller (istio, ingress)")
    service_type: str = Field("", alias="serviceType", description="Service type (LoadBalancer, NodePort)")
    external_ip: str = Field("", alias="externalIP", description="External IP override for NodePort ingress")
    tls: TLSConfig = Field(default_factory=TLSConfig, description="TLS settings")

    @property
    def is_node_port(self) -> bool:
        return self.service_type == "NodePort"

    def is_auto_dns_domain(self) -> bool:
        """Return True when the domain is served by a magic DNS service."""
        return any(self.domain.endswith(suffix) for suffix in AUTO_DNS_SUFFIXES)


class ClusterRequirements(BaseModel):
    """Cluster section of the requirements file."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    provider: str = Field("", description="Kubernetes provider name")
    cluster_name: str = Field("", alias="clusterName", description="Cluster name")
    region: str = Field("", description="Cloud region")
    namespace: str = Field("", description="Namespace the platform is installed into")
    registry: str = Field("", description="Container registry host")

    @property
    def provider_tag(self) -> ProviderTag:
        return ProviderTag.parse(self.provider)


class RequirementsConfig(BaseModel):
    """The requirements document persisted next to the environment sources."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    cluster: ClusterRequirements = Field(default_factory=ClusterRequirements)
    ingress: IngressRequirements = Field(default_factory=IngressRequirements)

    def save_config(self, path: Union[str, Path]) -> None:
        """Write the requirements back to ``path`` as YAML."""
        data = self.model_dump(by_alias=True, mode="json")
        try:
            Path(path).write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        except OSError as e:
            raise PersistenceError(path, str(e)) from e


class App(BaseModel):
    """An application add-on installed into the cluster."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Chart name, e.g. jx-labs/istio")


class AppConfig(BaseModel):
    """The apps document listing add-ons."""

    model_config = ConfigDict(extra="allow")

    apps: List[App] = Field(default_factory=list)
