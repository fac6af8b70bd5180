"""Data model for ingress resources, Contour HTTP proxies and configuration."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum

from .constants import INGRESS_API_VERSION, INGRESS_KIND


class IngressVisibility(str, Enum):
    """Where an ingress rule is reachable from."""

    EXTERNAL_IP = "ExternalIP"
    CLUSTER_LOCAL = "ClusterLocal"


class HTTPOption(str, Enum):
    """How plain HTTP traffic is treated."""

    ENABLED = "Enabled"
    REDIRECTED = "Redirected"


class DataplaneTrust(str, Enum):
    """Level of trust required on the data plane."""

    DISABLED = "disabled"
    MINIMAL = "minimal"
    ENABLED = "enabled"
    MUTUAL = "mutual"
    IDENTITY = "identity"


# Ingress side.


@dataclass
class HeaderMatch:
    exact: str = ""


@dataclass
class IngressBackendSplit:
    service_name: str = ""
    service_namespace: str = ""
    service_port: int | str = 0
    percent: int = 0
    append_headers: dict[str, str] = field(default_factory=dict)


@dataclass
class HTTPIngressPath:
    path: str = ""
    rewrite_host: str = ""
    headers: dict[str, HeaderMatch] = field(default_factory=dict)
    append_headers: dict[str, str] = field(default_factory=dict)
    splits: list[IngressBackendSplit] = field(default_factory=list)


@dataclass
class IngressRule:
    hosts: list[str] = field(default_factory=list)
    visibility: IngressVisibility | None = None
    paths: list[HTTPIngressPath] = field(default_factory=list)


@dataclass
class IngressTLS:
    hosts: list[str] = field(default_factory=list)
    secret_name: str = ""
    secret_namespace: str = ""


@dataclass
class IngressSpec:
    tls: list[IngressTLS] = field(default_factory=list)
    rules: list[IngressRule] = field(default_factory=list)
    http_option: HTTPOption | None = None


@dataclass
class OwnerReference:
    api_version: str = ""
    kind: str = ""
    name: str = ""
    uid: str = ""
    controller: bool = False
    block_owner_deletion: bool = False


@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    uid: str = ""
    generation: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list)


@dataclass
class Ingress:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: IngressSpec = field(default_factory=IngressSpec)

    def deep_copy(self) -> Ingress:
        """Return an independent copy."""
        return copy.deepcopy(self)


def new_controller_ref(ing: Ingress) -> OwnerReference:
    """Return an owner reference that marks ``ing`` as the controlling owner."""
    return OwnerReference(
        api_version=INGRESS_API_VERSION,
        kind=INGRESS_KIND,
        name=ing.metadata.name,
        uid=ing.metadata.uid,
        controller=True,
        block_owner_deletion=True,
    )


# Contour HTTP proxy side.


@dataclass
class HeaderValue:
    name: str = ""
    value: str = ""


@dataclass
class HeadersPolicy:
    set_headers: list[HeaderValue] = field(default_factory=list)


@dataclass
class TimeoutPolicy:
    response: str = ""
    idle: str = ""


@dataclass
class RetryPolicy:
    num_retries: int = 0
    retry_on: list[str] = field(default_factory=list)


@dataclass
class UpstreamValidation:
    ca_certificate: str = ""
    subject_name: str = ""


@dataclass
class ProxyService:
    name: str = ""
    port: int = 0
    weight: int = 0
    protocol: str | None = None
    request_headers_policy: HeadersPolicy | None = None
    upstream_validation: UpstreamValidation | None = None


@dataclass
class HeaderMatchCondition:
    name: str = ""
    exact: str = ""


@dataclass
class MatchCondition:
    prefix: str = ""
    header: HeaderMatchCondition | None = None


@dataclass
class Route:
    conditions: list[MatchCondition] = field(default_factory=list)
    timeout_policy: TimeoutPolicy | None = None
    retry_policy: RetryPolicy | None = None
    services: list[ProxyService] = field(default_factory=list)
    enable_websockets: bool = False
    request_headers_policy: HeadersPolicy | None = None
    permit_insecure: bool = False


@dataclass
class TLS:
    secret_name: str = ""


@dataclass
class ExtensionServiceReference:
    name: str = ""
    namespace: str = ""


@dataclass
class AuthorizationServer:
    extension_service_ref: ExtensionServiceReference = field(
        default_factory=ExtensionServiceReference
    )


@dataclass
class VirtualHost:
    fqdn: str = ""
    tls: TLS | None = None
    authorization: AuthorizationServer | None = None


@dataclass
class HTTPProxySpec:
    virtual_host: VirtualHost | None = None
    routes: list[Route] = field(default_factory=list)


@dataclass
class HTTPProxyStatus:
    current_status: str = ""
    description: str = ""


@dataclass
class HTTPProxy:
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: HTTPProxySpec = field(default_factory=HTTPProxySpec)
    status: HTTPProxyStatus = field(default_factory=HTTPProxyStatus)

    def deep_copy(self) -> HTTPProxy:
        """Return an independent copy."""
        return copy.deepcopy(self)


# Configuration.


@dataclass(frozen=True)
class SecretRef:
    namespace: str = ""
    name: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class ContourConfig:
    visibility_classes: dict[IngressVisibility, str] = field(default_factory=dict)
    timeout_policy_response: str = ""
    timeout_policy_idle: str = ""
    default_tls_secret: SecretRef | None = None


@dataclass
class NetworkConfig:
    dataplane_trust: DataplaneTrust = DataplaneTrust.DISABLED


@dataclass
class Config:
    contour: ContourConfig = field(default_factory=ContourConfig)
    network: NetworkConfig | None = None