"""Build Contour HTTP proxies from ingress resources."""

from __future__ import annotations

import copy
import hashlib
import json
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field

from .constants import (
    CLASS_KEY,
    DOMAIN_HASH_KEY,
    EXTENSION_SERVICE_KEY,
    EXTENSION_SERVICE_NAMESPACE_KEY,
    GENERATION_KEY,
    HASH_HEADER_NAME,
    HTTP_CHALLENGE_PATH,
    LEGACY_FAKE_DNS_NAME,
    ORIGINAL_HOST_KEY,
    PARENT_KEY,
    SERVING_ROUTING_CERT_NAME,
)
from .models import (
    TLS,
    AuthorizationServer,
    Config,
    DataplaneTrust,
    ExtensionServiceReference,
    HeaderMatch,
    HeaderMatchCondition,
    HeadersPolicy,
    HeaderValue,
    HTTPIngressPath,
    HTTPOption,
    HTTPProxy,
    HTTPProxySpec,
    Ingress,
    IngressBackendSplit,
    IngressTLS,
    IngressVisibility,
    MatchCondition,
    ObjectMeta,
    ProxyService,
    RetryPolicy,
    Route,
    TimeoutPolicy,
    UpstreamValidation,
    VirtualHost,
    new_controller_ref,
)
from .names import child_name

DEFAULT_SYSTEM_NAMESPACE = "knative-serving"
DEFAULT_CLUSTER_DOMAIN = "cluster.local"

# Value a probe sends in the hash header to reach the probe route.
_HASH_VALUE_OVERRIDE = "override"

_RETRY_ON = (
    "cancelled",
    "connect-failure",
    "refused-stream",
    "resource-exhausted",
    "retriable-status-codes",
    # Beyond the usual set, connection resets are retried as well.
    "reset",
)


def _visibility_key(visibility: IngressVisibility | None) -> str:
    return visibility.value if visibility is not None else ""


@dataclass
class ServiceInfo:
    """What is known about one backend service referenced by an ingress."""

    port: int | str = 0
    raw_visibilities: set[str] = field(default_factory=set)
    # Host header rewrite to use when probing this service.
    rewrite_host: str = ""
    has_path: bool = False

    def visibilities(self) -> list[IngressVisibility | None]:
        """Return the visibilities in sorted order; an empty one becomes None."""
        return [
            IngressVisibility(raw) if raw else None
            for raw in sorted(self.raw_visibilities)
        ]


def service_names(ing: Ingress) -> dict[str, ServiceInfo]:
    """Map every service named by the ingress splits to its details."""
    infos: dict[str, ServiceInfo] = {}
    for rule in ing.spec.rules:
        for path in rule.paths:
            for split in path.splits:
                info = infos.get(split.service_name)
                if info is None:
                    info = ServiceInfo(
                        port=split.service_port,
                        has_path=path.path != "",
                        rewrite_host=path.rewrite_host,
                    )
                    infos[split.service_name] = info
                info.raw_visibilities.add(_visibility_key(rule.visibility))
    return infos


def default_retry_policy() -> RetryPolicy:
    """Retry twice on connection problems."""
    return RetryPolicy(num_retries=2, retry_on=list(_RETRY_ON))


def _compute_hash(ing: Ingress) -> str:
    payload = json.dumps(asdict(ing.spec), sort_keys=True, separators=(",", ":"))
    data = payload + ing.metadata.namespace + ing.metadata.name
    return hashlib.sha256(data.encode()).hexdigest()


def insert_probe(ing: Ingress) -> str:
    """Prepend a probe path for every path of every rule and return the spec hash.

    A probe path matches requests carrying the override value in the hash
    header and answers with the hash of the ingress, so readiness can be
    checked per generation.
    """
    digest = _compute_hash(ing)
    for rule in ing.spec.rules:
        probe_paths: list[HTTPIngressPath] = []
        for path in rule.paths:
            probe = copy.deepcopy(path)
            probe.headers[HASH_HEADER_NAME] = HeaderMatch(exact=_HASH_VALUE_OVERRIDE)
            probe.append_headers[HASH_HEADER_NAME] = digest
            probe_paths.append(probe)
        rule.paths = probe_paths + rule.paths
    return digest


def expanded_hosts(
    hosts: Iterable[str], cluster_domain: str = DEFAULT_CLUSTER_DOMAIN
) -> list[str]:
    """Return the hosts plus their short cluster-local forms, sorted."""
    suffixes = ("." + cluster_domain, ".svc." + cluster_domain)
    result: set[str] = set()
    for host in hosts:
        result.add(host)
        for suffix in suffixes:
            if host.endswith(suffix):
                trimmed = host[: -len(suffix)]
                if "." in trimmed:
                    result.add(trimmed)
    return sorted(result)


def _int_value(port: int | str) -> int:
    if isinstance(port, int):
        return port
    try:
        return int(port)
    except ValueError:
        return 0


def _sorted_headers(headers: Iterable[tuple[str, str]]) -> list[HeaderValue]:
    values = [HeaderValue(name=name, value=value) for name, value in headers]
    return sorted(values, key=lambda header: header.name)


def _make_service(
    path: HTTPIngressPath,
    split: IngressBackendSplit,
    service_to_protocol: Mapping[str, str],
    config: Config,
    system_namespace: str,
) -> ProxyService:
    service = ProxyService(
        name=split.service_name,
        port=_int_value(split.service_port),
        weight=int(split.percent),
    )
    if split.append_headers:
        service.request_headers_policy = HeadersPolicy(
            set_headers=_sorted_headers(split.append_headers.items())
        )

    protocol = service_to_protocol.get(split.service_name)
    if protocol is not None:
        # Domain mappings carry a host rewrite together with the original
        # host header; their traffic goes back to the proxy unencrypted.
        if path.rewrite_host and ORIGINAL_HOST_KEY in split.append_headers:
            service.protocol = "h2c"
        else:
            service.protocol = protocol

    if (
        config.network is not None
        and config.network.dataplane_trust != DataplaneTrust.DISABLED
    ):
        service.upstream_validation = UpstreamValidation(
            ca_certificate=f"{system_namespace}/{SERVING_ROUTING_CERT_NAME}",
            subject_name=LEGACY_FAKE_DNS_NAME,
        )

    if HTTP_CHALLENGE_PATH in path.path:
        # ACME http01 challenges must stay plain HTTP/1.
        service.protocol = None
        service.upstream_validation = None
    return service


def _make_conditions(path: HTTPIngressPath) -> list[MatchCondition]:
    conditions: list[MatchCondition] = []
    if path.path:
        conditions.append(MatchCondition(prefix=path.path))
    conditions.extend(
        MatchCondition(header=HeaderMatchCondition(name=name, exact=match.exact))
        for name, match in path.headers.items()
    )
    # Prefix conditions first, then header conditions by descending name.
    conditions.sort(
        key=lambda cond: cond.header.name if cond.header else "", reverse=True
    )
    conditions.sort(key=lambda cond: not cond.prefix)
    return conditions


def _make_route(
    path: HTTPIngressPath,
    permit_insecure: bool,
    service_to_protocol: Mapping[str, str],
    config: Config,
    system_namespace: str,
) -> Route:
    headers = list(path.append_headers.items())
    if path.rewrite_host:
        headers.append(("Host", path.rewrite_host))
    return Route(
        conditions=_make_conditions(path),
        timeout_policy=TimeoutPolicy(
            response=config.contour.timeout_policy_response,
            idle=config.contour.timeout_policy_idle,
        ),
        retry_policy=default_retry_policy(),
        services=[
            _make_service(path, split, service_to_protocol, config, system_namespace)
            for split in path.splits
        ],
        enable_websockets=True,
        request_headers_policy=HeadersPolicy(set_headers=_sorted_headers(headers)),
        permit_insecure=permit_insecure,
    )


def make_http_proxies(
    ing: Ingress,
    service_to_protocol: Mapping[str, str] | None = None,
    config: Config | None = None,
    system_namespace: str = DEFAULT_SYSTEM_NAMESPACE,
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN,
) -> list[HTTPProxy]:
    """Return one HTTP proxy per host of every rule of the ingress."""
    config = config if config is not None else Config()
    service_to_protocol = service_to_protocol or {}
    classes = config.contour.visibility_classes

    ing = ing.deep_copy()
    insert_probe(ing)

    host_to_tls: dict[str, IngressTLS] = {
        host: tls for tls in ing.spec.tls for host in tls.hosts
    }
    allow_insecure = ing.spec.http_option == HTTPOption.ENABLED

    proxies: list[HTTPProxy] = []
    for rule in ing.spec.rules:
        rule_class = classes.get(rule.visibility, "")
        permit_insecure = (
            allow_insecure or rule.visibility == IngressVisibility.CLUSTER_LOCAL
        )
        routes = [
            _make_route(
                path, permit_insecure, service_to_protocol, config, system_namespace
            )
            for path in rule.paths
        ]

        for original_host in rule.hosts:
            proxy_class = rule_class
            if original_host.endswith(cluster_domain):
                proxy_class = classes.get(IngressVisibility.CLUSTER_LOCAL, "")
            for host in expanded_hosts([original_host], cluster_domain):
                proxies.append(
                    _make_proxy(
                        ing, host, proxy_class, copy.deepcopy(routes), host_to_tls, config
                    )
                )
    return proxies


def _make_proxy(
    ing: Ingress,
    host: str,
    proxy_class: str,
    routes: list[Route],
    host_to_tls: Mapping[str, IngressTLS],
    config: Config,
) -> HTTPProxy:
    virtual_host = VirtualHost(fqdn=host)

    annotations = ing.metadata.annotations
    if EXTENSION_SERVICE_KEY in annotations:
        virtual_host.authorization = AuthorizationServer(
            extension_service_ref=ExtensionServiceReference(
                name=annotations[EXTENSION_SERVICE_KEY],
                namespace=annotations.get(EXTENSION_SERVICE_NAMESPACE_KEY, ""),
            )
        )

    tls = host_to_tls.get(host)
    if tls is not None:
        virtual_host.tls = TLS(secret_name=f"{tls.secret_namespace}/{tls.secret_name}")
    elif config.contour.default_tls_secret is not None:
        virtual_host.tls = TLS(secret_name=str(config.contour.default_tls_secret))

    metadata = ObjectMeta(
        name=child_name(f"{ing.metadata.name}-{proxy_class}-", host),
        namespace=ing.metadata.namespace,
        labels={
            GENERATION_KEY: str(ing.metadata.generation),
            PARENT_KEY: ing.metadata.name,
            CLASS_KEY: proxy_class,
            DOMAIN_HASH_KEY: hashlib.sha1(
                host.encode(), usedforsecurity=False
            ).hexdigest(),
        },
        annotations={CLASS_KEY: proxy_class},
        owner_references=[new_controller_ref(ing)],
    )
    return HTTPProxy(
        metadata=metadata,
        spec=HTTPProxySpec(virtual_host=virtual_host, routes=routes),
    )