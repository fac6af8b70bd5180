"""Build the child ingress that probes endpoints before routes change."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .constants import CLASS_KEY, ENDPOINTS_PROBE_KEY
from .httpproxy import ServiceInfo, service_names
from .models import (
    Config,
    HTTPIngressPath,
    HTTPOption,
    HTTPProxy,
    Ingress,
    IngressBackendSplit,
    IngressRule,
    IngressSpec,
    IngressTLS,
    IngressVisibility,
    ObjectMeta,
    new_controller_ref,
)
from .names import endpoint_probe_ingress

logger = logging.getLogger(__name__)


def _proxy_visibility(proxy: HTTPProxy, config: Config) -> IngressVisibility | None:
    proxy_class = proxy.metadata.annotations.get(CLASS_KEY, "")
    visibility = None
    for candidate, klass in config.contour.visibility_classes.items():
        if klass == proxy_class:
            visibility = candidate
    return visibility


def _merge_previous_state(
    infos: dict[str, ServiceInfo],
    previous_state: Iterable[HTTPProxy],
    config: Config,
) -> None:
    for proxy in previous_state:
        # An invalid proxy usually means its revision was garbage collected.
        if proxy.status.current_status != "valid":
            logger.info("Skip invalid proxy: %r", proxy)
            continue
        visibility = _proxy_visibility(proxy, config)
        if visibility is None:
            continue
        for route in proxy.spec.routes:
            has_path = any(cond.prefix for cond in route.conditions)
            for service in route.services:
                info = infos.get(service.name)
                if info is None:
                    info = ServiceInfo(port=service.port, has_path=has_path)
                    infos[service.name] = info
                info.raw_visibilities.add(visibility.value)


def make_endpoint_probe_ingress(
    ing: Ingress,
    previous_state: Iterable[HTTPProxy] | None = None,
    config: Config | None = None,
) -> Ingress:
    """Return a child ingress with a bogus host per referenced service.

    Probing those hosts confirms every service is known to the proxies
    before any live route starts pointing at it.
    """
    config = config if config is not None else Config()
    meta = ing.metadata
    child = Ingress(
        metadata=ObjectMeta(
            name=endpoint_probe_ingress(ing),
            namespace=meta.namespace,
            labels=dict(meta.labels),
            annotations={**meta.annotations, ENDPOINTS_PROBE_KEY: "true"},
            owner_references=[new_controller_ref(ing)],
        ),
        spec=IngressSpec(http_option=HTTPOption.ENABLED),
    )

    infos = service_names(ing)
    _merge_previous_state(infos, previous_state or (), config)

    names = sorted(infos)
    logger.debug("Endpoints probe will cover services: %s", names)

    probe_hosts: list[str] = []
    for name in names:
        info = infos[name]
        if info.has_path:
            continue
        for visibility in info.visibilities():
            host = (
                f"{name}.gen-{meta.generation}.{meta.name}.{meta.namespace}"
                ".net-contour.invalid"
            )
            probe_hosts.append(host)
            child.spec.rules.append(
                IngressRule(
                    hosts=[host],
                    visibility=visibility,
                    paths=[
                        HTTPIngressPath(
                            rewrite_host=info.rewrite_host,
                            splits=[
                                IngressBackendSplit(
                                    service_name=name,
                                    service_namespace=meta.namespace,
                                    service_port=info.port,
                                    percent=100,
                                )
                            ],
                        )
                    ],
                )
            )

    has_cert = bool(ing.spec.tls) or config.contour.default_tls_secret is not None
    if ing.spec.http_option == HTTPOption.REDIRECTED and has_cert:
        # Probe over HTTPS only when certificates exist and TLS is required.
        child.spec.http_option = HTTPOption.REDIRECTED
        child.spec.tls = [
            IngressTLS(
                hosts=list(probe_hosts),
                secret_name=tls.secret_name,
                secret_namespace=tls.secret_namespace,
            )
            for tls in ing.spec.tls
        ]
    return child