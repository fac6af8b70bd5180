# contourgen

`contourgen` turns an ingress description into the resources a
Contour-backed ingress needs:

* **HTTPProxy objects**, one per host. Hosts ending in `.svc.<cluster domain>`
  or `.<cluster domain>` are also expanded to their shorter forms. Each proxy
  carries routes with match conditions, request header policies, a retry
  policy, a timeout policy, weighted services, TLS settings and, when asked
  for, an external authorization service.
* **An endpoint-probe ingress**: a child ingress with one synthetic
  `*.net-contour.invalid` host per backend service and visibility. Probing it
  confirms that every service is reachable before live routing changes.

Everything is plain data. The package builds Python dataclasses. It depends
on nothing outside the standard library.

## Installation

```
pip install contourgen
```

## Describing an ingress

The dataclasses in `contourgen.models` describe both sides:

* The ingress side: `Ingress`, `ObjectMeta`, `IngressSpec`, `IngressRule`,
  `HTTPIngressPath`, `IngressBackendSplit`, `HeaderMatch` and `IngressTLS`.
* The proxy side: `HTTPProxy`, `HTTPProxySpec`, `VirtualHost`, `Route`,
  `ProxyService`, `MatchCondition`, `HeadersPolicy`, `RetryPolicy`,
  `TimeoutPolicy`, `UpstreamValidation` and `TLS`.
* The configuration: `Config`, `ContourConfig`, `NetworkConfig` and
  `SecretRef`.

```python
from contourgen.models import (
    Config, ContourConfig, HTTPIngressPath, Ingress, IngressBackendSplit,
    IngressRule, IngressSpec, IngressVisibility, ObjectMeta,
)

ing = Ingress(
    metadata=ObjectMeta(name="bar", namespace="foo", generation=1),
    spec=IngressSpec(rules=[
        IngressRule(
            hosts=["example.com"],
            visibility=IngressVisibility.EXTERNAL_IP,
            paths=[HTTPIngressPath(splits=[
                IngressBackendSplit(service_name="goo", service_port=80, percent=100),
            ])],
        ),
    ]),
)

config = Config(contour=ContourConfig(visibility_classes={
    IngressVisibility.CLUSTER_LOCAL: "contour-internal",
    IngressVisibility.EXTERNAL_IP: "contour-external",
}))
```

## Generating HTTP proxies

```python
from contourgen.httpproxy import make_http_proxies

proxies = make_http_proxies(
    ing, {}, config,
    system_namespace="knative-serving",
    cluster_domain="cluster.local",
)
for proxy in proxies:
    print(proxy.metadata.name, proxy.spec.virtual_host.fqdn)
```

The second argument maps service names to an upstream protocol, such as
`"h2"` or `"tls"`. A service whose path rewrites the host and whose split sets
the `K-Original-Host` header gets `"h2c"` instead. `system_namespace` and
`cluster_domain` default to `DEFAULT_SYSTEM_NAMESPACE` (`"knative-serving"`)
and `DEFAULT_CLUSTER_DOMAIN` (`"cluster.local"`). If `config` is omitted, an
empty `Config()` is used.

Other behaviour worth knowing:

* A probe route, matched on the `K-Network-Hash` header, is placed before
  every path. `insert_probe(ing)` does this in place and returns the hash.
  `make_http_proxies` applies it to a copy of the ingress, so the ingress you
  pass in is not changed.
* Routes permit insecure traffic when the ingress `http_option` is
  `HTTPOption.ENABLED`, and always for cluster-local rules.
* When `config.network` is set and its `dataplane_trust` is not
  `DataplaneTrust.DISABLED`, every service gets upstream validation against
  the `routing-serving-certs` secret in the system namespace.
* Paths under `/.well-known/acme-challenge` never get a protocol or upstream
  validation.
* TLS comes from the ingress `tls` entry that lists the host. If there is
  none, `ContourConfig.default_tls_secret` is used when it is set.
* The `contour.networking.knative.dev/extension-service` annotation, and
  optionally `contour.networking.knative.dev/extension-service-namespace`,
  add an authorization server to each virtual host.

## Building the endpoint-probe ingress

Pass the proxies from the previous generation, so that services still used by
the old routing are probed as well. Proxies whose status is not `"valid"` are
skipped.

```python
from contourgen.kingress import make_endpoint_probe_ingress

probe = make_endpoint_probe_ingress(ing, previous_state=[], config=config)
print(probe.metadata.name)              # bar--ep
print(probe.spec.rules[0].hosts)        # ['goo.gen-1.bar.foo.net-contour.invalid']
```

Services reached only through a path prefix are left out of the probe. The
probe ingress runs over HTTPS (`HTTPOption.REDIRECTED`) only when the parent
redirects HTTP and has certificates, either through its own `tls` entries or
through a default TLS secret.

## Other helpers

* `contourgen.httpproxy.service_names(ing)` maps each backend service to a
  `ServiceInfo` with its port, visibilities, host rewrite and whether it sits
  behind a path.
* `contourgen.httpproxy.expanded_hosts(hosts, cluster_domain)` returns the
  hosts together with their shorter cluster-local forms, sorted.
* `contourgen.httpproxy.default_retry_policy()` returns the retry policy set on
  every route: two retries on connection-level failures and resets.
* `contourgen.names.child_name(parent, suffix)` builds a child resource name.
  If the result would be longer than 63 characters, it is shortened with an
  MD5 digest. `contourgen.names.endpoint_probe_ingress(ing)` names the probe
  ingress.
* `contourgen.models.new_controller_ref(ing)` builds the owner reference set
  on generated resources. `Ingress.deep_copy()` and `HTTPProxy.deep_copy()`
  return independent copies.
* `contourgen.constants` holds the label and annotation keys set on generated
  resources.

## What it does not do

`contourgen` only builds objects. It does not connect to a cluster, watch or
apply resources, run a reconcile loop, perform the probes, or serialise
resources to YAML or JSON. It also has no command-line interface.

## Running the tests

```
pip install -e .[test]
pytest
```