from contourgen.models import (
    HTTPIngressPath,
    HTTPProxy,
    HTTPProxySpec,
    HeaderValue,
    HeadersPolicy,
    Ingress,
    IngressBackendSplit,
    IngressRule,
    IngressSpec,
    IngressVisibility,
    ObjectMeta,
    Route,
    SecretRef,
    VirtualHost,
    new_controller_ref,
)


def _ingress():
    return Ingress(
        metadata=ObjectMeta(name="bar", namespace="foo", generation=123,
                            labels={"a": "b"}),
        spec=IngressSpec(
            rules=[
                IngressRule(
                    hosts=["example.com"],
                    visibility=IngressVisibility.EXTERNAL_IP,
                    paths=[
                        HTTPIngressPath(
                            append_headers={"Foo": "bar"},
                            splits=[IngressBackendSplit(service_name="goo",
                                                        service_port=123,
                                                        percent=100)],
                        )
                    ],
                )
            ]
        ),
    )


def test_ingress_deep_copy_is_equal_and_independent():
    original = _ingress()
    copied = original.deep_copy()
    assert copied == original
    copied.spec.rules[0].hosts.append("other.com")
    copied.metadata.labels["x"] = "y"
    copied.spec.rules[0].paths[0].splits[0].percent = 50
    assert original.spec.rules[0].hosts == ["example.com"]
    assert "x" not in original.metadata.labels
    assert original.spec.rules[0].paths[0].splits[0].percent == 100


def test_http_proxy_deep_copy_is_independent():
    proxy = HTTPProxy(
        metadata=ObjectMeta(name="p", annotations={"k": "v"}),
        spec=HTTPProxySpec(
            virtual_host=VirtualHost(fqdn="example.com"),
            routes=[Route(request_headers_policy=HeadersPolicy(
                set_headers=[HeaderValue(name="Foo", value="bar")]))],
        ),
    )
    copied = proxy.deep_copy()
    assert copied == proxy
    copied.metadata.annotations["k"] = "changed"
    copied.spec.virtual_host.fqdn = "changed.com"
    copied.spec.routes[0].request_headers_policy.set_headers.clear()
    assert proxy.metadata.annotations["k"] == "v"
    assert proxy.spec.virtual_host.fqdn == "example.com"
    assert len(proxy.spec.routes[0].request_headers_policy.set_headers) == 1


def test_new_controller_ref():
    ref = new_controller_ref(_ingress())
    assert ref.api_version == "networking.internal.knative.dev/v1alpha1"
    assert ref.kind == "Ingress"
    assert ref.name == "bar"
    assert ref.controller is True
    assert ref.block_owner_deletion is True


def test_secret_ref_str():
    assert str(SecretRef(namespace="ns", name="cert")) == "ns/cert"


def test_visibility_from_value():
    assert IngressVisibility("ClusterLocal") is IngressVisibility.CLUSTER_LOCAL


def test_default_collections_are_not_shared():
    first = Ingress()
    second = Ingress()
    first.metadata.labels["k"] = "v"
    first.spec.rules.append(IngressRule())
    assert second.metadata.labels == {}
    assert second.spec.rules == []