"""Label, annotation and protocol keys used on generated resources."""

# Holds the generation of the parent ingress that a proxy's spec is derived from.
GENERATION_KEY = "contour.networking.knative.dev/generation"

# Holds the name of the parent ingress. Owner references cannot be used in
# filter expressions, so the name is kept here as well.
PARENT_KEY = "contour.networking.knative.dev/parent"

# Holds the hash of the fqdn a proxy exists for. Label values have a length
# limit, so the hash stands in for the name itself.
DOMAIN_HASH_KEY = "contour.networking.knative.dev/domainHash"

# Names the Contour class that selects the instance handling a proxy.
CLASS_KEY = "projectcontour.io/ingress.class"

# Placed on child ingresses so that they bypass endpoint probing themselves.
ENDPOINTS_PROBE_KEY = "contour.networking.knative.dev/endpointsProbe"

# Protocols set on proxy services when internal encryption is enabled.
INTERNAL_ENCRYPTION_PROTOCOL = "tls"
INTERNAL_ENCRYPTION_H2_PROTOCOL = "h2"

# Path added to routes when automatic TLS uses an http01 solver.
HTTP_CHALLENGE_PATH = "/.well-known/acme-challenge"

# Optional annotations naming an extension service for authorization.
EXTENSION_SERVICE_KEY = "contour.networking.knative.dev/extension-service"
EXTENSION_SERVICE_NAMESPACE_KEY = (
    "contour.networking.knative.dev/extension-service-namespace"
)

# Header carrying the original host of a domain mapping.
ORIGINAL_HOST_KEY = "K-Original-Host"

# Header and path used by ingress readiness probes.
HASH_HEADER_NAME = "K-Network-Hash"
PROBE_HEADER_NAME = "K-Network-Probe"
PROBE_HEADER_VALUE = "probe"

# Secret holding the certificates for the serving data plane.
SERVING_ROUTING_CERT_NAME = "routing-serving-certs"

# Subject name expected on upstream certificates.
LEGACY_FAKE_DNS_NAME = "data-plane.knative.dev"

# Owner reference fields for ingress resources.
INGRESS_API_VERSION = "networking.internal.knative.dev/v1alpha1"
INGRESS_KIND = "Ingress"