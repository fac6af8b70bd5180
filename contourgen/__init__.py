"""Build Contour HTTPProxy resources and endpoint-probe ingresses from ingress descriptions."""

__version__ = "0.1.0"
__all__ = ["constants", "names", "models", "httpproxy", "kingress"]