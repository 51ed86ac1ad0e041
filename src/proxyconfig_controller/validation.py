"""Proxy spec validation.

This module checks the URL-like fields of a proxy spec and, when asked,
probes the readiness endpoints through the configured proxy.
"""

import ipaddress
import re
from urllib.parse import urlsplit

import requests
from icecream import ic

from proxyconfig_controller import console
from proxyconfig_controller.exceptions import InvalidProxyConfigError
from proxyconfig_controller.models import ProxySpec

PROXY_HTTP_SCHEME = "http"
PROXY_HTTPS_SCHEME = "https"
NO_PROXY_WILDCARD = "*"

# RFC 1123 subdomain: dot separated labels of lowercase alphanumerics and '-'
_DNS_LABEL = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS_SUBDOMAIN_PATTERN = re.compile(rf"^{_DNS_LABEL}(\.{_DNS_LABEL})*$")
_DNS_SUBDOMAIN_MAX_LENGTH = 253

_READINESS_TIMEOUT_SECONDS = 10


def validate_uri(uri: str) -> str:
    """Check that ``uri`` is an absolute URI with a host.

    Args:
        uri: The URI to check.

    Returns:
        The lowercased URI scheme.

    Raises:
        ValueError: If the URI cannot be parsed, has no scheme or no host.

    """
    parsed = urlsplit(uri)
    if not parsed.scheme:
        raise ValueError(f"invalid URI {uri!r} (no scheme)")
    if not parsed.hostname:
        raise ValueError(f"invalid URI {uri!r} (no host)")
    # Accessing port validates it
    _ = parsed.port
    return parsed.scheme.lower()


def is_domain_name(value: str) -> bool:
    """Return True if ``value`` is a DNS domain, optionally prefixed by '.' as a suffix match."""
    domain = value[1:] if value.startswith(".") else value
    domain = domain.lower()
    if not domain or len(domain) > _DNS_SUBDOMAIN_MAX_LENGTH:
        return False
    return bool(_DNS_SUBDOMAIN_PATTERN.match(domain))


def is_ip_or_cidr(value: str) -> bool:
    """Return True if ``value`` is an IP address or a CIDR."""
    try:
        ipaddress.ip_network(value, strict=False)
    except ValueError:
        return False
    return True


class ProxySpecValidator:
    """Validates proxy specs before any derived state is computed.

    Attributes:
        probe_readiness: Whether readiness endpoints are requested through
            the proxy in addition to being syntax-checked.
        timeout: Timeout in seconds for each readiness probe.

    """

    def __init__(self, *, probe_readiness: bool = False, timeout: float = _READINESS_TIMEOUT_SECONDS) -> None:
        self.probe_readiness = probe_readiness
        self.timeout = timeout

    def validate(self, spec: ProxySpec) -> None:
        """Validate a proxy spec.

        A spec without httpProxy, httpsProxy and noProxy describes a cluster
        that does not use a proxy and always passes.

        Args:
            spec: The proxy spec to validate.

        Raises:
            InvalidProxyConfigError: On the first invalid field.

        """
        if spec.is_unset:
            console.step("httpProxy, httpsProxy and noProxy not defined; validation will be skipped")
            return

        if spec.http_proxy:
            scheme = self._scheme("httpProxy", spec.http_proxy)
            if scheme != PROXY_HTTP_SCHEME:
                raise InvalidProxyConfigError("httpProxy", f"requires a {PROXY_HTTP_SCHEME!r} URI scheme")

        if spec.https_proxy:
            scheme = self._scheme("httpsProxy", spec.https_proxy)
            if scheme not in (PROXY_HTTP_SCHEME, PROXY_HTTPS_SCHEME):
                raise InvalidProxyConfigError(
                    "httpsProxy", f"requires a {PROXY_HTTP_SCHEME!r} or {PROXY_HTTPS_SCHEME!r} URI scheme"
                )

        if spec.no_proxy and spec.no_proxy != NO_PROXY_WILDCARD:
            for entry in spec.no_proxy.split(","):
                entry = entry.strip()
                if not (is_domain_name(entry) or is_ip_or_cidr(entry)):
                    raise InvalidProxyConfigError("noProxy", f"{entry!r} is not a domain, IP address or CIDR")

        for endpoint in spec.readiness_endpoints:
            scheme = self._scheme("readinessEndpoints", endpoint)
            if scheme not in (PROXY_HTTP_SCHEME, PROXY_HTTPS_SCHEME):
                raise InvalidProxyConfigError(
                    "readinessEndpoints", f"endpoint {endpoint!r} must use an http or https URI scheme"
                )
            if self.probe_readiness:
                self._probe(spec, endpoint)

    @staticmethod
    def _scheme(field: str, uri: str) -> str:
        try:
            return validate_uri(uri)
        except ValueError as e:
            raise InvalidProxyConfigError(field, str(e)) from e

    def _probe(self, spec: ProxySpec, endpoint: str) -> None:
        """Request a readiness endpoint through the configured proxy.

        Raises:
            InvalidProxyConfigError: If the request fails or the response is not 2xx.

        """
        proxies = {}
        if spec.http_proxy:
            proxies["http"] = spec.http_proxy
        if spec.https_proxy:
            proxies["https"] = spec.https_proxy
        ic(endpoint, proxies)

        console.step(f"Probing readiness endpoint {console.highlight(endpoint)}")
        try:
            response = requests.get(endpoint, proxies=proxies, timeout=self.timeout)
        except requests.RequestException as e:
            raise InvalidProxyConfigError("readinessEndpoints", f"failed to reach {endpoint!r}: {e}") from e
        if not 200 <= response.status_code < 300:
            raise InvalidProxyConfigError(
                "readinessEndpoints", f"endpoint {endpoint!r} returned status code {response.status_code}"
            )
