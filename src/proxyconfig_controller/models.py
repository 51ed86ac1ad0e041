"""Data models for proxyconfig-controller.

This module provides type-safe views of the API objects the reconciler
consumes and produces, plus the tagged result returned by a reconciliation.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, NamedTuple


class NamespacedName(NamedTuple):
    """Identity of an API object.

    Cluster-scoped objects use an empty namespace.

    Attributes:
        namespace: The object namespace, or "" for cluster-scoped objects.
        name: The object name.

    """

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


# Requests carry identity only; the pipeline always re-fetches current state.
ReconcileRequest = NamespacedName


@dataclass(frozen=True, slots=True)
class TrustedCARef:
    """Reference to a configmap holding user-provided CA certificates."""

    name: str


@dataclass(frozen=True, slots=True)
class ProxySpec:
    """Desired cluster proxy configuration.

    ``None`` and ``""`` both mean a field is absent. When ``http_proxy``,
    ``https_proxy`` and ``no_proxy`` are all absent no proxy is configured,
    which is what installs without a proxy produce.

    Attributes:
        http_proxy: Proxy URL for HTTP requests.
        https_proxy: Proxy URL for HTTPS requests.
        no_proxy: Comma-separated hosts, domains and CIDRs to exclude from proxying.
        readiness_endpoints: URLs used to check that the proxy works.
        trusted_ca: Reference to the configmap holding additional CA certificates.

    """

    http_proxy: str | None = None
    https_proxy: str | None = None
    no_proxy: str | None = None
    readiness_endpoints: tuple[str, ...] = ()
    trusted_ca: TrustedCARef | None = None

    @property
    def is_unset(self) -> bool:
        """True when none of httpProxy, httpsProxy and noProxy is set."""
        return not (self.http_proxy or self.https_proxy or self.no_proxy)

    @property
    def trusted_ca_name(self) -> str:
        """Name of the referenced trusted CA configmap, or "" when unset."""
        return self.trusted_ca.name if self.trusted_ca else ""

    @classmethod
    def from_dict(cls, spec: dict[str, Any] | None) -> "ProxySpec":
        """Build a ProxySpec from the API object's camelCase spec mapping."""
        spec = spec or {}
        trusted_ca_name = (spec.get("trustedCA") or {}).get("name")
        return cls(
            http_proxy=spec.get("httpProxy") or None,
            https_proxy=spec.get("httpsProxy") or None,
            no_proxy=spec.get("noProxy") or None,
            readiness_endpoints=tuple(spec.get("readinessEndpoints") or ()),
            trusted_ca=TrustedCARef(name=trusted_ca_name) if trusted_ca_name else None,
        )


@dataclass(frozen=True, slots=True)
class ProxyStatus:
    """Effective proxy settings published on the proxy object."""

    http_proxy: str = ""
    https_proxy: str = ""
    no_proxy: str = ""

    @classmethod
    def from_dict(cls, status: dict[str, Any] | None) -> "ProxyStatus":
        status = status or {}
        return cls(
            http_proxy=status.get("httpProxy") or "",
            https_proxy=status.get("httpsProxy") or "",
            no_proxy=status.get("noProxy") or "",
        )

    def to_dict(self) -> dict[str, str]:
        return {"httpProxy": self.http_proxy, "httpsProxy": self.https_proxy, "noProxy": self.no_proxy}


@dataclass(frozen=True, slots=True)
class Proxy:
    """The cluster-scoped proxy object."""

    name: str
    spec: ProxySpec = field(default_factory=ProxySpec)
    status: ProxyStatus = field(default_factory=ProxyStatus)
    resource_version: str | None = None

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "Proxy":
        """Build a Proxy from an unstructured API object."""
        metadata = obj.get("metadata") or {}
        return cls(
            name=metadata.get("name", ""),
            spec=ProxySpec.from_dict(obj.get("spec")),
            status=ProxyStatus.from_dict(obj.get("status")),
            resource_version=metadata.get("resourceVersion"),
        )


@dataclass(frozen=True, slots=True)
class ConfigMap:
    """A configmap reduced to the fields the reconciler works with."""

    name: str
    namespace: str
    data: dict[str, str] = field(default_factory=dict)
    resource_version: str | None = None

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(namespace=self.namespace, name=self.name)

    def with_data(self, data: dict[str, str]) -> "ConfigMap":
        """Return a copy carrying ``data``, keeping identity and resource version."""
        return replace(self, data=dict(data))


class HealthSignal(NamedTuple):
    """Last reported health of a named component."""

    component: str
    degraded: bool
    reason: str = ""
    message: str = ""


class ReconcileOutcome(str, Enum):
    """Result tags for a single reconciliation.

    Inherits from str so outcomes print cleanly in logs and CLI output.
    """

    SUCCESS = "success"
    RETRY = "retry"
    NO_OP = "no-op"


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of a reconciliation plus the error behind a retry.

    The caller owns all scheduling: ``RETRY`` asks it to re-invoke later,
    ``SUCCESS`` and ``NO_OP`` are terminal for this trigger.
    """

    outcome: ReconcileOutcome
    error: Exception | None = None

    @property
    def requeue(self) -> bool:
        return self.outcome is ReconcileOutcome.RETRY

    @classmethod
    def success(cls) -> "ReconcileResult":
        return cls(ReconcileOutcome.SUCCESS)

    @classmethod
    def no_op(cls) -> "ReconcileResult":
        return cls(ReconcileOutcome.NO_OP)

    @classmethod
    def retry(cls, error: Exception) -> "ReconcileResult":
        return cls(ReconcileOutcome.RETRY, error)
