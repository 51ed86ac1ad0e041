"""Custom exceptions for proxyconfig-controller.

This module defines the exception hierarchy used by the reconciler. Each
failure class carries a stable ``reason`` code which is reported with the
degraded health condition, so operators can tell failure classes apart.
"""


class ProxyConfigError(Exception):
    """Base exception for all proxyconfig-controller errors.

    Attributes:
        reason: Stable reason code reported with the degraded condition.

    """

    reason = "ProxyConfigFailure"

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human readable description of the failure.
            reason: Overrides the class level reason code.

        """
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class StoreError(ProxyConfigError):
    """Raised when the object store fails for a reason other than not found.

    This can occur when:
    - The API server rejects the request (forbidden, conflict, invalid)
    - The API server returns a server side error
    """

    reason = "StoreError"


class ObjectNotFoundError(StoreError):
    """Raised when a requested object does not exist in the store."""

    reason = "ObjectNotFound"


class ClusterConnectionError(StoreError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    """

    reason = "ClusterConnectionError"


class InvalidProxyConfigError(ProxyConfigError):
    """Raised when the proxy spec fails validation.

    Attributes:
        field: Name of the offending proxy spec field.

    """

    reason = "InvalidProxyConfig"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"invalid {field}: {message}")
        self.field = field


class InvalidTrustBundleError(ProxyConfigError):
    """Raised when a trust bundle is empty or is not valid PEM certificate data."""

    reason = "ProxyCAMergeFailure"


class SystemTrustBundleError(ProxyConfigError):
    """Raised when the local system trust bundle is missing or invalid."""

    reason = "GenerateConfigMapFailure"


class TrustedCAFetchError(ProxyConfigError):
    """Raised when the configmap referenced by the proxy trustedCA cannot be read."""

    reason = "TrustedCAFetchFailure"


class ProxyStatusError(ProxyConfigError):
    """Raised when the proxy status cannot be computed or written.

    The reason code names the input that failed (``InfraConfigError``,
    ``NetworkConfigError``, ``ClusterConfigError``) or ``StatusError``
    for the write itself.
    """

    reason = "StatusError"


class TrustBundleSyncError(ProxyConfigError):
    """Raised when the derived trust bundle cannot be created or updated."""

    reason = "TrustBundleSyncFailure"
