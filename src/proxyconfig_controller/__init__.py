"""proxyconfig-controller: cluster proxy trust bundle reconciler.

This package keeps the cluster's derived trusted CA bundle configmap and
proxy status in line with the cluster proxy configuration.

Example usage:
    from proxyconfig_controller import KubernetesStore, ProxyConfigReconciler, StatusManager, names

    status = StatusManager()
    reconciler = ProxyConfigReconciler(KubernetesStore(), status)
    result = reconciler.reconcile(names.proxy())
"""

__version__ = "0.1.0"

from proxyconfig_controller.controller import ProxyConfigReconciler
from proxyconfig_controller.exceptions import (
    ClusterConnectionError,
    InvalidProxyConfigError,
    InvalidTrustBundleError,
    ObjectNotFoundError,
    ProxyConfigError,
    ProxyStatusError,
    StoreError,
    SystemTrustBundleError,
    TrustBundleSyncError,
    TrustedCAFetchError,
)
from proxyconfig_controller.models import (
    ConfigMap,
    HealthSignal,
    NamespacedName,
    Proxy,
    ProxySpec,
    ProxyStatus,
    ReconcileOutcome,
    ReconcileRequest,
    ReconcileResult,
    TrustedCARef,
)
from proxyconfig_controller.status import HealthReporter, StatusManager
from proxyconfig_controller.store import KubernetesStore, ObjectStore

__all__ = [
    # Version
    "__version__",
    # Reconciler and collaborators
    "ProxyConfigReconciler",
    "KubernetesStore",
    "ObjectStore",
    "HealthReporter",
    "StatusManager",
    # Models
    "ConfigMap",
    "HealthSignal",
    "NamespacedName",
    "Proxy",
    "ProxySpec",
    "ProxyStatus",
    "ReconcileOutcome",
    "ReconcileRequest",
    "ReconcileResult",
    "TrustedCARef",
    # Exceptions
    "ProxyConfigError",
    "StoreError",
    "ObjectNotFoundError",
    "ClusterConnectionError",
    "InvalidProxyConfigError",
    "InvalidTrustBundleError",
    "SystemTrustBundleError",
    "TrustedCAFetchError",
    "ProxyStatusError",
    "TrustBundleSyncError",
]
