"""Well-known object identities and file locations.

Every object the controller reads or writes lives at a fixed identity,
so all of them are collected here.
"""

from proxyconfig_controller.models import NamespacedName

# Cluster-scoped proxy object (proxies.config.openshift.io)
PROXY_CONFIG = "cluster"

# Namespace holding user-provided trust bundle configmaps
ADDL_TRUST_BUNDLE_CONFIGMAP_NS = "openshift-config"

# Derived trust bundle managed by this controller
TRUSTED_CA_BUNDLE_CONFIGMAP = "trusted-ca-bundle"
TRUSTED_CA_BUNDLE_CONFIGMAP_NS = "openshift-config-managed"
TRUSTED_CA_BUNDLE_CONFIGMAP_KEY = "ca-bundle.crt"

SYSTEM_TRUST_BUNDLE = "/etc/pki/ca-trust/extracted/pem/tls-ca-bundle.pem"

# Name shared by the infrastructure and network config objects
CLUSTER_CONFIG = "cluster"

# Legacy install-config source
CLUSTER_CONFIG_MAP = "cluster-config-v1"
CLUSTER_CONFIG_MAP_NS = "kube-system"
CLUSTER_CONFIG_MAP_KEY = "install-config"

# Health component reported by the reconciler
PROXY_CONFIG_COMPONENT = "ProxyConfig"


def proxy() -> NamespacedName:
    """Identity of the cluster proxy object."""
    return NamespacedName(namespace="", name=PROXY_CONFIG)


def trusted_ca_bundle_configmap() -> NamespacedName:
    """Identity of the derived trust bundle configmap."""
    return NamespacedName(namespace=TRUSTED_CA_BUNDLE_CONFIGMAP_NS, name=TRUSTED_CA_BUNDLE_CONFIGMAP)


def cluster_config_map() -> NamespacedName:
    """Identity of the legacy install-config configmap."""
    return NamespacedName(namespace=CLUSTER_CONFIG_MAP_NS, name=CLUSTER_CONFIG_MAP)
