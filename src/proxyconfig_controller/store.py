"""Object store access for the reconciler.

This module defines the ObjectStore protocol the reconciler consumes and
the KubernetesStore implementation backed by the official Kubernetes
client. API errors are translated into the controller's exception
hierarchy so callers never handle ApiException directly.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from icecream import ic
from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError, MaxRetryError

from proxyconfig_controller import console
from proxyconfig_controller.exceptions import ClusterConnectionError, ObjectNotFoundError, StoreError
from proxyconfig_controller.models import ConfigMap, NamespacedName, Proxy, ProxyStatus

CONFIG_GROUP = "config.openshift.io"
CONFIG_VERSION = "v1"


class ObjectStore(Protocol):
    """Get/create/update access to the objects the reconciler works with.

    Missing objects raise ObjectNotFoundError; any other failure raises
    StoreError. Writes rely on resource versions for conflict detection.
    """

    def get_proxy(self, name: str) -> Proxy: ...

    def update_proxy_status(self, name: str, status: ProxyStatus) -> None: ...

    def get_config_map(self, key: NamespacedName) -> ConfigMap: ...

    def create_config_map(self, config_map: ConfigMap) -> None: ...

    def update_config_map(self, config_map: ConfigMap) -> None: ...

    def get_infrastructure(self, name: str) -> dict[str, Any]: ...

    def get_network(self, name: str) -> dict[str, Any]: ...


@contextmanager
def _translate_errors(description: str) -> Iterator[None]:
    """Translate Kubernetes client errors raised while ``description`` runs."""
    try:
        yield
    except ApiException as e:
        if e.status == 404:
            raise ObjectNotFoundError(f"{description}: not found") from e
        raise StoreError(f"{description}: {e.status} {e.reason}") from e
    except MaxRetryError as e:
        raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
    except HTTPError as e:
        raise StoreError(f"{description}: {e}") from e


def _config_map_from_api(obj: client.V1ConfigMap) -> ConfigMap:
    return ConfigMap(
        name=obj.metadata.name,
        namespace=obj.metadata.namespace,
        data=dict(obj.data or {}),
        resource_version=obj.metadata.resource_version,
    )


def _config_map_to_api(config_map: ConfigMap) -> client.V1ConfigMap:
    return client.V1ConfigMap(
        api_version="v1",
        kind="ConfigMap",
        metadata=client.V1ObjectMeta(
            name=config_map.name,
            namespace=config_map.namespace,
            resource_version=config_map.resource_version,
        ),
        data=dict(config_map.data),
    )


def load_cluster_config(*, context: str | None = None) -> None:
    """Load Kubernetes client configuration.

    In-cluster service account credentials are preferred unless a context
    is requested explicitly; otherwise the kubeconfig is used.

    Args:
        context: Kubeconfig context to use. Must be passed as a keyword argument.

    Raises:
        ClusterConnectionError: If no usable configuration is found.

    """
    if context is None:
        try:
            config.load_incluster_config()
            console.info("Using in-cluster configuration")
            return
        except ConfigException:
            pass
    try:
        config.load_kube_config(context=context)
    except ConfigException as e:
        raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e
    console.info(f"Using kubeconfig context {console.highlight(context or 'current')}")


class KubernetesStore:
    """ObjectStore implementation on top of the Kubernetes API.

    Attributes:
        core_v1_api: Client for configmaps.
        custom_objects_api: Client for config.openshift.io cluster objects.

    """

    def __init__(
        self,
        core_v1_api: client.CoreV1Api | None = None,
        custom_objects_api: client.CustomObjectsApi | None = None,
    ) -> None:
        self.core_v1_api: client.CoreV1Api = core_v1_api or client.CoreV1Api()
        self.custom_objects_api: client.CustomObjectsApi = custom_objects_api or client.CustomObjectsApi()

    def _get_cluster_object(self, plural: str, name: str) -> dict[str, Any]:
        with _translate_errors(f"failed to get {plural}.{CONFIG_GROUP} '{name}'"):
            obj: dict[str, Any] = self.custom_objects_api.get_cluster_custom_object(
                CONFIG_GROUP, CONFIG_VERSION, plural, name
            )
        ic(plural, name)
        return obj

    def get_proxy(self, name: str) -> Proxy:
        return Proxy.from_dict(self._get_cluster_object("proxies", name))

    def update_proxy_status(self, name: str, status: ProxyStatus) -> None:
        with _translate_errors(f"failed to update status of proxy '{name}'"):
            self.custom_objects_api.patch_cluster_custom_object_status(
                CONFIG_GROUP, CONFIG_VERSION, "proxies", name, {"status": status.to_dict()}
            )

    def get_infrastructure(self, name: str) -> dict[str, Any]:
        return self._get_cluster_object("infrastructures", name)

    def get_network(self, name: str) -> dict[str, Any]:
        return self._get_cluster_object("networks", name)

    def get_config_map(self, key: NamespacedName) -> ConfigMap:
        with _translate_errors(f"failed to get configmap '{key}'"):
            obj = self.core_v1_api.read_namespaced_config_map(key.name, key.namespace)
        return _config_map_from_api(obj)

    def create_config_map(self, config_map: ConfigMap) -> None:
        with _translate_errors(f"failed to create configmap '{config_map.key}'"):
            self.core_v1_api.create_namespaced_config_map(config_map.namespace, _config_map_to_api(config_map))

    def update_config_map(self, config_map: ConfigMap) -> None:
        with _translate_errors(f"failed to update configmap '{config_map.key}'"):
            self.core_v1_api.replace_namespaced_config_map(
                config_map.name, config_map.namespace, _config_map_to_api(config_map)
            )
