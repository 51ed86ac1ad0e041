"""Proxy status synchronization.

The proxy status publishes the settings cluster components should actually
use. Its noProxy list is the user's noProxy merged with the addresses that
must never go through the proxy: cluster networks, the internal API server
and the cloud metadata service.
"""

from typing import Any
from urllib.parse import urlsplit

import yaml
from icecream import ic

from proxyconfig_controller import console, names
from proxyconfig_controller.exceptions import ProxyStatusError, StoreError
from proxyconfig_controller.models import Proxy, ProxySpec, ProxyStatus
from proxyconfig_controller.store import ObjectStore

_DEFAULT_NO_PROXY = ("127.0.0.1", "localhost", ".svc", ".cluster.local")

_METADATA_SERVICE_IP = "169.254.169.254"
_METADATA_PLATFORMS = ("AWS", "Azure", "GCP", "OpenStack")
_GCP_METADATA_HOSTS = ("metadata", "metadata.google.internal", "metadata.google.internal.")

_AWS_DEFAULT_REGION = "us-east-1"


def _platform_type(infra: dict[str, Any]) -> str:
    status = infra.get("status") or {}
    return (status.get("platformStatus") or {}).get("type") or status.get("platform") or ""


def _aws_region(infra: dict[str, Any], install_config: dict[str, Any]) -> str:
    status = infra.get("status") or {}
    region = ((status.get("platformStatus") or {}).get("aws") or {}).get("region")
    if not region:
        region = ((install_config.get("platform") or {}).get("aws") or {}).get("region")
    return region or ""


def _machine_networks(install_config: dict[str, Any]) -> list[str]:
    networking = install_config.get("networking") or {}
    cidrs = [network["cidr"] for network in networking.get("machineNetwork") or [] if network.get("cidr")]
    if not cidrs and networking.get("machineCIDR"):
        cidrs.append(networking["machineCIDR"])
    return cidrs


def merge_user_system_no_proxy(
    spec: ProxySpec,
    infra: dict[str, Any],
    network: dict[str, Any],
    install_config: dict[str, Any],
) -> str:
    """Build the effective noProxy list.

    Args:
        spec: The proxy spec holding the user's noProxy.
        infra: The infrastructure config object.
        network: The network config object.
        install_config: The parsed install config.

    Returns:
        A sorted, de-duplicated, comma-separated list.

    """
    entries = set(_DEFAULT_NO_PROXY)

    api_server_internal = (infra.get("status") or {}).get("apiServerInternalURI")
    if api_server_internal:
        hostname = urlsplit(api_server_internal).hostname
        if hostname:
            entries.add(hostname)

    entries.update(_machine_networks(install_config))

    network_status = network.get("status") or {}
    entries.update(network_status.get("serviceNetwork") or [])
    entries.update(
        cluster_network["cidr"]
        for cluster_network in network_status.get("clusterNetwork") or []
        if cluster_network.get("cidr")
    )

    platform = _platform_type(infra)
    if platform in _METADATA_PLATFORMS:
        entries.add(_METADATA_SERVICE_IP)
    if platform == "GCP":
        entries.update(_GCP_METADATA_HOSTS)
    if platform == "AWS":
        region = _aws_region(infra, install_config)
        if region == _AWS_DEFAULT_REGION:
            entries.add(".ec2.internal")
        elif region:
            entries.add(f".{region}.compute.internal")

    if spec.no_proxy:
        entries.update(entry.strip() for entry in spec.no_proxy.split(",") if entry.strip())

    return ",".join(sorted(entries))


class ProxyStatusSyncer:
    """Publishes the effective proxy settings in the proxy status."""

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def _install_config(self) -> dict[str, Any]:
        key = names.cluster_config_map()
        try:
            config_map = self.store.get_config_map(key)
        except StoreError as e:
            raise ProxyStatusError(f"failed to get configmap '{key}': {e}", reason="ClusterConfigError") from e

        raw = config_map.data.get(names.CLUSTER_CONFIG_MAP_KEY)
        if not raw:
            raise ProxyStatusError(
                f"configmap '{key}' is missing key '{names.CLUSTER_CONFIG_MAP_KEY}'", reason="ClusterConfigError"
            )
        try:
            install_config = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ProxyStatusError(
                f"configmap '{key}' contains malformed YAML: {e}", reason="ClusterConfigError"
            ) from e
        if not isinstance(install_config, dict):
            raise ProxyStatusError(f"configmap '{key}' does not hold an install config", reason="ClusterConfigError")
        return install_config

    def desired_status(self, proxy: Proxy) -> ProxyStatus:
        """Compute the status ``proxy`` should carry.

        Raises:
            ProxyStatusError: If a cluster config input cannot be read.

        """
        try:
            infra = self.store.get_infrastructure(names.CLUSTER_CONFIG)
        except StoreError as e:
            raise ProxyStatusError(
                f"failed to get infrastructure config '{names.CLUSTER_CONFIG}': {e}", reason="InfraConfigError"
            ) from e
        try:
            network = self.store.get_network(names.CLUSTER_CONFIG)
        except StoreError as e:
            raise ProxyStatusError(
                f"failed to get network config '{names.CLUSTER_CONFIG}': {e}", reason="NetworkConfigError"
            ) from e
        install_config = self._install_config()

        spec = proxy.spec
        no_proxy = ""
        if spec.http_proxy or spec.https_proxy:
            no_proxy = merge_user_system_no_proxy(spec, infra, network, install_config)
        return ProxyStatus(http_proxy=spec.http_proxy or "", https_proxy=spec.https_proxy or "", no_proxy=no_proxy)

    def sync(self, proxy: Proxy) -> bool:
        """Write the desired status when it differs from the current one.

        Returns:
            True if the status was written.

        Raises:
            ProxyStatusError: If an input cannot be read or the write fails.

        """
        desired = self.desired_status(proxy)
        ic(desired)
        if desired == proxy.status:
            return False
        try:
            self.store.update_proxy_status(proxy.name, desired)
        except StoreError as e:
            raise ProxyStatusError(f"could not update proxy '{proxy.name}' status: {e}") from e
        console.step(f"Updated status of proxy {console.highlight(proxy.name)}")
        return True
