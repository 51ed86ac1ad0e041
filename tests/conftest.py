"""Shared test fixtures for proxyconfig-controller tests."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from proxyconfig_controller import names
from proxyconfig_controller.controller import ProxyConfigReconciler
from proxyconfig_controller.exceptions import ObjectNotFoundError, StoreError
from proxyconfig_controller.models import ConfigMap, NamespacedName, Proxy, ProxySpec, ProxyStatus
from proxyconfig_controller.status import StatusManager

INSTALL_CONFIG = """apiVersion: v1
metadata:
  name: test
networking:
  machineNetwork:
  - cidr: 10.0.0.0/16
platform:
  aws:
    region: us-west-2
"""


def make_certificate_pem(common_name: str) -> bytes:
    """Generate a self-signed PEM certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM)


class FakeStore:
    """In-memory ObjectStore recording every write.

    Failures are injected through ``errors``, keyed by method name and
    object identity, e.g. ``("get_config_map", NamespacedName(...))``.
    """

    def __init__(self) -> None:
        self.proxies: dict[str, Proxy] = {}
        self.config_maps: dict[NamespacedName, ConfigMap] = {}
        self.infrastructures: dict[str, dict[str, Any]] = {}
        self.networks: dict[str, dict[str, Any]] = {}
        self.errors: dict[tuple[str, Any], Exception] = {}
        self.writes: list[tuple[str, Any]] = []
        self._version = 0

    def _raise_for(self, method: str, key: Any) -> None:
        error = self.errors.get((method, key))
        if error is not None:
            raise error

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def get_proxy(self, name: str) -> Proxy:
        self._raise_for("get_proxy", name)
        try:
            return self.proxies[name]
        except KeyError:
            raise ObjectNotFoundError(f"proxy '{name}' not found") from None

    def update_proxy_status(self, name: str, status: ProxyStatus) -> None:
        self._raise_for("update_proxy_status", name)
        self.proxies[name] = replace(self.proxies[name], status=status)
        self.writes.append(("update_proxy_status", name))

    def get_config_map(self, key: NamespacedName) -> ConfigMap:
        self._raise_for("get_config_map", key)
        try:
            return self.config_maps[key]
        except KeyError:
            raise ObjectNotFoundError(f"configmap '{key}' not found") from None

    def create_config_map(self, config_map: ConfigMap) -> None:
        self._raise_for("create_config_map", config_map.key)
        if config_map.key in self.config_maps:
            raise StoreError(f"configmap '{config_map.key}' already exists")
        self.config_maps[config_map.key] = replace(config_map, resource_version=self._next_version())
        self.writes.append(("create_config_map", config_map.key))

    def update_config_map(self, config_map: ConfigMap) -> None:
        self._raise_for("update_config_map", config_map.key)
        current = self.config_maps.get(config_map.key)
        if current is None:
            raise ObjectNotFoundError(f"configmap '{config_map.key}' not found")
        if config_map.resource_version != current.resource_version:
            raise StoreError(f"configmap '{config_map.key}' was modified")
        self.config_maps[config_map.key] = replace(config_map, resource_version=self._next_version())
        self.writes.append(("update_config_map", config_map.key))

    def get_infrastructure(self, name: str) -> dict[str, Any]:
        self._raise_for("get_infrastructure", name)
        try:
            return self.infrastructures[name]
        except KeyError:
            raise ObjectNotFoundError(f"infrastructure '{name}' not found") from None

    def get_network(self, name: str) -> dict[str, Any]:
        self._raise_for("get_network", name)
        try:
            return self.networks[name]
        except KeyError:
            raise ObjectNotFoundError(f"network '{name}' not found") from None

    # Test helpers

    def add_proxy(self, spec: ProxySpec | None = None, status: ProxyStatus | None = None) -> Proxy:
        proxy = Proxy(name=names.PROXY_CONFIG, spec=spec or ProxySpec(), status=status or ProxyStatus())
        self.proxies[proxy.name] = proxy
        return proxy

    def add_config_map(self, namespace: str, name: str, data: dict[str, str]) -> ConfigMap:
        config_map = ConfigMap(name=name, namespace=namespace, data=data, resource_version=self._next_version())
        self.config_maps[config_map.key] = config_map
        return config_map

    def trust_bundle(self) -> str | None:
        config_map = self.config_maps.get(names.trusted_ca_bundle_configmap())
        return None if config_map is None else config_map.data.get(names.TRUSTED_CA_BUNDLE_CONFIGMAP_KEY)

    def bundle_writes(self) -> list[str]:
        target = names.trusted_ca_bundle_configmap()
        return [method for method, key in self.writes if key == target]


@pytest.fixture(scope="session")
def system_pem() -> bytes:
    """A single-certificate system trust bundle."""
    return make_certificate_pem("system-root-ca")


@pytest.fixture(scope="session")
def custom_pem() -> bytes:
    """A single-certificate user trust bundle."""
    return make_certificate_pem("custom-root-ca")


@pytest.fixture
def system_bundle_path(tmp_path, system_pem):
    """System trust bundle written to a temporary file."""
    path = tmp_path / "tls-ca-bundle.pem"
    path.write_bytes(system_pem)
    return path


@pytest.fixture
def store():
    """Fake store holding the cluster config objects the status sync reads."""
    fake = FakeStore()
    fake.infrastructures[names.CLUSTER_CONFIG] = {
        "metadata": {"name": names.CLUSTER_CONFIG},
        "status": {
            "apiServerInternalURI": "https://api-int.test.example.com:6443",
            "platformStatus": {"type": "AWS", "aws": {"region": "us-west-2"}},
        },
    }
    fake.networks[names.CLUSTER_CONFIG] = {
        "metadata": {"name": names.CLUSTER_CONFIG},
        "status": {
            "clusterNetwork": [{"cidr": "10.128.0.0/14", "hostPrefix": 23}],
            "serviceNetwork": ["172.30.0.0/16"],
        },
    }
    fake.add_config_map(
        names.CLUSTER_CONFIG_MAP_NS,
        names.CLUSTER_CONFIG_MAP,
        {names.CLUSTER_CONFIG_MAP_KEY: INSTALL_CONFIG},
    )
    return fake


@pytest.fixture
def status():
    """In-process health reporter."""
    return StatusManager()


@pytest.fixture
def reconciler(store, status, system_bundle_path):
    """Reconciler wired to the fake store and a temporary system bundle."""
    return ProxyConfigReconciler(store, status, system_bundle_path=system_bundle_path)


@pytest.fixture
def certificate_factory():
    """Factory generating self-signed PEM certificates by common name."""
    return make_certificate_pem
