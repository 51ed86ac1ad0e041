"""Trust bundle resolution.

This module builds the candidate derived trust bundle configmap. Without a
trustedCA reference the bundle is the system trust bundle alone; with one,
it is the referenced user bundle followed by the system bundle.
"""

from pathlib import Path

from icecream import ic

from proxyconfig_controller import console, names
from proxyconfig_controller.exceptions import (
    InvalidTrustBundleError,
    ObjectNotFoundError,
    StoreError,
    SystemTrustBundleError,
    TrustedCAFetchError,
)
from proxyconfig_controller.models import ConfigMap, NamespacedName, ProxySpec
from proxyconfig_controller.pem import validate_pem_bundle
from proxyconfig_controller.store import ObjectStore


def merge_trust_bundles(additional: bytes, system: bytes) -> bytes:
    """Merge a user trust bundle with the system trust bundle.

    The result is ``additional`` immediately followed by ``system``, byte for
    byte. The whole result is validated; a single bad block rejects it.

    Args:
        additional: User provided PEM bundle.
        system: System PEM bundle.

    Returns:
        The concatenated bundle, unmodified.

    Raises:
        InvalidTrustBundleError: If either input is empty or the merged
            bundle is not valid PEM certificate data.

    """
    if not additional:
        raise InvalidTrustBundleError("failed to merge ca bundles, additional trust bundle is empty")
    if not system:
        raise InvalidTrustBundleError("failed to merge ca bundles, system trust bundle is empty")

    merged = additional + system
    try:
        validate_pem_bundle(merged)
    except InvalidTrustBundleError as e:
        raise InvalidTrustBundleError(f"failed to validate merged trust bundle: {e}") from e
    return merged


def trust_bundle_configmap(bundle: bytes) -> ConfigMap:
    """Package ``bundle`` as the derived trust bundle configmap.

    Raises:
        InvalidTrustBundleError: If the bundle is not UTF-8 text.

    """
    try:
        text = bundle.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidTrustBundleError(f"trust bundle is not valid UTF-8: {e}") from e
    return ConfigMap(
        name=names.TRUSTED_CA_BUNDLE_CONFIGMAP,
        namespace=names.TRUSTED_CA_BUNDLE_CONFIGMAP_NS,
        data={names.TRUSTED_CA_BUNDLE_CONFIGMAP_KEY: text},
    )


class TrustBundleResolver:
    """Resolves the derived trust bundle for a proxy spec.

    Attributes:
        store: Object store used to read the referenced trustedCA configmap.
        system_bundle_path: Location of the local system trust bundle.

    """

    def __init__(self, store: ObjectStore, system_bundle_path: str | Path = names.SYSTEM_TRUST_BUNDLE) -> None:
        self.store = store
        self.system_bundle_path = Path(system_bundle_path)

    def __repr__(self) -> str:
        return f"TrustBundleResolver(system_bundle_path={str(self.system_bundle_path)!r})"

    def load_system_bundle(self) -> bytes:
        """Read and validate the system trust bundle.

        Raises:
            SystemTrustBundleError: If the file cannot be read, is not UTF-8 or is not valid PEM.

        """
        try:
            data = self.system_bundle_path.read_bytes()
        except OSError as e:
            raise SystemTrustBundleError(f"failed to read trust bundle {self.system_bundle_path}: {e}") from e
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SystemTrustBundleError(f"trust bundle {self.system_bundle_path} is not valid UTF-8: {e}") from e
        try:
            validate_pem_bundle(data)
        except InvalidTrustBundleError as e:
            raise SystemTrustBundleError(f"failed to validate trust bundle {self.system_bundle_path}: {e}") from e
        return data

    def fetch_additional_bundle(self, name: str) -> bytes:
        """Return the bundle held by the trustedCA configmap ``name``.

        A configmap without the bundle key yields an empty bundle, which the
        merge rejects.

        Raises:
            TrustedCAFetchError: If the configmap is missing or cannot be read.

        """
        key = NamespacedName(namespace=names.ADDL_TRUST_BUNDLE_CONFIGMAP_NS, name=name)
        try:
            config_map = self.store.get_config_map(key)
        except ObjectNotFoundError as e:
            raise TrustedCAFetchError(f"trustedCA configmap '{key}' not found") from e
        except StoreError as e:
            raise TrustedCAFetchError(f"failed to get trustedCA configmap '{key}': {e}") from e

        if names.TRUSTED_CA_BUNDLE_CONFIGMAP_KEY not in config_map.data:
            console.warning(
                f"configmap {console.highlight(str(key))} is missing key "
                f"{console.highlight(names.TRUSTED_CA_BUNDLE_CONFIGMAP_KEY)}"
            )
        return config_map.data.get(names.TRUSTED_CA_BUNDLE_CONFIGMAP_KEY, "").encode("utf-8")

    def resolve(self, spec: ProxySpec) -> ConfigMap:
        """Build the candidate derived trust bundle for ``spec``.

        Args:
            spec: The current proxy spec.

        Returns:
            An unsaved configmap at the derived trust bundle identity.

        Raises:
            SystemTrustBundleError: If the system bundle is missing or invalid.
            TrustedCAFetchError: If the referenced configmap cannot be read.
            InvalidTrustBundleError: If merging or validation fails.

        """
        if spec.trusted_ca is None:
            console.step("trustedCA not set; using the system trust bundle")
            return trust_bundle_configmap(self.load_system_bundle())

        console.step(f"Merging trustedCA {console.highlight(spec.trusted_ca.name)} with the system trust bundle")
        additional = self.fetch_additional_bundle(spec.trusted_ca.name)
        system = self.load_system_bundle()
        ic(len(additional), len(system))
        return trust_bundle_configmap(merge_trust_bundles(additional, system))
