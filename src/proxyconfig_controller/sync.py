"""Derived trust bundle synchronization.

TrustBundleSyncer is the only writer of the derived trust bundle
configmap. It creates the configmap when absent, updates it when the
bundle differs, and leaves it alone otherwise.
"""

from proxyconfig_controller import console, names
from proxyconfig_controller.exceptions import ObjectNotFoundError, StoreError, TrustBundleSyncError
from proxyconfig_controller.models import ConfigMap, NamespacedName
from proxyconfig_controller.store import ObjectStore


def config_maps_equal(key: str, a: ConfigMap, b: ConfigMap) -> bool:
    """Compare the value of data ``key`` in two configmaps."""
    return a.data.get(key) == b.data.get(key)


class TrustBundleSyncer:
    """Keeps the stored derived trust bundle equal to the candidate.

    Attributes:
        store: Object store holding the derived trust bundle.
        target: Fixed identity of the derived trust bundle.
        key: Data key holding the bundle.

    """

    def __init__(
        self,
        store: ObjectStore,
        target: NamespacedName | None = None,
        key: str = names.TRUSTED_CA_BUNDLE_CONFIGMAP_KEY,
    ) -> None:
        """Initialize the syncer.

        Raises:
            ValueError: If the target identity or data key is empty.

        """
        self.store = store
        self.target = target or names.trusted_ca_bundle_configmap()
        self.key = key
        if not (self.target.namespace and self.target.name and self.key):
            raise ValueError(f"derived trust bundle identity is incomplete: {self.target}[{self.key!r}]")

    def sync(self, candidate: ConfigMap) -> bool:
        """Make the stored trust bundle match ``candidate``.

        Args:
            candidate: Desired derived trust bundle.

        Returns:
            True if the store was written, False if it was already in sync.

        Raises:
            TrustBundleSyncError: If reading, creating or updating fails.

        """
        try:
            current = self.store.get_config_map(self.target)
        except ObjectNotFoundError:
            try:
                self.store.create_config_map(candidate)
            except StoreError as e:
                raise TrustBundleSyncError(f"failed to create trusted CA bundle configmap '{self.target}': {e}") from e
            console.success(f"Created trusted CA bundle configmap {console.highlight(str(self.target))}")
            return True
        except StoreError as e:
            raise TrustBundleSyncError(f"failed to get trusted CA bundle configmap '{self.target}': {e}") from e

        if config_maps_equal(self.key, current, candidate):
            console.step(f"Trusted CA bundle configmap {console.highlight(str(self.target))} is up to date")
            return False

        try:
            self.store.update_config_map(current.with_data(candidate.data))
        except StoreError as e:
            raise TrustBundleSyncError(f"failed to update trusted CA bundle configmap '{self.target}': {e}") from e
        console.success(f"Updated trusted CA bundle configmap {console.highlight(str(self.target))}")
        return True
