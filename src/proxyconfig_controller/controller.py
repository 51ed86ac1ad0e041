"""Proxy configuration reconciler.

ProxyConfigReconciler reacts to two triggers: the cluster proxy object and
configmaps in the additional trust bundle namespace. Each trigger only
decides whether it is relevant; relevant triggers run the same pipeline
from the current proxy:

    validate -> resolve trust bundle -> sync trust bundle

and report the outcome to the health reporter. The proxy trigger then also
publishes the proxy status; a failure there is reported under its own reason
but never holds back the trust bundle.
"""

from pathlib import Path

from icecream import ic

from proxyconfig_controller import console, names
from proxyconfig_controller.exceptions import (
    InvalidProxyConfigError,
    InvalidTrustBundleError,
    ObjectNotFoundError,
    ProxyConfigError,
    StoreError,
)
from proxyconfig_controller.models import Proxy, ReconcileRequest, ReconcileResult
from proxyconfig_controller.proxystatus import ProxyStatusSyncer
from proxyconfig_controller.status import HealthReporter
from proxyconfig_controller.store import ObjectStore
from proxyconfig_controller.sync import TrustBundleSyncer
from proxyconfig_controller.trustbundle import TrustBundleResolver
from proxyconfig_controller.validation import ProxySpecValidator

# Failures the user fixes by editing the proxy object
_USER_FIXABLE = (InvalidProxyConfigError, InvalidTrustBundleError)


class ProxyConfigReconciler:
    """Reconciles the derived trust bundle and proxy status.

    The reconciler holds no state between invocations; everything is read
    from the store on every call, so concurrent calls for different
    requests are safe.

    Attributes:
        store: Object store for all reads and writes.
        status: Health reporter receiving the outcome.
        validator: Proxy spec validator.
        resolver: Trust bundle resolver.
        status_syncer: Proxy status syncer.
        syncer: Derived trust bundle syncer.

    """

    def __init__(
        self,
        store: ObjectStore,
        status: HealthReporter,
        *,
        system_bundle_path: str | Path = names.SYSTEM_TRUST_BUNDLE,
        probe_readiness: bool = False,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Object store for all reads and writes.
            status: Health reporter receiving the outcome.
            system_bundle_path: Location of the local system trust bundle.
            probe_readiness: Request readiness endpoints through the proxy
                during validation.

        """
        self.store = store
        self.status = status
        self.validator = ProxySpecValidator(probe_readiness=probe_readiness)
        self.resolver = TrustBundleResolver(store, system_bundle_path)
        self.status_syncer = ProxyStatusSyncer(store)
        self.syncer = TrustBundleSyncer(store)

    def __repr__(self) -> str:
        return f"ProxyConfigReconciler(resolver={self.resolver!r}, target={self.syncer.target})"

    def reconcile(self, request: ReconcileRequest) -> ReconcileResult:
        """Reconcile the object identified by ``request``.

        Args:
            request: Identity of the object that changed.

        Returns:
            SUCCESS when the pipeline completed, NO_OP when the request was
            irrelevant or its object is gone, RETRY with the error otherwise.

        """
        ic(request)
        if request == names.proxy():
            return self._reconcile_proxy(request)
        if request.namespace == names.ADDL_TRUST_BUNDLE_CONFIGMAP_NS:
            return self._reconcile_trusted_ca_configmap(request)

        console.step(f"Ignoring unknown object {console.highlight(str(request))}; reconciliation will be skipped")
        return ReconcileResult.no_op()

    def _reconcile_proxy(self, request: ReconcileRequest) -> ReconcileResult:
        console.action(f"Reconciling proxy {console.highlight(request.name)}")
        proxy = self._get_proxy()
        if isinstance(proxy, ReconcileResult):
            return proxy

        result = self._converge(proxy, publish_status=True)
        if not result.requeue:
            console.success(f"Reconciling proxy {console.highlight(request.name)} complete")
        return result

    def _reconcile_trusted_ca_configmap(self, request: ReconcileRequest) -> ReconcileResult:
        console.action(f"Reconciling additional trust bundle configmap {console.highlight(str(request))}")
        try:
            config_map = self.store.get_config_map(request)
        except ObjectNotFoundError:
            console.step(f"configmap {console.highlight(str(request))} not found; reconciliation will be skipped")
            return ReconcileResult.no_op()
        except StoreError as e:
            return self._fail(
                ProxyConfigError(f"failed to get configmap '{request}': {e}", reason="ConfigMapFetchFailure")
            )

        proxy = self._get_proxy()
        if isinstance(proxy, ReconcileResult):
            return proxy

        # Only the configmap currently referenced by the proxy matters
        if proxy.spec.trusted_ca_name != config_map.name:
            console.step(
                f"configmap {console.highlight(str(request))} name differs from trustedCA of proxy "
                f"{console.highlight(proxy.name)} or trustedCA not set; reconciliation will be skipped"
            )
            return ReconcileResult.no_op()

        result = self._converge(proxy)
        if not result.requeue:
            console.success(f"Reconciling configmap {console.highlight(str(request))} complete")
        return result

    def _get_proxy(self) -> Proxy | ReconcileResult:
        """Fetch the cluster proxy, or the result to return when that is impossible."""
        try:
            return self.store.get_proxy(names.PROXY_CONFIG)
        except ObjectNotFoundError:
            console.step(f"proxy {console.highlight(names.PROXY_CONFIG)} not found; reconciliation will be skipped")
            return ReconcileResult.no_op()
        except StoreError as e:
            return self._fail(
                ProxyConfigError(f"failed to get proxy '{names.PROXY_CONFIG}': {e}", reason="ProxyFetchFailure")
            )

    def _converge(self, proxy: Proxy, *, publish_status: bool = False) -> ReconcileResult:
        """Run the shared pipeline for the current ``proxy``.

        Both triggers end here, so the same proxy always yields the same
        derived trust bundle. Only the proxy trigger publishes the proxy
        status, after the trust bundle has been synced.
        """
        try:
            self.validator.validate(proxy.spec)
            trust_bundle = self.resolver.resolve(proxy.spec)
            self.syncer.sync(trust_bundle)
            # Status inputs never gate the trust bundle
            if publish_status:
                self.status_syncer.sync(proxy)
        except ProxyConfigError as e:
            return self._fail(e, proxy=proxy)

        self.status.set_not_degraded(names.PROXY_CONFIG_COMPONENT)
        return ReconcileResult.success()

    def _fail(self, error: ProxyConfigError, *, proxy: Proxy | None = None) -> ReconcileResult:
        """Report ``error`` as degraded and ask the caller to retry."""
        message = str(error)
        if proxy is not None and isinstance(error, _USER_FIXABLE):
            message = (
                f"The configuration is invalid for proxy '{proxy.name}' ({error}). "
                f"Use 'oc edit proxy.config.openshift.io {proxy.name}' to fix."
            )
        console.error(message)
        self.status.set_degraded(names.PROXY_CONFIG_COMPONENT, error.reason, message)
        return ReconcileResult.retry(error)
