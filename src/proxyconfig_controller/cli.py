#!/usr/bin/env python
"""Command-line interface for proxyconfig-controller.

This module runs a single reconciliation against a live cluster. Event
watching and retry scheduling belong to the caller: a non-zero exit code
means the reconciliation asked to be retried.
"""

import sys

import click
from icecream import ic

from proxyconfig_controller import __version__, console, names
from proxyconfig_controller.controller import ProxyConfigReconciler
from proxyconfig_controller.exceptions import ClusterConnectionError
from proxyconfig_controller.models import NamespacedName
from proxyconfig_controller.status import StatusManager
from proxyconfig_controller.store import KubernetesStore, load_cluster_config


@click.command(help="Reconcile the cluster proxy configuration and trusted CA bundle")
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.option("--context", required=False, help="kubeconfig context to use instead of in-cluster configuration")
@click.option(
    "--configmap",
    "-c",
    required=False,
    help=f"reconcile a change to this configmap in the {names.ADDL_TRUST_BUNDLE_CONFIGMAP_NS} namespace",
)
@click.option(
    "--system-bundle",
    required=False,
    default=names.SYSTEM_TRUST_BUNDLE,
    show_default=True,
    envvar="PROXYCONFIG_SYSTEM_TRUST_BUNDLE",
    type=click.Path(dir_okay=False),
    help="path to the system trust bundle",
)
@click.option("--probe-readiness", required=False, is_flag=True, help="request readiness endpoints through the proxy")
def cli(
    version: bool,
    debug: bool,
    context: str | None,
    configmap: str | None,
    system_bundle: str,
    probe_readiness: bool,
) -> None:
    """Process CLI arguments and run one reconciliation.

    Args:
        version: Print version and exit.
        debug: Enable debug output.
        context: Kubeconfig context to use.
        configmap: Name of the trust bundle configmap that changed.
        system_bundle: Path to the system trust bundle.
        probe_readiness: Probe readiness endpoints during validation.

    """
    if not debug:
        ic.disable()

    if version:
        click.echo(__version__)
        return

    try:
        load_cluster_config(context=context)
    except ClusterConnectionError as e:
        console.error(f"Cluster connection failed: {e}")
        sys.exit(1)

    status = StatusManager()
    reconciler = ProxyConfigReconciler(
        KubernetesStore(),
        status,
        system_bundle_path=system_bundle,
        probe_readiness=probe_readiness,
    )
    ic(reconciler)

    request = (
        NamespacedName(namespace=names.ADDL_TRUST_BUNDLE_CONFIGMAP_NS, name=configmap) if configmap else names.proxy()
    )
    with console.spinner(f"Reconciling {request}..."):
        result = reconciler.reconcile(request)

    items = {"Request": str(request), "Outcome": result.outcome.value}
    signal = status.get(names.PROXY_CONFIG_COMPONENT)
    if signal is not None:
        items["Degraded"] = str(signal.degraded)
        if signal.degraded:
            items["Reason"] = signal.reason
    console.summary_panel("Proxy configuration", items, failed=result.requeue)

    if result.requeue:
        sys.exit(1)


if __name__ == "__main__":
    cli()
