"""Delete-config-map CLI command.

Example:
    $ workload-signer delete-config-map ca-nginx-config --namespace cyberarmor-system
"""

from __future__ import annotations

import click

from workload_signer.cli.utils import ExitCode, error_exit, success
from workload_signer.cluster import KubernetesClusterOperations
from workload_signer.config import DEFAULT_CREDENTIALS_NAMESPACE
from workload_signer.errors import ClusterOperationError


@click.command(
    name="delete-config-map",
    help="Delete the config map generated for a workload.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("name", type=str)
@click.option(
    "--namespace",
    "-n",
    type=str,
    default=DEFAULT_CREDENTIALS_NAMESPACE,
    envvar="WORKLOAD_SIGNER_NAMESPACE",
    show_default=True,
    help="Namespace holding the config map.",
)
def delete_config_map_command(name: str, namespace: str) -> None:
    """Delete the config map generated for a workload."""
    try:
        deleted = KubernetesClusterOperations(namespace=namespace).delete_config_map(name)
    except ClusterOperationError as e:
        error_exit(str(e), exit_code=ExitCode.NETWORK_ERROR)

    if deleted:
        success(f"Deleted config map {namespace}/{name}")
    else:
        success(f"Config map {namespace}/{name} not found")


__all__ = ["delete_config_map_command"]
