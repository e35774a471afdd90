"""Cluster resource operations used around a signing command.

Not part of signing itself: a config map generated for a workload is removed
once the workload no longer needs it (``workload-signer delete-config-map``).

Example:
    >>> ops = KubernetesClusterOperations(namespace="cyberarmor-system")
    >>> ops.delete_config_map("ca-nginx-config")
"""

from __future__ import annotations

from typing import Any

import structlog
from kubernetes import client
from kubernetes import config as k8s_config
from kubernetes.client.rest import ApiException

from workload_signer.config import DEFAULT_CREDENTIALS_NAMESPACE
from workload_signer.errors import ClusterOperationError

logger = structlog.get_logger(__name__)


class KubernetesClusterOperations:
    """Kubernetes operations issued on behalf of a workload.

    Attributes:
        namespace: Namespace holding the agent's config maps.
    """

    def __init__(self, namespace: str = DEFAULT_CREDENTIALS_NAMESPACE, api: Any = None) -> None:
        self.namespace = namespace
        self._api = api

    def _core_api(self) -> Any:
        if self._api is None:
            try:
                k8s_config.load_incluster_config()
            except k8s_config.ConfigException:
                try:
                    k8s_config.load_kube_config()
                except k8s_config.ConfigException as e:
                    raise ClusterOperationError("kubernetes", str(e)) from e
            self._api = client.CoreV1Api()
        return self._api

    def delete_config_map(self, name: str) -> bool:
        """Delete a config map generated for a workload.

        Args:
            name: Config map name.

        Returns:
            True if deleted, False if it did not exist.

        Raises:
            ClusterOperationError: If the API rejects the deletion.
        """
        try:
            self._core_api().delete_namespaced_config_map(name=name, namespace=self.namespace)
        except ApiException as e:
            if e.status == 404:
                logger.info("config_map_already_deleted", name=name, namespace=self.namespace)
                return False
            raise ClusterOperationError(f"configmap/{name}", str(e.reason)) from e
        logger.info("config_map_deleted", name=name, namespace=self.namespace)
        return True


__all__ = [
    "KubernetesClusterOperations",
]
