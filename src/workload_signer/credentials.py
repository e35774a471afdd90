"""Signer login credentials.

The signer logs in with a user/password pair kept in a Kubernetes secret
(keys ``username``, ``password`` and ``customer``). The secret is read at most
once per provider and cached for the life of the process.

If the secret cannot be read, for any reason, the provider returns the
configured fallback login instead of failing. Every fallback is logged as a
warning.

Example:
    >>> from workload_signer.config import SignerConfig
    >>> provider = KubernetesCredentialProvider(SignerConfig())
    >>> creds = provider.get()
"""

from __future__ import annotations

import base64
import threading
from abc import ABC, abstractmethod
from typing import Any

import structlog
from kubernetes import client
from kubernetes import config as k8s_config

from workload_signer.config import SignerConfig
from workload_signer.models import Credentials

logger = structlog.get_logger(__name__)

SECRET_KEYS = ("username", "password", "customer")


class CredentialProvider(ABC):
    """Source of the signer login.

    Subclasses implement load(); get() caches its result so load() runs at
    most once per instance, even when called from several threads.
    """

    def __init__(self) -> None:
        self._credentials: Credentials | None = None
        self._lock = threading.Lock()

    def get(self) -> Credentials:
        """Return the cached credentials, loading them on first use."""
        if self._credentials is not None:
            return self._credentials
        with self._lock:
            if self._credentials is None:
                self._credentials = self.load()
            return self._credentials

    @abstractmethod
    def load(self) -> Credentials:
        """Load credentials from the backing source."""
        ...


class StaticCredentialProvider(CredentialProvider):
    """Provider returning a fixed login."""

    def __init__(self, credentials: Credentials) -> None:
        super().__init__()
        self._static = credentials

    def load(self) -> Credentials:
        return self._static


class KubernetesCredentialProvider(CredentialProvider):
    """Reads the signer login from a Kubernetes secret.

    Client configuration is loaded in this order:
        1. Explicit kubeconfig path from config
        2. In-cluster configuration
        3. Default kubeconfig (~/.kube/config)

    Attributes:
        config: SignerConfig naming the secret and the fallback login.
    """

    def __init__(self, config: SignerConfig | None = None, api: Any = None) -> None:
        super().__init__()
        self.config = config or SignerConfig()
        self._api = api

    @property
    def fallback(self) -> Credentials:
        """Return the login used when the secret is unavailable."""
        return Credentials(
            user=self.config.fallback_user,
            password=self.config.fallback_password.get_secret_value(),
            customer=self.config.fallback_customer,
        )

    def load(self) -> Credentials:
        """Read the login secret, falling back to the configured login."""
        try:
            return self._read_secret()
        except Exception as e:
            logger.warning(
                "credentials_fallback",
                namespace=self.config.namespace,
                secret=self.config.secret_name,
                reason=str(e),
            )
            return self.fallback

    def _core_api(self) -> Any:
        if self._api is not None:
            return self._api

        if self.config.kubeconfig_path:
            k8s_config.load_kube_config(
                config_file=self.config.kubeconfig_path,
                context=self.config.context,
            )
            logger.info("kubeconfig_loaded", kubeconfig_path=self.config.kubeconfig_path)
        else:
            try:
                k8s_config.load_incluster_config()
                logger.info("incluster_config_loaded")
            except k8s_config.ConfigException:
                k8s_config.load_kube_config(context=self.config.context)
                logger.info("default_kubeconfig_loaded", context=self.config.context)

        self._api = client.CoreV1Api()
        return self._api

    def _read_secret(self) -> Credentials:
        secret = self._core_api().read_namespaced_secret(
            name=self.config.secret_name,
            namespace=self.config.namespace,
        )
        data = secret.data or {}
        missing = [key for key in SECRET_KEYS if key not in data]
        if missing:
            raise KeyError(f"secret is missing keys: {', '.join(missing)}")

        values = {key: base64.b64decode(data[key]).decode("utf-8") for key in SECRET_KEYS}
        logger.info(
            "credentials_loaded",
            namespace=self.config.namespace,
            secret=self.config.secret_name,
        )
        return Credentials(
            user=values["username"],
            password=values["password"],
            customer=values["customer"],
        )


__all__ = [
    "CredentialProvider",
    "KubernetesCredentialProvider",
    "StaticCredentialProvider",
]
