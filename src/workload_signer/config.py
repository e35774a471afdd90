"""Configuration model for workload-signer.

Settings are read from ``WORKLOAD_SIGNER_*`` environment variables; keyword
arguments passed to the constructor take precedence over the environment.

Example:
    >>> from workload_signer.config import SignerConfig
    >>> config = SignerConfig(profile_dir="/tmp/profiles")
    >>> config.executable
    'casigner'
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "WORKLOAD_SIGNER_"

DEFAULT_PROFILE_DIR = "/signing_profile"
DEFAULT_SIGNER_EXECUTABLE = "casigner"
DEFAULT_INVOCATION_TIMEOUT = 300.0
DEFAULT_CREDENTIALS_NAMESPACE = "cyberarmor-system"
DEFAULT_CREDENTIALS_SECRET_NAME = "ca-login"

# Fallback login used when the credentials secret cannot be read
DEFAULT_FALLBACK_USER = "system_tests@cyberarmor.io"
DEFAULT_FALLBACK_CUSTOMER = "CyberArmor"


class SignerConfig(BaseSettings):
    """Configuration for the signing orchestrator and its collaborators.

    Environment Variables:
        WORKLOAD_SIGNER_PROFILE_DIR: Directory for transient signing profiles
        WORKLOAD_SIGNER_EXECUTABLE: Signer executable
        WORKLOAD_SIGNER_TIMEOUT: Seconds before a signer invocation is killed
        WORKLOAD_SIGNER_MAX_WORKERS: Processes signed concurrently
        WORKLOAD_SIGNER_NAMESPACE: Namespace of the login secret
        WORKLOAD_SIGNER_SECRET_NAME: Name of the login secret
        WORKLOAD_SIGNER_KUBECONFIG_PATH: Explicit kubeconfig file
        WORKLOAD_SIGNER_CONTEXT: Kubeconfig context
        WORKLOAD_SIGNER_FALLBACK_USER / _PASSWORD / _CUSTOMER: Fallback login

    Attributes:
        profile_dir: Pre-existing directory for transient signing profiles.
        executable: Name or path of the external signer.
        timeout: Seconds before a signer invocation is killed.
        max_workers: Number of processes signed concurrently (1 = sequential).
        namespace: K8s namespace of the login secret.
        secret_name: Name of the login secret.
        kubeconfig_path: Path to kubeconfig file. None uses in-cluster config.
        context: Kubeconfig context to use. None uses current context.
        fallback_user: User returned when the login secret is unavailable.
        fallback_password: Password returned when the login secret is unavailable.
        fallback_customer: Customer returned when the login secret is unavailable.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        frozen=True,
        extra="forbid",
        json_schema_extra={
            "examples": [
                {"profile_dir": "/signing_profile"},
                {
                    "profile_dir": "/var/run/signer",
                    "executable": "/usr/local/bin/casigner",
                    "timeout": 120,
                    "max_workers": 4,
                },
            ]
        },
    )

    profile_dir: Path = Field(
        default=Path(DEFAULT_PROFILE_DIR),
        description="Pre-existing directory for transient signing profiles",
    )

    executable: str = Field(
        default=DEFAULT_SIGNER_EXECUTABLE,
        min_length=1,
        description="Name or path of the external signing executable",
    )

    timeout: float = Field(
        default=DEFAULT_INVOCATION_TIMEOUT,
        gt=0,
        description="Seconds before a signer invocation is killed",
    )

    max_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Number of processes signed concurrently",
    )

    namespace: str = Field(
        default=DEFAULT_CREDENTIALS_NAMESPACE,
        min_length=1,
        max_length=63,
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$|^[a-z0-9]$",
        description="Kubernetes namespace holding the login secret",
    )

    secret_name: str = Field(
        default=DEFAULT_CREDENTIALS_SECRET_NAME,
        min_length=1,
        max_length=253,
        description="Name of the Kubernetes secret holding the login",
    )

    kubeconfig_path: str | None = Field(
        default=None,
        description="Path to kubeconfig file. None uses in-cluster config.",
    )

    context: str | None = Field(
        default=None,
        description="Kubeconfig context to use. None uses current context.",
    )

    fallback_user: str = Field(default=DEFAULT_FALLBACK_USER)
    fallback_password: SecretStr = Field(default=SecretStr(""))
    fallback_customer: str = Field(default=DEFAULT_FALLBACK_CUSTOMER)

    @field_validator("kubeconfig_path")
    @classmethod
    def expand_kubeconfig_path(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        if v is None:
            return None
        return str(Path(v).expanduser())


__all__ = ["ENV_PREFIX", "SignerConfig"]
