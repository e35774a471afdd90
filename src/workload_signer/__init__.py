"""workload-signer: image signing orchestration for cluster workloads.

Signs every process of a signing request with the external signer and
records each outcome back into the request.

Example:
    >>> from workload_signer import SignerConfig, SigningOrchestrator
    >>> orchestrator = SigningOrchestrator.from_config(SignerConfig())
    >>> report = orchestrator.sign_command_args(command["args"])
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    "SignerConfig",
    "SigningOrchestrator",
    "SigningReport",
    "StatusResponse",
]


# Lazy imports keep the kubernetes client out of lightweight imports
def __getattr__(name: str):
    """Lazy import of public components."""
    if name == "SignerConfig":
        from workload_signer.config import SignerConfig
        return SignerConfig
    if name == "SigningOrchestrator":
        from workload_signer.orchestrator import SigningOrchestrator
        return SigningOrchestrator
    if name == "SigningReport":
        from workload_signer.models import SigningReport
        return SigningReport
    if name == "StatusResponse":
        from workload_signer.models import StatusResponse
        return StatusResponse
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
