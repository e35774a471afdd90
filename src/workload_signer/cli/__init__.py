"""Command-line interface for workload-signer.

Commands:
    workload-signer sign: Sign the images listed in a command document
    workload-signer validate: Validate a command document without signing
    workload-signer delete-config-map: Delete a workload's generated config map

Exit Codes:
    0: Success
    1: General error (including: no process was signed)
    2: Usage error (invalid arguments, reported by click)
    3: File not found
    4: Permission error
    5: Validation error (missing or malformed signingProfiles)
    8: Kubernetes API error
"""

from __future__ import annotations

from workload_signer.cli.main import cli, main

__all__ = ["cli", "main"]
