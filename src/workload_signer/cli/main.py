"""Main entry point for the workload-signer CLI.

Commands:
    workload-signer sign: Sign the images listed in a command document
    workload-signer validate: Validate a command document without signing
    workload-signer delete-config-map: Delete a workload's generated config map

Example:
    $ workload-signer --help
    $ workload-signer --log-level DEBUG sign command.json
"""

from __future__ import annotations

import sys
from importlib.metadata import version as get_version

import click

from workload_signer.cli.configmap import delete_config_map_command
from workload_signer.cli.sign import sign_command
from workload_signer.cli.validate import validate_command
from workload_signer.observability import configure_logging


def _get_version() -> str:
    """Get the workload-signer package version."""
    try:
        return get_version("workload-signer")
    except Exception:
        return "unknown"


@click.group(
    name="workload-signer",
    help="workload-signer - Sign container images for cluster workloads.",
    epilog="Use 'workload-signer <command> --help' for command-specific help.",
    context_settings={
        "help_option_names": ["-h", "--help"],
    },
)
@click.version_option(
    version=_get_version(),
    prog_name="workload-signer",
    message="%(prog)s %(version)s",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    envvar="WORKLOAD_SIGNER_LOG_LEVEL",
    show_default=True,
    help="Minimum log level.",
)
@click.option(
    "--json-logs/--console-logs",
    default=True,
    help="Render logs as JSON lines [default: JSON].",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, json_logs: bool) -> None:
    """Root command group for the workload-signer CLI."""
    ctx.ensure_object(dict)
    configure_logging(log_level=log_level, json_output=json_logs)


cli.add_command(sign_command)
cli.add_command(validate_command)
cli.add_command(delete_config_map_command)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the workload-signer CLI.

    Args:
        argv: Command-line arguments (uses sys.argv if None).
    """
    try:
        cli(args=argv, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
