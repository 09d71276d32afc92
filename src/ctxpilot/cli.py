"""ctxpilot CLI entrypoint."""

from __future__ import annotations

import click

from ctxpilot import __version__


@click.group()
@click.version_option(version=__version__, prog_name="ctxpilot")
@click.option("--trace", is_flag=True, help="Print OpenTelemetry spans to stdout.")
@click.option("--otlp-endpoint", default=None, help="Export spans via OTLP to this endpoint.")
def main(trace: bool, otlp_endpoint: str | None) -> None:
    """ctxpilot: inspect context budgets and truncation passes."""
    if trace or otlp_endpoint:
        from ctxpilot.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(
                service_name="ctxpilot-cli",
                export_to_console=trace,
                otlp_endpoint=otlp_endpoint,
            )
        except ImportError as exc:
            raise click.UsageError(str(exc)) from exc


# Register subcommands
from ctxpilot.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
