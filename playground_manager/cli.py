"""Main CLI entry point for playground management."""

from pathlib import Path

import typer
from rich.console import Console

from playground_manager.exceptions import PlaygroundManagerError
from playground_manager.logging_config import get_logger, setup_logging

app = typer.Typer(
    name="playground-mgr",
    help="Start and stop ephemeral TiUP playground clusters in CI pipelines",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _fail(e: PlaygroundManagerError) -> None:
    """Report a playground manager error and exit with code 1."""
    logger.error(e.message)
    console.print(f"[red]Error:[/red] {e.message}")
    if e.details:
        console.print(f"\n{e.details}")
    raise typer.Exit(code=1)


# Global callback to set up logging
@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")


@app.command()
def version() -> None:
    """Show version information."""
    from playground_manager import __version__

    typer.echo(f"playground-manager version {__version__}")


@app.command()
def start(
    tidb_version: str | None = typer.Option(
        None, "--version", envvar="INPUT_VERSION", help="TiDB version to start (e.g. 'v8.1.0')"
    ),
    db: str | None = typer.Option(None, "--db", envvar="INPUT_DB", help="TiDB instances"),
    pd: str | None = typer.Option(None, "--pd", envvar="INPUT_PD", help="PD instances"),
    tiflash: str | None = typer.Option(
        None, "--tiflash", envvar="INPUT_TIFLASH", help="TiFlash instances"
    ),
    kv: str | None = typer.Option(None, "--kv", envvar="INPUT_KV", help="TiKV instances"),
    without_monitor: bool = typer.Option(
        False, "--without-monitor", help="Do not start Prometheus and Grafana"
    ),
    independent_counts: bool = typer.Option(
        False,
        "--independent-counts",
        help="Size each role from its own count instead of the --db count",
    ),
    cluster_id: str | None = typer.Option(
        None,
        "--cluster-id",
        envvar="INPUT_CLUSTER-ID",
        help="Playground tag (generated when omitted)",
    ),
    timeout: int = typer.Option(
        60, "--timeout", envvar="INPUT_TIMEOUT", min=1, help="Seconds to wait for the cluster"
    ),
    tiup_path: str | None = typer.Option(
        None, "--tiup", envvar="INPUT_TIUP-PATH", help="Path to the tiup binary"
    ),
    install: bool = typer.Option(
        True, "--install/--no-install", help="Install tiup when no usable binary is found"
    ),
) -> None:
    """
    Start a tiup playground and wait until it accepts queries.

    The cluster id and the tiup location are recorded in the GitHub Actions
    state so that the post step (or 'stop') can tear the cluster down.
    """
    from pydantic import ValidationError

    from playground_manager import pipeline
    from playground_manager.lifecycle import Provisioner
    from playground_manager.models.cluster import ClusterConfig
    from playground_manager.tiup import resolve_tiup

    try:
        config = ClusterConfig(
            version=tidb_version,
            tag=cluster_id,
            db=db,
            pd=pd,
            tiflash=tiflash,
            kv=kv,
            without_monitor=without_monitor or pipeline.get_boolean_input("without-monitor"),
            independent_counts=independent_counts
            or pipeline.get_boolean_input("independent-counts"),
        )
    except ValidationError as e:
        console.print("[red]Validation Error:[/red]")
        for error in e.errors():
            field = ".".join(str(x) for x in error["loc"])
            console.print(f"  - {field}: {error['msg']}")
        raise typer.Exit(code=1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    try:
        tiup = resolve_tiup(tiup_path, install=install)
        pipeline.export_variable("TIUP_PATH", tiup.bin_dir)
        pipeline.save_state("tiup-path", tiup.binary)
        pipeline.set_output("tiup-path", tiup.binary)

        # Recorded before waiting so the post step can clean up after a timeout
        pipeline.save_state("cluster-id", config.tag)
        pipeline.set_output("cluster-id", config.tag)

        Provisioner(tiup, max_attempts=timeout).provision(config)

        logger.info("tiup playground started")
        console.print(f"[green]✓[/green] tiup playground '{config.tag}' started")
    except PlaygroundManagerError as e:
        _fail(e)
    except Exception as e:
        logger.error(f"Unexpected error while starting playground: {e}", exc_info=True)
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def stop(
    cluster_id: str = typer.Option(
        ...,
        "--cluster-id",
        envvar=["INPUT_CLUSTER-ID", "STATE_cluster-id"],
        help="Playground tag to clean",
    ),
    timeout: int = typer.Option(
        60, "--timeout", envvar="INPUT_TIMEOUT", min=1, help="Seconds to wait for shutdown"
    ),
    tiup_path: str | None = typer.Option(
        None,
        "--tiup",
        envvar=["INPUT_TIUP-PATH", "STATE_tiup-path"],
        help="Path to the tiup binary",
    ),
) -> None:
    """
    Clean a tiup playground and wait until it stops answering.
    """
    from playground_manager.lifecycle import Reclaimer
    from playground_manager.tiup import resolve_tiup

    try:
        tiup = resolve_tiup(tiup_path, install=False)
        Reclaimer(tiup, max_attempts=timeout).reclaim(cluster_id)

        logger.info("tiup playground stopped")
        console.print(f"[green]✓[/green] tiup playground '{cluster_id}' stopped")
    except PlaygroundManagerError as e:
        _fail(e)
    except Exception as e:
        logger.error(f"Unexpected error while stopping playground: {e}", exc_info=True)
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def status(
    cluster_id: str = typer.Option(
        ...,
        "--cluster-id",
        envvar=["INPUT_CLUSTER-ID", "STATE_cluster-id"],
        help="Playground tag to probe",
    ),
    tiup_path: str | None = typer.Option(
        None,
        "--tiup",
        envvar=["INPUT_TIUP-PATH", "STATE_tiup-path"],
        help="Path to the tiup binary",
    ),
) -> None:
    """
    Probe a playground once. Exits 0 when it answers a query, 1 otherwise.
    """
    from playground_manager.tiup import resolve_tiup

    try:
        tiup = resolve_tiup(tiup_path, install=False)
        ready = tiup.is_ready(cluster_id)
    except PlaygroundManagerError as e:
        _fail(e)

    if ready:
        console.print(f"[green]✓[/green] Cluster '{cluster_id}' is ready")
    else:
        console.print(f"[yellow]✗[/yellow] Cluster '{cluster_id}' is not ready")
        raise typer.Exit(code=1)
