"""Boogie CLI application with Typer."""

import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from boogie import __version__
from boogie.bootstrap import ApplicationContainer, bootstrap_application
from boogie.config import get_settings, set_settings
from boogie.errors import (
    BoogieError,
    ConsistencyError,
    FormatError,
    InvalidArgument,
    MetadataUnavailable,
    RemoteError,
    TransportError,
)
from boogie.snapshot.store import SnapshotPaths, inspect_snapshot
from boogie.utils.cli_output import json_response

app = typer.Typer(
    name="boogie",
    help="Build vector snapshots from track metadata and sync them with boogie-vec",
    add_completion=True,
    no_args_is_help=True,
)
ingest_app = typer.Typer(help="Track ingestion and snapshot writing")
app.add_typer(ingest_app, name="ingest")
index_app = typer.Typer(help="Remote index management")
app.add_typer(index_app, name="index")

EXIT_USER_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_UNREACHABLE = 3
EXIT_BACKEND_ERROR = 4


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"Boogie version {__version__}")
        raise typer.Exit()


def _fail(message: str, code: int = EXIT_USER_ERROR) -> NoReturn:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=code)


def _fail_backend(exc: BoogieError) -> NoReturn:
    """Report index client errors with a remediation hint."""
    if isinstance(exc, TransportError):
        _fail(f"Vector backend unreachable: {exc}", EXIT_UNREACHABLE)
    if isinstance(exc, RemoteError) and exc.index_not_loaded:
        _fail(
            "Vector index not loaded. Run 'boogie ingest run' or 'boogie index load' first.",
            EXIT_BACKEND_ERROR,
        )
    if isinstance(exc, RemoteError):
        _fail(str(exc), EXIT_BACKEND_ERROR)
    _fail(str(exc))


def _require_embedder(container: ApplicationContainer) -> None:
    if container.embedder is None:
        _fail(container.embedder_error or "No embedding provider available.", EXIT_CONFIG_ERROR)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    online: Annotated[
        bool,
        typer.Option("--online", help="Enable online features (embedding API calls)"),
    ] = False,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Override data directory"),
    ] = None,
    vec_url: Annotated[
        str | None,
        typer.Option("--vec-url", help="Override the boogie-vec backend URL"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log progress at INFO level"),
    ] = False,
) -> None:
    """Boogie - vector snapshot builder and boogie-vec sync client."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    # Update settings with CLI flags
    settings = get_settings()
    if online:
        settings.online = True
    if data_dir:
        settings.data_dir = data_dir
    if vec_url:
        settings.vec_url = vec_url
    set_settings(settings)


@ingest_app.command("run")
def ingest_run(
    csv_path: Annotated[Path, typer.Argument(help="Track CSV with a header row")],
    output_dir: Annotated[
        Path | None,
        typer.Option("--output-dir", "-o", help="Snapshot directory (defaults to <data-dir>/snapshot)"),
    ] = None,
    load: Annotated[
        bool | None,
        typer.Option("--load/--no-load", help="Ask the backend to load the snapshot afterwards"),
    ] = None,
    batch_size: Annotated[
        int | None,
        typer.Option("--batch-size", help="Texts per embedding request", min=1),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output run summary as JSON"),
    ] = False,
) -> None:
    """Embed tracks from CSV and write vectors.bin, ids.json, and tracks.json."""
    container = bootstrap_application()
    _require_embedder(container)

    if not csv_path.exists():
        _fail(f"Path not found: {csv_path}")

    if not json_output:
        typer.secho(f"Ingesting tracks from {csv_path}...", fg=typer.colors.BLUE)
    try:
        result = container.ingest_service.run_csv(
            csv_path,
            output_dir=output_dir,
            auto_load=load,
            batch_size=batch_size,
        )
    except (FormatError, ConsistencyError) as exc:
        _fail(str(exc))
    except RuntimeError as exc:
        _fail(str(exc), EXIT_CONFIG_ERROR)

    if json_output:
        typer.echo(
            json_response(
                "ingest_result",
                1,
                count=result.count,
                dim=result.dim,
                vectors_path=str(result.vectors_path),
                ids_path=str(result.ids_path),
                metadata_path=str(result.metadata_path),
                loaded=result.loaded,
                stages=[{"name": s.name, "status": s.status, "detail": s.detail} for s in result.stages],
                notes=result.notes,
            )
        )
        return

    typer.secho(
        f"Wrote {result.count} vectors (dim={result.dim}) to {result.vectors_path}",
        fg=typer.colors.GREEN,
    )
    typer.echo(f"IDs: {result.ids_path}")
    typer.echo(f"Metadata: {result.metadata_path}")
    for stage in result.stages:
        typer.echo(f"[{stage.status}] {stage.name}")
    if result.load is not None and result.load.loaded is not None:
        loaded = result.load.loaded
        typer.secho(
            f"Backend loaded {loaded.count} vectors (dim={loaded.dim}, backend={loaded.backend})",
            fg=typer.colors.GREEN,
        )
    for note in result.notes:
        typer.secho(f"WARNING: {note}", fg=typer.colors.YELLOW)


@index_app.command("load")
def index_load(
    snapshot_dir: Annotated[
        Path | None,
        typer.Option("--dir", help="Snapshot directory (defaults to <data-dir>/snapshot)"),
    ] = None,
    backend: Annotated[
        str | None,
        typer.Option("--backend", help="Search backend: bruteforce or annoy"),
    ] = None,
    metric: Annotated[
        str | None,
        typer.Option("--metric", help="Distance metric: cosine or l2"),
    ] = None,
    n_trees: Annotated[
        int | None,
        typer.Option("--n-trees", help="Annoy tree count", min=1),
    ] = None,
) -> None:
    """Ask the backend to (re)build its index from a snapshot on disk."""
    container = bootstrap_application()
    settings = container.settings

    paths = SnapshotPaths.in_dir(snapshot_dir or settings.get_snapshot_dir())
    if not paths.exists():
        _fail(f"Snapshot not found in {paths.vectors_path.parent}. Run 'boogie ingest run' first.")

    try:
        result = container.index_client.load_index(
            str(paths.vectors_path.resolve()),
            settings.vector_dim,
            ids_path=str(paths.ids_path.resolve()),
            backend=backend or settings.index_backend,  # type: ignore[arg-type]
            metric=metric or settings.index_metric,  # type: ignore[arg-type]
            n_trees=n_trees or settings.n_trees,
        )
    except InvalidArgument as exc:
        _fail(str(exc))
    except (RemoteError, TransportError) as exc:
        _fail_backend(exc)

    loaded = result.loaded
    typer.secho(
        f"Loaded {loaded.count} vectors (dim={loaded.dim}, backend={loaded.backend})",
        fg=typer.colors.GREEN,
    )


@index_app.command("stats")
def index_stats(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output stats as JSON"),
    ] = False,
) -> None:
    """Show backend readiness, size, and latency statistics."""
    container = bootstrap_application()
    try:
        stats = container.index_client.get_stats()
    except (RemoteError, TransportError) as exc:
        _fail_backend(exc)

    if json_output:
        typer.echo(json_response("index_stats", 1, **stats.model_dump(mode="json")))
        return

    if not stats.ready:
        typer.secho("Index status: empty (no snapshot loaded)", fg=typer.colors.YELLOW)
        typer.echo(f"Uptime: {stats.uptime_sec:.0f}s")
        return

    typer.secho("Index status: ready", fg=typer.colors.GREEN)
    typer.echo(f"Vectors: {stats.count} (dim={stats.dim})")
    typer.echo(f"Backend: {stats.backend} / {stats.metric}")
    typer.echo(f"Snapshot version: {stats.snapshot_version}")
    typer.echo(f"Uptime: {stats.uptime_sec:.0f}s, QPS (1m): {stats.qps_1m:.2f}")
    latency = stats.latency_ms
    typer.echo(f"Latency ms: p50={latency.p50:.2f} p95={latency.p95:.2f} p99={latency.p99:.2f}")


@index_app.command("health")
def index_health() -> None:
    """Probe backend liveness."""
    container = bootstrap_application()
    try:
        body = container.index_client.health_check()
    except TransportError as exc:
        _fail_backend(exc)
    typer.secho(body.strip() or "ok", fg=typer.colors.GREEN)


@index_app.command("inspect")
def index_inspect(
    snapshot_dir: Annotated[
        Path | None,
        typer.Option("--dir", help="Snapshot directory (defaults to <data-dir>/snapshot)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output snapshot summary as JSON"),
    ] = False,
) -> None:
    """Decode a local snapshot pair and verify row/ID alignment."""
    settings = get_settings()
    paths = SnapshotPaths.in_dir(snapshot_dir or settings.get_snapshot_dir())

    try:
        header, id_count = inspect_snapshot(paths)
    except FileNotFoundError as exc:
        _fail(str(exc))
    except (FormatError, ConsistencyError) as exc:
        _fail(f"Snapshot invalid: {exc}")

    if json_output:
        typer.echo(
            json_response(
                "snapshot_summary",
                1,
                vectors_path=str(paths.vectors_path),
                ids_path=str(paths.ids_path),
                dim=header.dim,
                count=header.count,
                ids=id_count,
                size_bytes=header.total_size,
            )
        )
        return

    typer.secho(f"Snapshot OK: {header.count} vectors x {header.dim} dims", fg=typer.colors.GREEN)
    typer.echo(f"Vectors: {paths.vectors_path} ({header.total_size} bytes)")
    typer.echo(f"IDs: {paths.ids_path} ({id_count} entries)")
    if header.dim != settings.vector_dim:
        typer.secho(
            f"Note: snapshot dim {header.dim} differs from configured {settings.vector_dim}",
            fg=typer.colors.YELLOW,
        )


@app.command("search")
def search(
    query: Annotated[str, typer.Argument(help="Free-text search query")],
    k: Annotated[
        int | None,
        typer.Option("--k", "-k", help="Number of neighbours to request"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
) -> None:
    """Embed a query, search the backend, and show matching tracks."""
    container = bootstrap_application()
    _require_embedder(container)

    try:
        response = container.search_service.search(query, k=k)
    except InvalidArgument as exc:
        _fail(str(exc))
    except MetadataUnavailable as exc:
        _fail(str(exc))
    except ConsistencyError as exc:
        _fail(str(exc))
    except (RemoteError, TransportError) as exc:
        _fail_backend(exc)
    except RuntimeError as exc:
        _fail(str(exc), EXIT_CONFIG_ERROR)

    if json_output:
        typer.echo(
            json_response(
                "search_results",
                1,
                query=response.query,
                latency_ms=response.latency_ms,
                backend=response.backend,
                tracks=[track.model_dump(mode="json") for track in response.tracks],
            )
        )
        return

    if not response.tracks:
        typer.secho("No results found", fg=typer.colors.YELLOW)
        return

    typer.secho(
        f"Found {len(response.tracks)} tracks for '{response.query}' "
        f"({response.backend}, {response.latency_ms:.1f} ms):",
        fg=typer.colors.BLUE,
    )
    for i, track in enumerate(response.tracks, 1):
        typer.echo(f"\n{i}. {track.title} - {track.artist} (score: {track.score:.3f})")
        if track.tags:
            typer.echo(f"   {track.tags}")
        if track.url:
            typer.echo(f"   {track.url}")


if __name__ == "__main__":  # pragma: no cover
    app()
