"""CLI entry point for catalog-export."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from catalog_export import SKU_HEADER, __version__
from catalog_export.errors import ExportError, UnsupportedFormat
from catalog_export.export import export_table
from catalog_export.io import FileFormat, detect_format, read_source, read_table, write_bytes, write_json
from catalog_export.models import ColumnPlan, ExportManifest, ExportResult, PathSource, Table
from catalog_export.pipeline import plan_columns, transform_rows
from catalog_export.utils import sha256_bytes, utcnow_iso
from catalog_export.writer import media_type

app = typer.Typer(
    name="cexport",
    help="catalog-export — Strip image/option columns from product exports and keep SKU rows.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

MANIFEST_NAME = "export_manifest.json"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"catalog-export v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route engine log records to stderr through Rich."""
    log = logging.getLogger("catalog_export")
    for handler in log.handlers[:]:
        log.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, show_time=verbose)
    log.addHandler(handler)
    log.setLevel(logging.DEBUG if verbose else logging.WARNING)
    log.propagate = False


def _load_rows(input_file: Path) -> tuple[FileFormat, Table]:
    fmt = detect_format(input_file.name)
    if fmt is None:
        raise UnsupportedFormat()
    return fmt, read_table(read_source(PathSource(input_file)), fmt)


def _data_rows(rows: Table) -> int:
    return max(len(rows) - 1, 0)


def _write_manifest(
    out_dir: Path,
    input_file: Path,
    created_at: str,
    result: ExportResult,
    *,
    rows_in: int,
    plan: ColumnPlan,
    output_path: Path | None = None,
) -> Path:
    manifest = ExportManifest(
        version=__version__,
        input_path=str(input_file.resolve()),
        output_path=str(output_path.resolve()) if output_path else "",
        output_filename=result.filename or "",
        media_type=media_type(result.filename) if result.filename else "",
        created_at_utc=created_at,
        rows_in=rows_in,
        row_count=result.row_count or 0,
        removed_columns=plan.removed_headers(),
        sha256=sha256_bytes(result.buffer) if result.buffer is not None else "",
        status="success" if result.success else "failed",
        error_message=result.error or "",
    )
    return write_json(out_dir / MANIFEST_NAME, manifest.to_dict())


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show debug logging from the export engine.",
    ),
) -> None:
    """catalog-export CLI."""
    _configure_logging(verbose)


# ── export command ───────────────────────────────────────────────


@app.command()
def export(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the CSV or XLSX product export.",
        exists=True, readable=True, dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the cleaned export + manifest.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Prune columns, keep SKU rows and write <name>-export.<ext>."""
    echo = _printer(quiet)
    created_at = utcnow_iso()

    if not quiet:
        console.print(Panel(
            f"[bold]catalog-export[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}",
            title="Export Start", border_style="blue",
        ))

    echo("[blue]>[/blue] Cleaning export …")
    rows_in, plan = 0, ColumnPlan()
    try:
        fmt, rows = _load_rows(input_file)
    except ExportError as exc:
        result = ExportResult.fail(str(exc))
    else:
        if rows:
            rows_in, plan = _data_rows(rows), plan_columns(rows[0])
        result = export_table(rows, fmt, input_file.name)

    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        if not result.success:
            manifest_path = _write_manifest(
                out_dir, input_file, created_at, result, rows_in=rows_in, plan=plan,
            )
            _err(result.error or "Export failed")
            console.print(f"  Manifest -> {manifest_path}")
            raise typer.Exit(code=2)

        output_path = write_bytes(
            out_dir / cast(str, result.filename), cast(bytes, result.buffer)
        )
        manifest_path = _write_manifest(
            out_dir, input_file, created_at, result,
            rows_in=rows_in, plan=plan, output_path=output_path,
        )
    except OSError as exc:
        _err(f"Could not write output: {exc}")
        raise typer.Exit(code=1)

    if plan.removed:
        echo(f"  Removed {len(plan.removed)} columns: {', '.join(plan.removed_headers())}")
    echo(f"  {result.row_count} of {rows_in} rows kept")
    echo(f"  Export   -> {output_path} ({media_type(output_path.name)})")
    echo(f"  Manifest -> {manifest_path}")

    if not quiet:
        console.print(Panel(
            f"[green]Done[/green] — {result.row_count} rows -> {output_path}",
            title="Export Complete", border_style="green",
        ))


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the CSV or XLSX product export.",
        exists=True, readable=True, dir_okay=False,
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Only print errors.",
    ),
) -> None:
    """Show which columns and rows an export would keep, without writing anything.

    Exit 0 = export would succeed, exit 2 = it would fail.
    """
    try:
        fmt, rows = _load_rows(input_file)
    except ExportError as exc:
        _err(str(exc))
        raise typer.Exit(code=2)

    plan = plan_columns(rows[0]) if rows else ColumnPlan()
    rows_kept = _data_rows(transform_rows(rows))
    ok = rows_kept > 0

    if not quiet:
        tbl = RichTable(title="Export Preview", show_lines=True)
        tbl.add_column("Check", style="bold")
        tbl.add_column("Result")

        tbl.add_row("Format", fmt.upper())
        tbl.add_row("Rows in", str(_data_rows(rows)))
        if plan.removed:
            tbl.add_row("Removed columns", ", ".join(plan.removed_headers()))
        else:
            tbl.add_row("Removed columns", "[dim]none[/dim]")
        tbl.add_row("Kept columns", str(len(plan.kept_headers)))
        if plan.has_sku_column:
            tbl.add_row(SKU_HEADER, f"column {plan.sku_index}")
        else:
            tbl.add_row(SKU_HEADER, "[red]missing[/red]")
        tbl.add_row("Rows kept", str(rows_kept))
        tbl.add_row("Status", "[green]PASS[/green]" if ok else "[red]FAIL[/red]")
        console.print(tbl)

    if not ok:
        _err("No data to export")
        raise typer.Exit(code=2)
