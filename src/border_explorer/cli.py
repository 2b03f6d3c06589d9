from __future__ import annotations

import argparse
import logging
import sqlite3

import httpx
from rich.console import Console
from rich.table import Table

from .config import ExplorerConfig
from .errors import BorderExplorerError
from .settings import BorderExplorerSettings, settings

logger = logging.getLogger("border_explorer")
console = Console()


def _configure_logging() -> None:
    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _settings_for(args: argparse.Namespace) -> BorderExplorerSettings:
    """Command line arguments take precedence over the environment."""
    update: dict[str, object] = {}
    if getattr(args, "db", None):
        update["db_path"] = args.db
    if getattr(args, "natures", None) is not None:
        update["natures"] = args.natures
    if getattr(args, "out", None):
        update["output_dir"] = args.out
    if getattr(args, "limit", None) is not None:
        update["max_categories"] = args.limit
    return settings.model_copy(update=update)


def _print_ingest(stats) -> None:
    table = Table(title="Ingestion")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white", justify="right")
    for key, value in stats.as_dict().items():
        if key == "skips":
            continue
        table.add_row(key, f"{value:,}" if isinstance(value, int) else str(value))
    for reason, n in sorted(stats.skips.items()):
        table.add_row(f"skipped: {reason}", f"{n:,}")
    console.print(table)


def _print_export(result) -> None:
    if not result.ranked:
        console.print("[yellow]No category passed the ranking thresholds[/yellow]")
        return
    table = Table(title="Exported categories")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Edges", justify="right")
    table.add_column("Nodes", justify="right")
    for score in result.ranked:
        labels = result.categories[score.category]
        n_nodes, _ = result.counts.get(score.category, (0, 0))
        table.add_row(f"Q{score.category}", labels.en or labels.fr, str(score.edge_count), str(n_nodes))
    console.print(table)


def cmd_version() -> int:
    from . import __version__

    print(__version__)
    return 0


def cmd_ingest(args: argparse.Namespace) -> int:
    from .graph.store import SQLiteGraphStore
    from .ingest.sources import open_dump
    from .pipeline import ingest

    s = args.settings
    config = ExplorerConfig.from_settings(s)
    with SQLiteGraphStore(path=s.db_path) as store:
        stats = ingest(open_dump(args.dump, s.decompressor), store, config)
    _print_ingest(stats)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    from .graph.store import SQLiteGraphStore
    from .labels import WikidataLabelClient
    from .pipeline import generate

    s = args.settings
    config = ExplorerConfig.from_settings(s)
    with SQLiteGraphStore(path=s.db_path, bulk_load=False) as store, WikidataLabelClient(
        s.label_service_url,
        timeout_s=s.label_timeout_s,
        user_agent=s.user_agent,
    ) as client:
        result = generate(store, config, client, s.output_dir)
    _print_export(result)
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    rc = cmd_ingest(args)
    if rc:
        return rc
    return cmd_export(args)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="border-explorer")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version").set_defaults(func=lambda _a: cmd_version())

    def common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--db", default=None, help="SQLite graph database path")

    ing = sub.add_parser("ingest", help="Load a Wikidata JSON dump into the graph database")
    ing.add_argument("dump", help="latest-all.json.bz2 (or .gz, or plain JSON lines)")
    ing.add_argument("--natures", default=None, help="Comma separated Q ids to keep, e.g. Q484170,Q515")
    common(ing)
    ing.set_defaults(func=cmd_ingest)

    exp = sub.add_parser("export", help="Rank categories and write their GeoJSON files")
    exp.add_argument("--out", default=None, help="Output directory")
    exp.add_argument("--limit", type=int, default=None, help="At most this many categories (<= 600)")
    common(exp)
    exp.set_defaults(func=cmd_export)

    run = sub.add_parser("run", help="ingest then export")
    run.add_argument("dump")
    run.add_argument("--natures", default=None)
    run.add_argument("--out", default=None)
    run.add_argument("--limit", type=int, default=None)
    common(run)
    run.set_defaults(func=cmd_run)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging()
    args.settings = _settings_for(args)
    try:
        return args.func(args)
    except (BorderExplorerError, sqlite3.Error, httpx.HTTPError, OSError) as e:
        logger.error("%s", e)
        return 1


def app() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    app()
