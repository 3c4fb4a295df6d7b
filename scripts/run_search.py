#!/usr/bin/env python3
"""Search a subject across every enabled provider and cross-reference the results.

Usage:
    python scripts/run_search.py --cpf 123.456.789-09 --celular 11987654321
    python scripts/run_search.py --nome "Fulano de Tal" --extract-names --only-crossed
    python scripts/run_search.py --cnpj 11222333000181 --export xlsx --output data/exports/empresa.xlsx
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.table import Table

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from investiga.crossref.models import CrossReferenceResult  # noqa: E402
from investiga.export.csv_export import build_csv, write_csv  # noqa: E402
from investiga.export.dossier import build_dossier  # noqa: E402
from investiga.export.json_export import build_json  # noqa: E402
from investiga.export.rows import PRESETS, resolve_columns  # noqa: E402
from investiga.export.xlsx_export import build_xlsx, write_xlsx  # noqa: E402
from investiga.pipeline.search_pipeline import SearchOutcome, SearchPipeline, Subject  # noqa: E402
from investiga.providers.registry import ProviderRegistry, build_http_client  # noqa: E402
from investiga.utils.config import Config, load_config  # noqa: E402
from investiga.utils.logging import setup_logging  # noqa: E402

console = Console()

SUBJECT_FLAGS = ("nome", "cpf", "cnpj", "rg", "cep", "celular", "email", "cnh", "clt")
EXPORT_SUFFIXES = {"csv": ".csv", "xlsx": ".xlsx", "json": ".json", "md": ".md"}


def _print_results(outcome: SearchOutcome) -> None:
    table = Table(title="Resultados")
    table.add_column("Campo", style="cyan")
    table.add_column("Provedor", style="magenta")
    table.add_column("Título")
    table.add_column("Descrição", overflow="fold")
    table.add_column("Cruzado", justify="center")

    for field, by_provider in outcome.results.items():
        for provider, items in by_provider.items():
            for item in items:
                if item.error:
                    title, description = "[red]erro[/red]", item.error
                else:
                    title, description = item.title or "", item.description or ""
                crossed = "✔" if outcome.cross.is_crossed(item, field, provider) else ""
                table.add_row(field, provider, title, description, crossed)
    console.print(table)


def _print_groups(cross: CrossReferenceResult, hide_generic_names: bool) -> None:
    groups = cross.visible_groups(hide_generic_names)
    if not groups:
        console.print("[dim]Nenhum cruzamento encontrado.[/dim]")
        return

    table = Table(title="Cruzamentos")
    table.add_column("Tipo", style="cyan")
    table.add_column("Valor", style="bold")
    table.add_column("Ocorrências", justify="right")
    table.add_column("Provedores")
    table.add_column("Tags")
    for group in groups:
        table.add_row(
            group.type.value,
            group.value,
            str(group.occurrences),
            ", ".join(group.providers),
            ", ".join(group.tags),
        )
    console.print(table)


def _export(outcome: SearchOutcome, config: Config, fmt: str, output: Path | None) -> Path:
    export_cfg = config.export
    subject = outcome.subject.model_dump()
    if output is None:
        stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        suffix = "_cruzados" if export_cfg.only_crossed else ""
        output = Path(export_cfg.output_dir) / f"resultados_{stamp}{suffix}{EXPORT_SUFFIXES[fmt]}"

    columns = resolve_columns(export_cfg)
    if fmt == "csv":
        content = build_csv(
            outcome.results,
            columns,
            only_crossed=export_cfg.only_crossed,
            membership=outcome.cross.membership,
            subject=subject,
        )
        return write_csv(output, content)
    if fmt == "xlsx":
        content = build_xlsx(
            outcome.results,
            columns,
            mode=export_cfg.xlsx_mode,
            only_crossed=export_cfg.only_crossed,
            membership=outcome.cross.membership,
            subject=subject,
        )
        return write_xlsx(output, content)

    if fmt == "json":
        text = build_json(outcome.results, subject=subject, cross_groups=outcome.cross.groups)
    else:
        text = build_dossier(subject, outcome.results)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    logger.info(f"Wrote {fmt} export to {output}")
    return output


async def _run(config: Config, subject: Subject) -> SearchOutcome:
    async with build_http_client(config.providers) as client:
        registry = ProviderRegistry(
            client, providers_config=config.providers, credentials=config.credentials
        )
        pipeline = SearchPipeline(config, registry)
        return await pipeline.run(subject)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Search a subject across OSINT providers and cross-reference the results",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file (default: config/config.yaml)",
    )
    for flag in SUBJECT_FLAGS:
        parser.add_argument(f"--{flag}", default="", help=f"Subject {flag}")
    parser.add_argument("--only-crossed", action="store_true", help="Export only cross-referenced items")
    parser.add_argument(
        "--export", choices=sorted(EXPORT_SUFFIXES), default=None, help="Export format"
    )
    parser.add_argument("--output", "-o", type=Path, default=None, help="Export file path")
    parser.add_argument(
        "--xlsx-mode",
        choices=["single", "per_field", "per_provider", "field_provider"],
        default=None,
        help="Sheet layout for XLSX exports",
    )
    parser.add_argument("--preset", choices=list(PRESETS), default=None, help="Export column preset")
    parser.add_argument(
        "--extract-names", action="store_true", help="Mine person names from free text"
    )
    parser.add_argument(
        "--show-generic-names", action="store_true", help="Keep cross groups of common names"
    )
    parser.add_argument("--no-enrichment", action="store_true", help="Disable auto enrichment")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    try:
        config = load_config(args.config) if args.config.exists() else Config()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        sys.exit(1)

    setup_logging(config.logging, verbose=args.verbose)

    if args.extract_names:
        config.cross_reference.extract_names_from_text = True
    if args.show_generic_names:
        config.cross_reference.hide_generic_names = False
    if args.no_enrichment:
        config.search.auto_enrichment = False
    if args.only_crossed:
        config.export.only_crossed = True
    if args.xlsx_mode:
        config.export.xlsx_mode = args.xlsx_mode
    if args.preset:
        config.export.preset = args.preset

    subject = Subject(**{flag: getattr(args, flag) for flag in SUBJECT_FLAGS})
    if subject.is_empty():
        console.print("[yellow]Informe ao menos um campo do sujeito (ex.: --cpf, --nome).[/yellow]")
        sys.exit(2)

    try:
        outcome = asyncio.run(_run(config, subject))
    except Exception as e:
        logger.exception("Search failed")
        console.print(f"[bold red]Search failed: {e}[/bold red]")
        sys.exit(1)

    _print_results(outcome)
    _print_groups(outcome.cross, config.cross_reference.hide_generic_names)
    console.print(
        f"[green]{outcome.item_count()} itens, {len(outcome.cross.groups)} cruzamentos "
        f"em {outcome.elapsed_seconds:.2f}s[/green]"
    )

    if args.export:
        path = _export(outcome, config, args.export, args.output)
        console.print(f"[bold green]Export saved to {path}[/bold green]")


if __name__ == "__main__":
    main()
