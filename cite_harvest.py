#!/usr/bin/env python3
"""
CiteHarvest - Harvest the reference list of a paper into citation keys.

Usage:
    python cite_harvest.py run CITEKEY [--document NOTE]
    python cite_harvest.py continue
    python cite_harvest.py kill
    python cite_harvest.py status
    python cite_harvest.py keys FILE.bib
    python cite_harvest.py sanitize FILE

The run command extracts the references of CITEKEY's PDF and stops so the
raw text can be edited. Each continue resumes the workflow at the next
checkpoint. The last step appends a grouped References section to the note.
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from loguru import logger

from citeharvest.abbreviations import AbbreviationTable
from citeharvest.bibtex_handler import BibTeXParser
from citeharvest.config import config, VERSION
from citeharvest.dispatcher import build_dispatcher
from citeharvest.errors import StructuralParseError
from citeharvest.extraction import sanitize
from citeharvest.interface import ConsoleInterface
from citeharvest.key_generator import KeyGenerator
from citeharvest.logging_setup import init_from_config
from citeharvest.session import Stage

console = Console(force_terminal=True)

EXIT_CODES = {
    Stage.ERROR: 1,
}


def _print_status(dispatcher):
    snapshot = dispatcher.state.snapshot()
    table = Table(title="Session", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("stage", dispatcher.status().value)
    for name in ("citekey", "document", "source_document", "raw_text_path", "structured_path"):
        table.add_row(name, str(snapshot.get(name) or "-"))
    console.print(table)


def _preview_keys(bib_path: Path) -> int:
    generator = KeyGenerator(AbbreviationTable.from_tsv(config.ABBREVIATIONS_PATH))
    try:
        entries = BibTeXParser(strict=True).parse_file(bib_path)
    except StructuralParseError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    table = Table(title=f"Keys for {bib_path.name}")
    table.add_column("Citekey", style="cyan")
    table.add_column("New key", style="green")
    table.add_column("Valid")
    table.add_column("Summary", style="dim")
    for entry, candidate in generator.generate_all(entries):
        table.add_row(
            entry.citekey,
            candidate.new_key,
            "[green]yes[/green]" if candidate.is_valid else "[red]no[/red]",
            candidate.display,
        )
    console.print(table)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Harvest a paper's references into citation keys and a provenance report"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--yes", "-y", action="store_true", default=None,
                        help="Answer yes to every prompt")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start a workflow for a citekey")
    run_parser.add_argument("citekey", help="Citekey of the paper whose references to harvest")
    run_parser.add_argument("--document", "-d", help="Note file the report is appended to")

    subparsers.add_parser("continue", help="Resume the workflow after editing")
    subparsers.add_parser("kill", help="Abort the workflow and discard scratch files")
    subparsers.add_parser("status", help="Show the current session")

    keys_parser = subparsers.add_parser("keys", help="Preview generated keys for a .bib file")
    keys_parser.add_argument("bibfile", type=Path)

    sanitize_parser = subparsers.add_parser("sanitize", help="Print sanitized reference text")
    sanitize_parser.add_argument("textfile", type=Path)

    args = parser.parse_args(argv)
    init_from_config(verbose=args.verbose)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "keys":
        if not args.bibfile.exists():
            console.print(f"[red]Error: File not found: {args.bibfile}[/red]")
            return 1
        return _preview_keys(args.bibfile)

    if args.command == "sanitize":
        if not args.textfile.exists():
            console.print(f"[red]Error: File not found: {args.textfile}[/red]")
            return 1
        console.print(sanitize(args.textfile.read_text(encoding="utf-8")), markup=False)
        return 0

    ui = ConsoleInterface(console=console, assume_yes=args.yes)
    dispatcher = build_dispatcher(config, ui)
    logger.debug(f"CiteHarvest {VERSION} config: {config.to_dict()}")

    if args.command == "status":
        _print_status(dispatcher)
        return 0

    if args.command == "run":
        console.print(Panel.fit(
            f"[bold blue]CiteHarvest[/bold blue] {VERSION}\n"
            f"Harvesting references for [cyan]{args.citekey}[/cyan]",
            border_style="blue",
        ))
        stage = dispatcher.run(args.citekey, args.document)
    elif args.command == "continue":
        was_running = dispatcher.is_running()
        stage = dispatcher.resume()
        if was_running and stage is Stage.IDLE:
            console.print("[green]✓ References inserted[/green]")
    else:
        stage = dispatcher.kill()

    return EXIT_CODES.get(stage, 0)


if __name__ == "__main__":
    sys.exit(main())
