#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Command-line front-end for BoHelper.

Notes
- This module is intentionally a thin UI layer.
- Catalog / save / query logic lives in `core/`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rich.console import Console  # noqa: E402
from rich.markup import escape  # noqa: E402
from rich.table import Table  # noqa: E402
from rich.text import Text  # noqa: E402

from core.aspects import hide_boosts  # noqa: E402
from core.catalog import CatalogError  # noqa: E402
from core.config import DEFAULT_CONFIG_PATH, ConfigError, resolve_config  # noqa: E402
from core.engine import HelperEngine  # noqa: E402

console = Console()

NEW_MARKER = "[New Recipe!]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bohelper", description="Book of Hours memory / skill / crafting helper.")
    parser.add_argument("-d", "--data", default=None, help="Path to game data (bh_Data)")
    parser.add_argument("-s", "--save", default=None, help="Path to save file (default: platform autosave)")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="settings.ini path")
    parser.add_argument("--log-level", default="warning", choices=["critical", "error", "warning", "info", "debug"])
    parser.add_argument("-l", "--limit", type=int, default=8, help="Max memories to list")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-p", "--principle", help="Principle of the memory you are looking for")
    mode.add_argument("--solve", nargs=2, metavar=("ASPECT", "ASPECT"), help="The two aspects of the skill you want to upgrade")
    mode.add_argument("-a", "--aspects", nargs="+", help="Aspects of the item you are looking for")
    mode.add_argument("-c", "--craft", help="Skill name (prefix) or principle to list recipes for")
    return parser


def _print_principle(engine: HelperEngine, principle: str, limit: int) -> None:
    console.print()
    found = engine.memories([principle], limit)
    if not found:
        console.print(f"[yellow]No memories with {escape(principle)} found[/yellow]")
    for mem, (source, aspects) in found.items():
        console.print(f"[cyan]{escape(source)}[/cyan] has memory [bold]{escape(mem)}[/bold] with {principle}: {aspects.get(principle, 0)}")


def _print_solve(engine: HelperEngine, pair: List[str], limit: int) -> None:
    console.print()
    result = engine.solve(pair, limit)
    if not result.found:
        console.print("[yellow]Warning: no matching skills[/yellow]")
    else:
        console.print("[bold]Matching skills:[/bold]")
        for block in result.skills:
            console.print(escape(block.skill.label), style="bold cyan")
            for line in block.lines:
                style = "yellow" if not line.stations else "white"
                console.print(escape(line.render()), style=style)
            console.print()
    console.print()
    for hit in result.memories:
        console.print(escape(f"{hit.source_label}:\t {hit.label}"))


def _print_aspects(engine: HelperEngine, aspects: List[str]) -> None:
    found = engine.aspected(aspects, keep=hide_boosts)
    table = Table(title=f"Items with {', '.join(aspects)}", border_style="blue")
    table.add_column("Item", style="cyan")
    table.add_column("Aspects", style="white")
    for label in sorted(found):
        shown = ", ".join(f"{k}: {v}" for k, v in sorted(found[label].items()))
        table.add_row(escape(label), escape(shown))
    console.print(table)


def _print_craft(engine: HelperEngine, query: str) -> None:
    console.print()
    browse = engine.craft(query)
    if not browse.found:
        console.print(f"[red]Skill not found: {escape(query)}[/red]")
        return
    if browse.skill is not None:
        console.print(f"Using skill [bold]{escape(browse.skill.label)}[/bold]\n")
    else:
        console.print(f"Recipes producing [bold]{browse.principle}[/bold] with owned skills\n")

    for tier, lines in browse.tiers.items():
        console.print(f"[bold]{tier} recipes:[/bold]")
        for line in lines:
            text = Text(line.render())
            text.highlight_words([NEW_MARKER], style="green")
            console.print(text)
        console.print()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper()), format="%(levelname)s %(name)s: %(message)s")

    try:
        cfg = resolve_config(config_path=Path(args.config), game_data=args.data, save_path=args.save)
        console.print(f"Using game path: {escape(str(cfg.game_data))}")
        console.print(f"Using save path {escape(str(cfg.save_path))}")
        engine = HelperEngine(cfg)
    except (ConfigError, CatalogError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    err = engine.saves.last_error()
    if err:
        console.print(f"[yellow]{escape(err)}[/yellow]")

    with engine:
        if args.principle:
            _print_principle(engine, args.principle, args.limit)
        elif args.solve:
            _print_solve(engine, args.solve, args.limit)
        elif args.aspects:
            _print_aspects(engine, args.aspects)
        elif args.craft:
            _print_craft(engine, args.craft)
        else:
            console.print("Nothing to do\nUse --help for help")
    return 0


if __name__ == "__main__":
    sys.exit(main())
