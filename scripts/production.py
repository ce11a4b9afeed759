import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from board_display import run_board
from door_watch import run_door
from generate_links import write_pool
from supporter_board.config import AppConfig, load_config, merge_board_settings
from supporter_board.errors import ConfigError
from supporter_board.fetcher import build_cache_busting_urls


def parse_board_options(pairs: Sequence[str]) -> Dict[str, Any]:
    """Turn repeated ``key=value`` flags into a ``board_settings`` mapping.

    Values are read as YAML scalars so ``true``, ``12`` and ``0.5`` get the types
    ``merge_board_settings`` expects; anything else, colors included, stays text.
    """
    options: Dict[str, Any] = {}
    for pair in pairs:
        key, separator, raw = pair.partition("=")
        key, raw = key.strip(), raw.strip()
        if not separator or not key:
            raise ConfigError(f"Expected key=value, got {pair!r}")
        try:
            value = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        options[key] = raw if value is None or isinstance(value, (dict, list)) else value
    return options


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", type=Path)
    parser.add_argument("--mode", choices=("board", "door", "links"), default="board")
    parser.add_argument("--count", type=int, default=500, help="Pool size for links mode")
    parser.add_argument("--url", action="append")
    parser.add_argument("--output", type=Path)
    parser.add_argument("--duration", type=float)
    parser.add_argument("--option", action="append", default=[], help="Board setting override as key=value")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    board = merge_board_settings(config.board, parse_board_options(args.option))
    config = replace(config, board=board)
    if args.url:
        if args.mode == "door":
            config = replace(config, door=replace(config.door, urls=list(args.url)))
        else:
            config = replace(config, source=replace(config.source, urls=list(args.url)))
    return config


async def run_mode(config: AppConfig, mode: str, output: Optional[Path], duration: Optional[float]) -> None:
    if mode == "board":
        await run_board(config, output, duration)
    elif mode == "door":
        await run_door(config, duration)
    else:
        raise ValueError(f"Unsupported mode '{mode}'")


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as error:
        print(f"Config error: {error}")
        sys.exit(1)
    if args.mode == "links":
        config_path = args.config or Path("config.yaml")
        bases = args.url or config.source.urls
        if not bases:
            print("Config error: links mode needs --url or a configured source")
            sys.exit(1)
        write_pool(config_path, "source", build_cache_busting_urls(bases[0], args.count))
        print(f"Wrote {args.count} links for {bases[0]} to {config_path}")
        sys.exit(0)
    output = args.output or (Path(config.display.output) if config.display.output else None)
    try:
        asyncio.run(run_mode(config, args.mode, output, args.duration))
    except KeyboardInterrupt:
        pass
