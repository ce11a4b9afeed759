import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from supporter_board.board import SupporterBoard
from supporter_board.config import AppConfig, load_config
from supporter_board.errors import ConfigError
from supporter_board.fetcher import HttpTextLoader
from supporter_board.fonts import resolve_font
from supporter_board.preview import ConsoleLine, ConsoleRegion, ImageRegion


def build_board(config: AppConfig, output: Optional[Path]) -> tuple[SupporterBoard, HttpTextLoader]:
    loader = HttpTextLoader(timeout=config.source.timeout, user_agent=config.source.user_agent)
    if output:
        region = ImageRegion(
            output,
            width=config.display.width,
            height=config.display.height,
            font_path=resolve_font(config.display.font),
            font_size=config.board.content_font_size,
        )
        visuals = region
    else:
        region = ConsoleRegion()
        visuals = None
    board = SupporterBoard(
        config,
        loader,
        region,
        ConsoleLine("status"),
        header=ConsoleLine("header"),
        visuals=visuals,
    )
    return board, loader


def watch_stdin(loop: asyncio.AbstractEventLoop, callback) -> bool:
    def on_input() -> None:
        if sys.stdin.readline():
            callback()

    try:
        loop.add_reader(sys.stdin.fileno(), on_input)
    except (NotImplementedError, OSError, ValueError):
        return False
    return True


async def run_board(config: AppConfig, output: Optional[Path], duration: Optional[float] = None) -> None:
    board, _loader = build_board(config, output)
    loop = asyncio.get_running_loop()
    interactive = watch_stdin(loop, board.on_interact)
    if interactive:
        print("Press Enter to flip the page or retry a failed sync. Ctrl+C to exit.")
    frame_interval = 1.0 / config.display.fps
    board.start()
    started = last = loop.time()
    try:
        while duration is None or last - started < duration:
            await asyncio.sleep(frame_interval)
            now = loop.time()
            board.on_tick(now - last)
            last = now
    finally:
        if interactive:
            loop.remove_reader(sys.stdin.fileno())


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show a paginated supporter roster")
    parser.add_argument("--config", type=Path)
    parser.add_argument("--url", action="append", help="Roster URL, repeat to build a pool")
    parser.add_argument("--output", type=Path, help="Render pages to this PNG instead of the console")
    parser.add_argument("--font")
    parser.add_argument("--fps", type=float)
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def apply_args(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.url:
        config = replace(config, source=replace(config.source, urls=list(args.url)))
    display = config.display
    if args.font:
        display = replace(display, font=args.font)
    if args.fps:
        display = replace(display, fps=max(1.0, args.fps))
    if args.output:
        display = replace(display, output=str(args.output))
    return replace(config, display=display)


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = apply_args(load_config(args.config), args)
    except ConfigError as error:
        print(f"Config error: {error}")
        sys.exit(1)
    output = Path(config.display.output) if config.display.output else None
    try:
        asyncio.run(run_board(config, output, args.duration))
    except KeyboardInterrupt:
        pass
