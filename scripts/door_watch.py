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

from supporter_board.config import AppConfig, load_config
from supporter_board.errors import ConfigError
from supporter_board.fetcher import HttpTextLoader
from supporter_board.vip_door import VipDoor


class ConsoleGate:
    def __init__(self) -> None:
        self.is_open: Optional[bool] = None

    def set_open(self, is_open: bool) -> None:
        if is_open != self.is_open:
            self.is_open = is_open
            print("DOOR OPEN" if is_open else "DOOR LOCKED")


async def run_door(config: AppConfig, duration: Optional[float] = None) -> None:
    loader = HttpTextLoader(timeout=config.source.timeout, user_agent=config.source.user_agent)
    door = VipDoor(config.door, loader, ConsoleGate(), retry_delay=config.source.retry_delay)
    loop = asyncio.get_running_loop()
    try:
        loop.add_reader(sys.stdin.fileno(), lambda: sys.stdin.readline() and door.on_interact())
        watching = True
    except (NotImplementedError, OSError, ValueError):
        watching = False
    door.start()
    started = last = loop.time()
    try:
        while duration is None or last - started < duration:
            await asyncio.sleep(0.1)
            now = loop.time()
            door.on_tick(now - last)
            last = now
    finally:
        if watching:
            loop.remove_reader(sys.stdin.fileno())


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gate a door on a remote VIP list")
    parser.add_argument("--config", type=Path)
    parser.add_argument("--url", action="append")
    parser.add_argument("--user")
    parser.add_argument("--open-duration", type=float)
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = load_config(args.config)
    except ConfigError as error:
        print(f"Config error: {error}")
        sys.exit(1)
    door = config.door
    if args.url:
        door = replace(door, urls=list(args.url))
    if args.user:
        door = replace(door, user=args.user)
    if args.open_duration is not None:
        door = replace(door, open_duration=max(0.0, args.open_duration))
    try:
        asyncio.run(run_door(replace(config, door=door), args.duration))
    except KeyboardInterrupt:
        pass
