import argparse
import sys
from pathlib import Path

import yaml

project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from supporter_board.fetcher import build_cache_busting_urls


def write_pool(config_path: Path, section: str, urls: list[str]) -> None:
    data = {}
    if config_path.exists():
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    target = data.setdefault(section, {}) or {}
    target.pop("url", None)
    target["urls"] = urls
    data[section] = target
    config_path.write_text(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate cache-busting variants of a roster URL")
    parser.add_argument("url")
    parser.add_argument("--count", type=int, default=500)
    parser.add_argument("--parameter", default="t")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"))
    parser.add_argument("--section", choices=("source", "door"), default="source")
    parser.add_argument("--print", dest="print_only", action="store_true", help="Print the URLs instead of writing them")
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    try:
        urls = build_cache_busting_urls(args.url, args.count, args.parameter)
    except ValueError as error:
        print(f"ERROR {error}")
        sys.exit(1)
    if args.print_only:
        print("\n".join(urls))
    else:
        write_pool(args.config, args.section, urls)
        print(f"Wrote {len(urls)} links to {args.config} ({args.section}.urls)")
