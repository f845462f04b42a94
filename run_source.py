#!/usr/bin/env python3
"""
Command-line script to run the AllNovel source operations.

Fetches live pages and prints the extracted records as JSON (camelCase keys,
as the reading application receives them).

Usage:
    python run_source.py popular --page 2
    python run_source.py latest
    python run_source.py search "martial peak"
    python run_source.py detail https://allnovel.org/some-novel.html
    python run_source.py chapters /some-novel.html
    python run_source.py content /some-novel/chapter-1.html -o chapter.json
"""

import argparse
import asyncio
import json
import logging
import os
from pathlib import Path

# Load .env file automatically
from dotenv import load_dotenv
load_dotenv()

from allnovel_parser.source import AllNovelSource
from allnovel_parser.config import SourceConfig
from allnovel_parser.exceptions import AllNovelError, SourceExhaustedError
from allnovel_parser.logger import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run AllNovel source operations")
    parser.add_argument("--output", "-o", help="Output JSON file (default: stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--base-url", help="Override the site origin")

    commands = parser.add_subparsers(dest="command", required=True)

    for name in ("popular", "latest"):
        listing = commands.add_parser(name, help=f"{name} listing")
        listing.add_argument("--page", type=int, default=1)

    search = commands.add_parser("search", help="search by title")
    search.add_argument("query")
    search.add_argument("--page", type=int, default=1)

    for name in ("detail", "chapters", "content"):
        target = commands.add_parser(name, help=f"{name} for a URL")
        target.add_argument("url")

    return parser


async def run(source: AllNovelSource, args: argparse.Namespace):
    if args.command == "popular":
        return await source.list_popular(args.page)
    if args.command == "latest":
        return await source.list_latest(args.page)
    if args.command == "search":
        return await source.search(args.query, args.page)
    if args.command == "detail":
        return await source.get_detail(args.url)
    if args.command == "chapters":
        return await source.get_chapter_list(args.url)
    return await source.get_chapter_content(args.url)


def to_json_ready(result):
    if isinstance(result, list):
        return [item.model_dump(mode="json", by_alias=True) for item in result]
    return result.model_dump(mode="json", by_alias=True)


def main():
    args = build_parser().parse_args()

    # Logs share stdout with the JSON, so keep them quiet unless asked
    level_name = "DEBUG" if args.verbose else os.getenv("ALLNOVEL_LOG_LEVEL", "WARNING")
    setup_logger(level=getattr(logging, level_name.upper(), logging.WARNING))

    source = AllNovelSource(config=SourceConfig.from_env(base_url=args.base_url))

    try:
        output = {
            "command": args.command,
            "status": "success",
            "result": to_json_ready(asyncio.run(run(source, args))),
        }
    except SourceExhaustedError as e:
        output = {"command": args.command, "status": "error", **e.to_response()}
    except AllNovelError as e:
        output = {"command": args.command, "status": "error", "error": e.message}

    # ensure_ascii=False preserves unicode titles
    text = json.dumps(output, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Saved to: {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    main()
