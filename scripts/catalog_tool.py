#!/usr/bin/env python3
import argparse
import asyncio
import json
import os
import sys
import time
from typing import Any, Dict

from dotenv import load_dotenv


def _duration_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _write_json(path: str, document: Dict[str, Any]) -> None:
    output_dir = os.path.dirname(path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(document, handle, ensure_ascii=False)


async def download(config) -> int:
    from gamevault_app.catalog import CatalogStore  # pylint: disable=import-outside-toplevel
    from sources import SteamClient  # pylint: disable=import-outside-toplevel

    client = SteamClient(
        language=config.steam_language,
        country_code=config.steam_country_code,
        catalog_timeout=config.catalog_timeout
    )
    store = CatalogStore(client, config)
    start = time.time()
    try:
        cache = await store.refresh_now()
    finally:
        await client.close()

    if cache is None:
        print("All catalog sources failed", file=sys.stderr)
        return 1

    print(f"Downloaded {len(cache.entries)} apps from {cache.source.value} "
          f"in {_duration_ms(start)}ms -> {config.catalog_path}")
    return 0


def convert(config, input_path: str, output_path: str) -> int:
    from gamevault_app.catalog import CatalogSource, build_disk_document, parse_catalog_payload  # pylint: disable=import-outside-toplevel
    from gamevault_app.catalog.models import utc_now  # pylint: disable=import-outside-toplevel
    from sources import MalformedResponse  # pylint: disable=import-outside-toplevel

    try:
        entries = parse_catalog_payload(_read_json(input_path))
    except (OSError, ValueError, MalformedResponse) as exc:
        print(f"Cannot convert {input_path}: {exc}", file=sys.stderr)
        return 1

    if not entries:
        print(f"No valid apps found in {input_path}", file=sys.stderr)
        return 1

    output_path = output_path or config.catalog_path
    _write_json(output_path, build_disk_document(entries, CatalogSource.MANUAL, utc_now()))
    print(f"Converted {len(entries)} apps -> {output_path}")
    return 0


def status(config) -> int:
    from gamevault_app.catalog.parsing import parse_downloaded_at  # pylint: disable=import-outside-toplevel

    path = config.catalog_path
    if not os.path.exists(path):
        print(f"No catalog file at {path}")
        return 1

    try:
        document = _read_json(path)
    except (OSError, ValueError) as exc:
        print(f"Catalog file {path} is unreadable: {exc}", file=sys.stderr)
        return 1

    downloaded_at = parse_downloaded_at(document.get("downloadedAt")) if isinstance(document, dict) else None
    report = {
        "path": path,
        "source": document.get("source") if isinstance(document, dict) else None,
        "downloadedAt": downloaded_at.isoformat() if downloaded_at else None,
        "ageDays": round((time.time() - downloaded_at.timestamp()) / 86400, 1) if downloaded_at else None,
        "appCount": document.get("appCount") if isinstance(document, dict) else None,
        "sizeBytes": os.path.getsize(path),
    }
    print(json.dumps(report, indent=2))
    return 0


async def search(config, query: str, page: int, page_size: int) -> int:
    from gamevault_app import create_search_service  # pylint: disable=import-outside-toplevel

    service = create_search_service(config)
    try:
        result = await service.search_games(query, page, page_size)
    finally:
        await service.close()

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0 if result["success"] else 1


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the local Steam catalog cache.")
    parser.add_argument("--env", default=".env", help="Path to .env file with engine settings.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("download", help="Fetch the catalog from the remote source chain.")

    convert_parser = subparsers.add_parser("convert", help="Convert a hand-downloaded app list.")
    convert_parser.add_argument("input", help="Raw app list JSON (any supported shape).")
    convert_parser.add_argument("--output", default="", help="Target path (default: configured catalog path).")

    subparsers.add_parser("status", help="Show provenance of the on-disk catalog.")

    search_parser = subparsers.add_parser("search", help="Run one search and print the JSON result.")
    search_parser.add_argument("query", help="Search query.")
    search_parser.add_argument("--page", type=int, default=1)
    search_parser.add_argument("--page-size", type=int, default=20)
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    load_dotenv(args.env)

    sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

    from gamevault_app.config import EngineConfig  # pylint: disable=import-outside-toplevel

    config = EngineConfig.from_env()

    if args.command == "download":
        return asyncio.run(download(config))
    if args.command == "convert":
        return convert(config, args.input, args.output)
    if args.command == "status":
        return status(config)
    return asyncio.run(search(config, args.query, args.page, args.page_size))


if __name__ == "__main__":
    raise SystemExit(main())
