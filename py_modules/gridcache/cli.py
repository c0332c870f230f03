#!/usr/bin/env python3
"""
steam-art-cache command line.

Look up SteamGridDB artwork for a library entry the same way the art manager
does, optionally downloading it into the disk cache.

Run with: steam-art-cache --help
"""

import argparse
import asyncio
import logging
import sys

from .errors import ArtCacheError
from .models import ArtCategory, Platform
from .services.cache_controller import CacheController
from .settings import load_settings
from .state import AppState
from .utils.paths import get_grids_cache_dir

logger = logging.getLogger("steam-art-cache")

CATEGORY_CHOICES = {category.name.lower().replace("_", "-"): category for category in ArtCategory}


async def run_fetch(args, settings) -> int:
    state = AppState()
    if args.api_key:
        state.api_key.set(args.api_key)
    state.current_platform.set(Platform.NON_STEAM if args.non_steam else Platform.STEAM)
    state.selected_game_name.set(args.name)
    state.grid_type.set(CATEGORY_CHOICES[args.category])

    # Downloads are the point of --download; keep them on disk afterwards
    settings.clear_cache_on_exit = False
    controller = CacheController(state, settings)
    await controller.init()
    try:
        grids = await controller.fetch_grids(args.app_id, args.page, args.game_id)
        if not grids:
            logger.info(f"No artwork found for {args.name}")
            return 0

        logger.info(f"SteamGridDB game {state.active_grid_game_id.get()}: {len(grids)} images")
        for image in grids:
            line = f"{image.id}\t{image.url}"
            if args.download:
                path = await controller.get_grid_image(args.app_id, image.url)
                line += f"\t{path}"
            print(line)
        return 0
    finally:
        await controller.teardown()


async def run_clear(settings) -> int:
    state = AppState()
    settings.clear_cache_on_exit = True
    controller = CacheController(state, settings)
    await controller.teardown()
    logger.info(f"Cleared {get_grids_cache_dir(settings.cache_dir)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cached SteamGridDB artwork lookups")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose logging")
    parser.add_argument("--cache-dir",
                        help="Grid cache directory (overrides settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="List artwork for a library entry")
    fetch.add_argument("app_id", type=int, help="Steam app id or shortcut id")
    fetch.add_argument("name", help="Display name of the entry")
    fetch.add_argument("--category", choices=sorted(CATEGORY_CHOICES), default="capsule")
    fetch.add_argument("--page", type=int, default=0)
    fetch.add_argument("--non-steam", action="store_true",
                       help="Entry is a non-Steam shortcut (name search only)")
    fetch.add_argument("--game-id", help="Use this SteamGridDB game instead of matching")
    fetch.add_argument("--download", action="store_true",
                       help="Download images into the cache and print their paths")
    fetch.add_argument("--api-key", help="SteamGridDB API key (overrides settings)")

    sub.add_parser("clear", help="Delete the disk cache")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[%(asctime)s] %(levelname)s - %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    settings = load_settings()
    if args.cache_dir:
        settings.cache_dir = args.cache_dir

    try:
        if args.command == "fetch":
            return asyncio.run(run_fetch(args, settings))
        return asyncio.run(run_clear(settings))
    except ArtCacheError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
