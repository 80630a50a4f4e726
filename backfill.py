"""
Tangoroid: Collection backfill
------------------------------

Fills in missing examples, images and pronunciation for one owner's words.

Usage:
    python backfill.py <owner_id> [--job examples|images|audio|all] [--db PATH]
"""

import argparse
import asyncio
import sys

from tangoroid.config import Config
from tangoroid.errors import TangoroidError
from tangoroid.fetchers import FetcherRegistry
from tangoroid.services import BackfillService, SQLiteRepository, StaticIdentity, VocabularyService
from tangoroid.utils import setup_logger

JOBS = ("examples", "images", "audio", "all")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill enrichment data for a user's vocabulary.")
    parser.add_argument("owner_id", help="Owner whose collection is scanned")
    parser.add_argument("--job", choices=JOBS, default="all", help="Which backfill to run")
    parser.add_argument("--db", default=Config.DB_PATH, help="SQLite database path")
    parser.add_argument("--dictionary", default=None, help="Dictionary provider name")
    parser.add_argument("--images", default=None, help="Image provider name")
    return parser.parse_args(argv)


async def main(argv=None) -> bool:
    """Main entry point."""
    args = parse_args(argv)
    logger = setup_logger()
    
    service = VocabularyService(SQLiteRepository(args.db), StaticIdentity(args.owner_id))
    dictionary = FetcherRegistry.get_dictionary(args.dictionary)
    image_search = FetcherRegistry.get_image_search(args.images)
    
    try:
        async with dictionary, image_search:
            await service.load()
            logger.info("Signed in as %s: %d word(s)", args.owner_id, service.count)
            
            jobs = BackfillService(
                service,
                dictionary=dictionary,
                image_search=image_search,
                timeout=Config.LOOKUP_TIMEOUT,
            )
            
            if args.job == "all":
                results = await jobs.run_all()
            elif args.job == "examples":
                results = {"examples": await jobs.backfill_examples()}
            elif args.job == "images":
                results = {"images": await jobs.backfill_images()}
            else:
                results = {"audio": await jobs.backfill_audio()}
        
        for name, tally in results.items():
            print(f"{name}: {tally.processed} processed, {tally.updated} updated, "
                  f"{tally.skipped} skipped, {tally.failed} failed")
        return True
    
    except TangoroidError as e:
        logger.error("Backfill failed: %s", e)
        return False


def cli() -> None:
    """Console script entry point."""
    try:
        success = asyncio.run(main())
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n[!] Aborted by user.")
        sys.exit(1)


if __name__ == "__main__":
    cli()
