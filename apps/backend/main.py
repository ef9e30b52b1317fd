"""
Command-line entry point: scrape random listing pages into the jobs table.

    python main.py --source naukri --pages 4
    python main.py --source remoteok --pages 2 --url "https://remoteok.io/remote-python-jobs?page={page}"
    python main.py --url "https://wellfound.com/role/r/software-engineer?page={page}"
    python main.py --stats
"""
import os
import sys
import asyncio
import logging
import argparse

from dotenv import load_dotenv

from core.errors import SessionError, StoreError
from core.source_config import list_sources
from crawler.plugins import get_plugin_registry
from orchestrator import run_scrape
from pipeline.db_insert import JobStore

load_dotenv()

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_SOURCE_ID = 'naukri'
RECENT_JOBS = 5


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Scrape job listings from random result pages')
    parser.add_argument('--source', choices=list_sources(),
                        help='Listing site to scrape (default: inferred from --url, else naukri)')
    parser.add_argument('--url', type=str, help='Search URL (default: the source default URL)')
    parser.add_argument('--pages', type=int, default=4, help='Number of random pages to scrape')
    parser.add_argument('--stats', action='store_true', help='Only print job statistics')
    return parser.parse_args(argv)


def resolve_source(source, url) -> str:
    """
    Pick the source id: an explicit --source wins, then the plugin whose site
    the --url belongs to, then the default source.
    """
    if source:
        return source
    if not url:
        return DEFAULT_SOURCE_ID
    plugin = get_plugin_registry().find_plugin(url)
    if plugin is None:
        raise ValueError(f"No source matches {url}; pass --source")
    return plugin.name


def print_stats(db_url=None) -> int:
    store = JobStore(db_url=db_url)
    try:
        store.connect()
        stats = store.get_job_stats()
        recent = store.get_recent_jobs(RECENT_JOBS) if stats is not None else []
    finally:
        store.close()

    if stats is None:
        logger.error("Could not read job statistics")
        return 1

    logger.info("Job statistics:")
    logger.info(f"  Total jobs: {stats['total']}")
    logger.info(f"  Scraped today: {stats['today_count']}")
    logger.info(f"  Companies: {stats['companies_count']}")
    logger.info(f"  Locations: {stats['locations_count']}")
    for row in stats['top_job_types']:
        logger.info(f"  {row['job_type']}: {row['count']}")
    if recent:
        logger.info("Recent jobs:")
    for job in recent:
        logger.info(f"  {job['title']} at {job['company']} ({job['location']}), scraped {job['scraped_at']}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        if args.stats:
            return print_stats()

        source = resolve_source(args.source, args.url)
        logger.info(f"Starting random {source} job scraping ({args.pages} pages)...")
        summary = asyncio.run(run_scrape(args.url, args.pages, source))
    except (SessionError, StoreError) as e:
        logger.error(f"Fatal error: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 2

    logger.info(
        f"Done: {summary['pages_loaded']}/{summary['pages_requested']} pages loaded, "
        f"{summary['jobs_found']} jobs found, {summary['saved']} saved, "
        f"{summary['duplicates']} duplicates, {summary['errors']} errors"
    )
    return 0


def cli():
    sys.exit(main())


if __name__ == '__main__':
    cli()
