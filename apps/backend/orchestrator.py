"""
Scrape run orchestrator with random page sampling
"""
import re
import random
import asyncio
import logging
from typing import Dict, List, Optional

from core.errors import SessionError
from core.scrape_config import ScrapeConfig, get_scrape_config
from core.source_config import get_source_config
from crawler.browser_crawler import BrowserSession, NavigationOutcome, PageStatus
from crawler.plugins import PluginRegistry, get_plugin_registry
from pipeline.db_insert import JobStore
from pipeline.snapshot import SnapshotManager

logger = logging.getLogger(__name__)

PAGE_PLACEHOLDER = '{page}'
PAGE_SUFFIX_PATTERN = re.compile(r'-\d+$')


def select_random_pages(count: int, low: int = 2, high: int = 100, rng=None) -> List[int]:
    """
    Pick page numbers uniformly at random from [low, high] without replacement.

    Raises:
        ValueError: if count is negative or larger than the range
    """
    size = high - low + 1
    if count < 0 or count > size:
        raise ValueError(f"Cannot select {count} distinct pages from range {low}-{high}")
    rng = rng or random
    return rng.sample(range(low, high + 1), count)


def build_page_url(base_url: str, page_number: int) -> str:
    """
    Build the listing URL for a page number.

    URLs containing '{page}' are filled in. Otherwise the number is appended to
    the path as '-<n>' (replacing an existing '-<digits>' suffix), before any
    query string: /software-engineer-jobs?k=x -> /software-engineer-jobs-7?k=x
    """
    if PAGE_PLACEHOLDER in base_url:
        return base_url.replace(PAGE_PLACEHOLDER, str(page_number))

    base, sep, query = base_url.partition('?')
    base = PAGE_SUFFIX_PATTERN.sub('', base)
    return f"{base}-{page_number}{sep}{query}"


def _new_summary(pages_requested: int) -> Dict:
    return {
        'pages_requested': pages_requested,
        'pages_scraped': 0,
        'pages_loaded': 0,
        'pages_blocked': 0,
        'pages_failed': 0,
        'pages_used': [],
        'jobs_found': 0,
        'saved': 0,
        'duplicates': 0,
        'errors': 0,
    }


class ScrapeOrchestrator:
    """Runs one sequential scrape over randomly selected listing pages"""

    def __init__(
        self,
        session: BrowserSession,
        store: JobStore,
        source_id: str,
        registry: Optional[PluginRegistry] = None,
        config: Optional[ScrapeConfig] = None,
        snapshot_manager: Optional[SnapshotManager] = None,
        rng=None
    ):
        self.session = session
        self.store = store
        self.source_id = source_id
        self.registry = registry or get_plugin_registry()
        self.config = config or get_scrape_config()
        self.snapshot_manager = snapshot_manager
        self.rng = rng
        self.summary = _new_summary(0)

    def _count_outcome(self, outcome: NavigationOutcome):
        self.summary['pages_scraped'] += 1
        if outcome.status == PageStatus.LOADED:
            self.summary['pages_loaded'] += 1
        elif outcome.status == PageStatus.BLOCKED:
            self.summary['pages_blocked'] += 1
        else:
            self.summary['pages_failed'] += 1

    async def scrape_page(self, url: str, page_number: int) -> List[Dict]:
        """
        Navigate to one listing page and extract its raw job records.

        Blocked and failed pages give an empty list.
        """
        logger.info(f"[orchestrator] Scraping page {page_number}: {url}")
        outcome = await self.session.navigate(url)
        self._count_outcome(outcome)

        if not outcome.is_loaded:
            logger.warning(
                f"[orchestrator] Skipping page {page_number}: {outcome.status.value} ({outcome.reason})"
            )
            return []

        snapshot = outcome.snapshot
        result = self.registry.extract(snapshot.html, self.source_id, base_url=url)
        if not result.is_success():
            logger.warning(f"[orchestrator] No jobs extracted from page {page_number}: {result.message or 'empty page'}")

        if self.snapshot_manager is not None:
            self.snapshot_manager.save_snapshot(snapshot, {
                'source': self.source_id,
                'page_number': page_number,
                'jobs': len(result.jobs),
                'skipped': result.skipped,
                'recovered': outcome.recovered,
            })

        if outcome.recovered:
            logger.info(f"[orchestrator] Page {page_number} loaded after block recovery")
        return result.jobs

    def _persist(self, jobs: List[Dict]):
        report = self.store.save_jobs(jobs)
        self.summary['saved'] += report['saved']
        self.summary['duplicates'] += report['duplicates']
        self.summary['errors'] += report['errors']

    async def run(self, base_url: str, target_pages: int) -> Dict:
        """
        Scrape target_pages randomly chosen pages, saving each page's records
        before navigating to the next one.

        Returns:
            Run summary with page and record counts
        """
        low, high = self.config.page_range
        pages = select_random_pages(target_pages, low, high, rng=self.rng)
        self.summary = _new_summary(target_pages)

        logger.info(f"[orchestrator] Target: scrape {target_pages} random pages from {self.source_id} (pages {low}-{high})")

        for position, page_number in enumerate(pages, start=1):
            url = build_page_url(base_url, page_number)
            self.summary['pages_used'].append(page_number)
            logger.info(f"[orchestrator] Randomly selected page {page_number} ({position}/{target_pages})")

            try:
                jobs = await self.scrape_page(url, page_number)
            except SessionError:
                raise
            except Exception as e:
                logger.error(f"[orchestrator] Error scraping page {page_number}: {e}", exc_info=True)
                self.summary['pages_scraped'] += 1
                self.summary['pages_failed'] += 1
                jobs = []

            if jobs:
                self.summary['jobs_found'] += len(jobs)
                self._persist(jobs)
            else:
                logger.warning(f"[orchestrator] No jobs found on page {page_number}, continuing...")

            if position < len(pages):
                delay = random.uniform(*self.config.page_delay)
                logger.info(f"[orchestrator] Waiting {delay:.1f}s before next page...")
                await asyncio.sleep(delay)

        summary = self.summary
        logger.info(
            f"[orchestrator] Run complete: pages={summary['pages_scraped']} "
            f"(loaded={summary['pages_loaded']}, blocked={summary['pages_blocked']}, "
            f"failed={summary['pages_failed']}), jobs={summary['jobs_found']}, "
            f"saved={summary['saved']}, duplicates={summary['duplicates']}, errors={summary['errors']}, "
            f"pages used: {', '.join(str(p) for p in sorted(summary['pages_used']))}"
        )
        return summary


async def run_scrape(
    base_url: Optional[str],
    target_pages: int,
    source_id: str,
    db_url: Optional[str] = None
) -> Dict:
    """
    Open the store and browser session, run the scrape and always release both.

    Raises:
        StoreError: if the store connection cannot be opened
        SessionError: if the browser cannot be started
    """
    config = get_scrape_config()
    source = get_source_config(source_id)
    store = JobStore(db_url=db_url, write_delay=config.write_delay)
    session = BrowserSession(source, config)
    snapshot_manager = SnapshotManager() if config.save_snapshots else None

    try:
        store.connect()
        store.ensure_schema()
        store.ensure_indexes()
        await session.start()

        orchestrator = ScrapeOrchestrator(
            session,
            store,
            source_id,
            config=config,
            snapshot_manager=snapshot_manager
        )
        summary = await orchestrator.run(base_url or source.default_url, target_pages)
        summary['stats'] = store.get_job_stats()
        return summary
    finally:
        await session.close()
        store.close()
