"""
Run configuration for the scraper.

Timing knobs, browser mode and debug output locations, read from the environment.
"""

import os
import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def _parse_range(name: str, default: str) -> Tuple[float, float]:
    """Parse a 'low,high' float pair from an environment variable."""
    raw = os.getenv(name, default)
    try:
        low, high = (float(part) for part in raw.split(','))
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        low, high = (float(part) for part in default.split(','))
    if low > high:
        low, high = high, low
    return low, high


def _parse_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return float(default)


class ScrapeConfig:
    """Scraper settings with environment overrides."""

    def __init__(self):
        self.headless = os.getenv('HEADLESS', 'true').lower() != 'false'
        self.navigation_timeout_ms = int(os.getenv('SCRAPER_NAV_TIMEOUT_MS', '30000'))
        self.pre_navigation_delay = _parse_range('SCRAPER_PRE_NAV_DELAY', '1.0,3.0')
        self.recovery_delay = _parse_range('SCRAPER_RECOVERY_DELAY', '5.0,10.0')
        self.page_delay = _parse_range('SCRAPER_PAGE_DELAY', '4.0,10.0')
        self.behavior_pause = _parse_range('SCRAPER_BEHAVIOR_PAUSE', '0.5,1.5')
        self.write_delay = _parse_float('SCRAPER_WRITE_DELAY', '0.1')

        low, high = _parse_range('SCRAPER_PAGE_RANGE', '2,100')
        self.page_range = (int(low), int(high))

        self.debug_dir = os.getenv('SCRAPER_DEBUG_DIR', 'debug')
        self.save_snapshots = os.getenv('SCRAPER_SAVE_SNAPSHOTS', 'false').lower() == 'true'

        self.viewport = {'width': 1366, 'height': 768}

        logger.info(
            f"ScrapeConfig: headless={self.headless}, nav_timeout={self.navigation_timeout_ms}ms, "
            f"page_range={self.page_range}, page_delay={self.page_delay}, snapshots={self.save_snapshots}"
        )


# Singleton instance
_scrape_config: Optional[ScrapeConfig] = None


def get_scrape_config() -> ScrapeConfig:
    """Get singleton scrape config instance."""
    global _scrape_config
    if _scrape_config is None:
        _scrape_config = ScrapeConfig()
    return _scrape_config
