"""
Per-source configuration loader.

Built-in defaults for every supported listing site, merged with overrides
from config/sources.yaml (or the file named by SCRAPER_SOURCES_FILE).
"""
import os
import copy
import yaml
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SELECTOR_TIMEOUT_MS = 8000

# Readiness selectors are ordered: most specific / current layout first,
# most generic fallback last.
DEFAULT_SOURCES = {
    'naukri': {
        'source_tag': 'naukri.com',
        'origin': 'https://www.naukri.com',
        'default_url': 'https://www.naukri.com/software-engineer-jobs?k=software+engineer',
        'readiness_selectors': [
            '.styles_job-listing-container__OCfZC',
            '.srp-jobtuple-wrapper',
            '.cust-job-tuple',
            '#listContainer',
            '.styles_jlc__main__VdwtF',
        ],
        'selector_timeout_ms': DEFAULT_SELECTOR_TIMEOUT_MS,
        'block_markers': ['Access blocked', 'unusual activity'],
    },
    'remoteok': {
        'source_tag': 'remoteok.io',
        'origin': 'https://remoteok.io',
        'default_url': 'https://remoteok.io/remote-dev-jobs?page={page}',
        'readiness_selectors': [
            'table#jobsboard tr.job',
            'tr.job',
            'table#jobsboard',
        ],
        'selector_timeout_ms': DEFAULT_SELECTOR_TIMEOUT_MS,
        'block_markers': ['Access denied', 'unusual activity', 'Checking your browser'],
    },
    'wellfound': {
        'source_tag': 'wellfound.com',
        'origin': 'https://wellfound.com',
        'default_url': 'https://wellfound.com/role/software-engineer?page={page}',
        'readiness_selectors': [
            '[data-test="StartupResult"]',
            '[data-testid="startup-header"]',
            'main',
        ],
        'selector_timeout_ms': DEFAULT_SELECTOR_TIMEOUT_MS,
        'block_markers': ['Access denied', 'unusual activity', 'Please verify you are a human'],
    },
}


@dataclass
class SourceConfig:
    """Settings for one listing site"""
    source_id: str
    source_tag: str
    origin: str
    default_url: str
    readiness_selectors: List[str]
    selector_timeout_ms: int = DEFAULT_SELECTOR_TIMEOUT_MS
    block_markers: List[str] = field(default_factory=list)

    def selector_timeouts(self) -> List[Tuple[str, int]]:
        """Readiness selectors paired with their timeouts, in race order."""
        return [(selector, self.selector_timeout_ms) for selector in self.readiness_selectors]


# Cache for loaded overrides
_overrides_cache: Optional[Dict] = None


def load_source_overrides() -> Dict:
    """Load source overrides from the YAML file, if present."""
    global _overrides_cache

    if _overrides_cache is not None:
        return _overrides_cache

    config_path = Path(os.getenv(
        'SCRAPER_SOURCES_FILE',
        Path(__file__).parent.parent / 'config' / 'sources.yaml'
    ))

    if not config_path.exists():
        logger.debug(f"Source config file not found: {config_path}. Using defaults.")
        _overrides_cache = {}
        return _overrides_cache

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
        _overrides_cache = loaded.get('sources', loaded) if isinstance(loaded, dict) else {}
        logger.info(f"Loaded source config from {config_path}")
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading source config: {e}")
        _overrides_cache = {}

    return _overrides_cache


def get_source_config(source_id: str) -> SourceConfig:
    """
    Get configuration for a source, defaults merged with file overrides.

    Raises:
        KeyError: if the source is not supported
    """
    if source_id not in DEFAULT_SOURCES:
        raise KeyError(f"Unknown source: {source_id}")

    merged = copy.deepcopy(DEFAULT_SOURCES[source_id])
    overrides = load_source_overrides().get(source_id) or {}
    for key, value in overrides.items():
        if key not in merged:
            logger.warning(f"Ignoring unknown setting {key!r} for source {source_id}")
            continue
        merged[key] = value

    return SourceConfig(source_id=source_id, **merged)


def list_sources() -> List[str]:
    return list(DEFAULT_SOURCES)
