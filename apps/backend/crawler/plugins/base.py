"""
Base plugin interface for job extraction.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Iterable
from urllib.parse import urlparse, urljoin

from bs4 import BeautifulSoup, Tag

from core.lexicon import EXTRACTION_SKILL_KEYWORDS, match_keywords

logger = logging.getLogger(__name__)


class PluginResult:
    """Result from plugin extraction"""
    def __init__(
        self,
        jobs: List[Dict],
        message: Optional[str] = None,
        metadata: Optional[Dict] = None
    ):
        self.jobs = jobs
        self.message = message
        self.metadata = metadata or {}

    def is_success(self) -> bool:
        """Check if extraction produced any jobs"""
        return len(self.jobs) > 0

    @property
    def skipped(self) -> int:
        return self.metadata.get('skipped', 0)

    def __repr__(self):
        return f"PluginResult(jobs={len(self.jobs)}, skipped={self.skipped})"


class ExtractionPlugin(ABC):
    """
    Base class for source-specific extraction plugins.

    Each plugin:
    1. Finds the listing elements of its source layout (find_listings)
    2. Turns one listing element into raw job records (extract_listing)

    A listing element that fails to parse is logged and skipped; its
    siblings are still extracted.
    """

    def __init__(self, name: str, source_tag: str, origin: str):
        """
        Initialize plugin.

        Args:
            name: Source identifier (e.g., 'naukri', 'remoteok')
            source_tag: Provenance tag stored on each record (e.g., 'naukri.com')
            origin: Scheme and host used to absolutize relative links
        """
        self.name = name
        self.source_tag = source_tag
        self.origin = origin
        self.logger = logging.getLogger(f"{__name__}.{name}")

    def can_handle(self, url: str) -> bool:
        """Check if a URL belongs to this plugin's site"""
        host = urlparse(url).netloc.lower().replace('www.', '')
        origin_host = urlparse(self.origin).netloc.lower().replace('www.', '')
        return bool(host) and (host == origin_host or host.endswith('.' + origin_host))

    @abstractmethod
    def find_listings(self, soup: BeautifulSoup) -> Iterable[Tag]:
        """Return the listing elements of a page, in document order."""

    @abstractmethod
    def extract_listing(self, element: Tag) -> List[Dict]:
        """
        Extract raw job records from one listing element.

        Returns an empty list when the element holds no usable listing (e.g.
        no title). May raise; the caller skips the element.
        """

    def extract(self, html: str, base_url: Optional[str] = None) -> PluginResult:
        """
        Extract job listings from a page snapshot.

        Args:
            html: Rendered HTML content
            base_url: Page URL, for logging

        Returns:
            PluginResult with extracted jobs and the number of skipped elements
        """
        soup = self.get_soup(html)
        jobs: List[Dict] = []
        skipped = 0
        listings = list(self.find_listings(soup))

        for index, element in enumerate(listings):
            try:
                records = self.extract_listing(element)
            except Exception as e:
                skipped += 1
                self.logger.warning(f"Error extracting job {index}: {e}")
                continue
            jobs.extend(records)

        self.logger.info(
            f"Found {len(jobs)} jobs in {len(listings)} listing elements"
            + (f" on {base_url}" if base_url else "")
            + (f" ({skipped} skipped)" if skipped else "")
        )

        return PluginResult(
            jobs=jobs,
            message=f"Extracted {len(jobs)} {self.name} jobs" if jobs else "No jobs extracted",
            metadata={'listings': len(listings), 'skipped': skipped}
        )

    def get_soup(self, html: str) -> BeautifulSoup:
        """Helper to create BeautifulSoup instance"""
        return BeautifulSoup(html or '', 'lxml')

    def absolute_url(self, href: Optional[str]) -> str:
        """Rewrite a relative link against the source origin. Missing links give ''."""
        if not href:
            return ''
        href = href.strip()
        if href.startswith('http://') or href.startswith('https://'):
            return href
        return urljoin(self.origin + '/', href)

    @staticmethod
    def clean_text(element: Optional[Tag]) -> str:
        """Whitespace-collapsed text of an element ('' when missing)."""
        if element is None:
            return ''
        return ' '.join(element.get_text(' ', strip=True).split())

    @staticmethod
    def attr_or_text(element: Optional[Tag], attr: str) -> Optional[str]:
        """Primary read from an attribute, falling back to the element text."""
        if element is None:
            return None
        value = element.get(attr)
        if isinstance(value, list):
            value = ' '.join(value)
        if value and value.strip():
            return value.strip()
        return ExtractionPlugin.clean_text(element) or None

    @staticmethod
    def collect_tags(elements: Iterable[Tag]) -> List[str]:
        tags = []
        for el in elements:
            text = ExtractionPlugin.clean_text(el)
            if text and text not in tags:
                tags.append(text)
        return tags

    @staticmethod
    def resolve_skills(tags: List[str], title: str, description: str) -> List[str]:
        """
        Explicit skill tags are authoritative; without tags, infer skills by
        scanning title and description for known technology keywords.
        """
        if tags:
            return list(tags)
        return match_keywords(f"{title} {description}", EXTRACTION_SKILL_KEYWORDS)

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name}, origin={self.origin})>"
