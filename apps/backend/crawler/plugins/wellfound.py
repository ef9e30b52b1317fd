"""
Wellfound-specific extraction plugin.

Wellfound groups openings by startup: each `StartupResult` card has a
company header (name, pitch, size, hiring status) followed by one row per
open position. Every position row is a listing element of its own so a
malformed row never drops its siblings; company details come from the
enclosing card.
"""
import re
import logging
from typing import List, Dict, Iterable, Optional

from bs4 import BeautifulSoup, Tag

from core.errors import ExtractionElementError

from .base import ExtractionPlugin

logger = logging.getLogger(__name__)

CARD_ATTRS = {'data-test': 'StartupResult'}
JOB_ROW_SELECTOR = '.min-h-\\[50px\\].items-end.justify-between'
COMPANY_SIZE_PATTERN = re.compile(r'(\d+\s*[-–]\s*\d+|\d+\+)\s*Employees', re.IGNORECASE)
JOB_ID_PATTERN = re.compile(r'/jobs/(\d+)-')
LOCATION_CUES = ('Remote', '•', 'United States', 'Everywhere')
EXPERIENCE_CUES = ('years', 'exp')


class WellfoundPlugin(ExtractionPlugin):
    """Plugin for wellfound.com role listing pages"""

    DEFAULT_JOB_TYPE = 'Full-time'

    def __init__(self):
        super().__init__(name='wellfound', source_tag='wellfound.com', origin='https://wellfound.com')

    def find_listings(self, soup: BeautifulSoup) -> Iterable[Tag]:
        return soup.select(JOB_ROW_SELECTOR)

    def _company_details(self, card: Tag) -> Dict:
        details = {'company': 'Unknown Company', 'company_url': '', 'description': '',
                   'company_size': '', 'company_status': ''}
        header = card.select_one('[data-testid="startup-header"]')
        if header is not None:
            company_link = header.select_one('a[href^="/company/"]')
            if company_link is not None:
                details['company'] = self.clean_text(company_link.select_one('h2')) or details['company']
                details['company_url'] = self.absolute_url(company_link.get('href'))
            if header.parent is not None:
                details['description'] = self.clean_text(
                    header.parent.select_one('span.text-xs.text-neutral-1000')
                )

        size_text = self.clean_text(card.select_one('span.text-xs.italic.text-neutral-500'))
        size_match = COMPANY_SIZE_PATTERN.search(size_text)
        if size_match:
            details['company_size'] = re.sub(r'\s+', '', size_match.group(1))

        details['company_status'] = self.clean_text(card.select_one('.text-pop-green'))
        return details

    def _first_span_with(self, row: Tag, cues) -> Optional[str]:
        for span in row.select('span.pl-1.text-xs'):
            text = self.clean_text(span)
            if any(cue in text for cue in cues):
                return text
        return None

    def extract_listing(self, element: Tag) -> List[Dict]:
        title_el = element.select_one('a.text-sm.font-semibold.text-brand-burgandy')
        title = self.clean_text(title_el)
        if not title:
            return []

        card = element.find_parent(attrs=CARD_ATTRS)
        if card is None:
            raise ExtractionElementError(f"Job row {title!r} is outside a startup card")
        company = self._company_details(card)

        job_path = (title_el.get('href') if title_el else None) or ''
        job_id_match = JOB_ID_PATTERN.search(job_path)
        job_type = self.clean_text(
            element.select_one('.whitespace-nowrap.rounded-lg.bg-accent-yellow-100')
        ) or self.DEFAULT_JOB_TYPE

        description = company['description']
        skills = self.resolve_skills([], title, description)

        job = {
            'job_id': job_id_match.group(1) if job_id_match else None,
            'title': title,
            'company': company['company'],
            'location': self._first_span_with(element, LOCATION_CUES) or 'Not specified',
            'job_type': job_type,
            'job_types': [job_type],
            'experience': self._first_span_with(element, EXPERIENCE_CUES),
            'description': description,
            'posted_date': self.clean_text(element.select_one('.text-xs.lowercase.text-dark-a')),
            'source_url': self.absolute_url(job_path),
            'company_url': company['company_url'],
            'company_size': company['company_size'],
            'company_status': company['company_status'],
            'company_rating': None,
            'requirements': [],
            'skills': skills,
            'source': self.source_tag,
        }
        self.logger.debug(f"Found job: {title} at {company['company']}")
        return [job]
