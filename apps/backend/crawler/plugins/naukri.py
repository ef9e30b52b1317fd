"""
Naukri-specific extraction plugin.

Each search result is a `.srp-jobtuple-wrapper` tuple carrying the job id as
a data attribute, a title link, company link, optional rating, experience,
location, description snippet, posting age and skill tags.
"""
import re
import logging
from typing import List, Dict, Iterable, Optional

from bs4 import BeautifulSoup, Tag

from .base import ExtractionPlugin

logger = logging.getLogger(__name__)

RATING_PATTERN = re.compile(r'\d+(?:\.\d+)?')


class NaukriPlugin(ExtractionPlugin):
    """Plugin for naukri.com search result pages"""

    JOB_TYPE = 'Full-time'

    def __init__(self):
        super().__init__(name='naukri', source_tag='naukri.com', origin='https://www.naukri.com')

    def find_listings(self, soup: BeautifulSoup) -> Iterable[Tag]:
        return soup.select('.srp-jobtuple-wrapper')

    def _parse_rating(self, element: Optional[Tag]) -> Optional[float]:
        text = self.clean_text(element)
        match = RATING_PATTERN.search(text)
        return float(match.group(0)) if match else None

    def extract_listing(self, element: Tag) -> List[Dict]:
        title_el = element.select_one('.title')
        title = self.clean_text(title_el)
        if not title:
            return []

        company_el = element.select_one('.comp-name')
        company = self.clean_text(company_el) or 'Unknown Company'

        description = self.clean_text(element.select_one('.job-desc'))
        experience = self.attr_or_text(element.select_one('.expwdth'), 'title')
        location = self.attr_or_text(element.select_one('.locWdth'), 'title') or 'Not specified'
        posted_date = self.clean_text(element.select_one('.job-post-day'))

        logo_el = element.select_one('.logoImage')
        tags = self.collect_tags(element.select('.tags-gt .tag-li'))
        skills = self.resolve_skills(tags, title, description)

        job = {
            'job_id': element.get('data-job-id') or None,
            'title': title,
            'company': company,
            'location': location,
            'job_type': self.JOB_TYPE,
            'job_types': [self.JOB_TYPE],
            'experience': experience,
            'description': description,
            'posted_date': posted_date,
            'source_url': self.absolute_url(title_el.get('href') if title_el else None),
            'company_url': self.absolute_url(company_el.get('href') if company_el else None),
            'company_logo': (logo_el.get('src') if logo_el else None) or '',
            'company_rating': self._parse_rating(element.select_one('.rating .main-2')),
            'company_size': '',
            'company_status': '',
            'requirements': skills,
            'skills': skills,
            'source': self.source_tag,
        }
        self.logger.debug(f"Found job: {title} at {company}")
        return [job]
