"""
RemoteOK-specific extraction plugin.

Job rows are `tr.job` elements of the jobs board table. Every listing is
remote and full-time; the skill tags double as the description.
"""
import logging
from typing import List, Dict, Iterable

from bs4 import BeautifulSoup, Tag

from .base import ExtractionPlugin

logger = logging.getLogger(__name__)


class RemoteOKPlugin(ExtractionPlugin):
    """Plugin for remoteok.io job board pages"""

    JOB_TYPE = 'Full-time'
    LOCATION = 'Remote'

    def __init__(self):
        super().__init__(name='remoteok', source_tag='remoteok.io', origin='https://remoteok.io')

    def find_listings(self, soup: BeautifulSoup) -> Iterable[Tag]:
        return soup.select('tr.job')

    def extract_listing(self, element: Tag) -> List[Dict]:
        title = self.clean_text(element.select_one('.company h2'))
        if not title:
            return []

        company = self.clean_text(element.select_one('.company h3')) or 'Remote Company'
        tags = self.collect_tags(element.select('.tags .tag'))
        description = ', '.join(tags)
        skills = self.resolve_skills(tags, title, description)

        link_el = element.select_one('a.preventLink')
        job_path = (link_el.get('href') if link_el else None) or ''
        job_id = element.get('data-id') or (job_path.rstrip('/').split('/')[-1] if job_path else None)

        posted_date = self.attr_or_text(element.select_one('.time time'), 'datetime') or ''

        job = {
            'job_id': job_id or None,
            'title': title,
            'company': company,
            'location': self.LOCATION,
            'job_type': self.JOB_TYPE,
            'job_types': [self.JOB_TYPE],
            'experience': None,
            'description': description,
            'summary': f"{title} at {company} - Remote position",
            'posted_date': posted_date,
            'source_url': self.absolute_url(job_path),
            'company_url': '',
            'company_size': '',
            'company_status': '',
            'company_rating': None,
            'requirements': skills,
            'skills': skills,
            'source': self.source_tag,
        }
        self.logger.debug(f"Found job: {title} at {company}")
        return [job]
