"""
Normalization module for scraped job listings.

Turns a raw, source-shaped job record into the canonical job document:
- Whitespace sanitization of every free-text field
- Work mode and experience level classification from ordered keyword rules
- Skill inference against the fixed technology lexicon
- Completeness score and search keywords
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Any, Dict

from core.data_quality import calculate_data_quality
from core.errors import ValidationError
from core.lexicon import SKILL_LEXICON, match_keywords

logger = logging.getLogger(__name__)

NOT_SPECIFIED = 'Not specified'
DEFAULT_SOURCE = 'naukri.com'
SUMMARY_LENGTH = 100
MIN_KEYWORD_LENGTH = 3


class Normalizer:
    """
    Field-level normalization rules.

    Classification tables are ordered: the first group with a matching
    keyword wins, so earlier groups take precedence when a text carries
    several cues (e.g. "Senior Intern" is an internship).
    """

    WORK_MODE_RULES = (
        ('Remote', ('remote', 'work from home')),
        ('Hybrid', ('hybrid',)),
    )
    DEFAULT_WORK_MODE = 'On-site'

    EXPERIENCE_RULES = (
        ('Internship', ('intern', 'internship')),
        ('Entry Level', ('entry', 'junior', 'fresher', 'associate')),
        ('Senior Level', ('senior', 'lead', 'principal')),
        ('Management', ('manager', 'director', 'head of')),
    )
    DEFAULT_EXPERIENCE_LEVEL = 'Mid Level'

    @staticmethod
    def sanitize_string(value: Any) -> Optional[str]:
        """
        Trim and collapse whitespace runs.

        Returns None for non-strings and for strings that are empty after trimming.
        """
        if not isinstance(value, str):
            return None
        cleaned = ' '.join(value.split())
        return cleaned or None

    @staticmethod
    def sanitize_list(values: Any) -> List[str]:
        """Sanitize each item of a list, dropping empties. A bare string becomes a one-item list."""
        if values is None:
            return []
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, (list, tuple)):
            return []
        cleaned = (Normalizer.sanitize_string(v) for v in values)
        return [v for v in cleaned if v]

    @staticmethod
    def extract_work_mode(location: Optional[str], job_types: Optional[List[str]] = None) -> str:
        text = ' '.join([location or ''] + list(job_types or [])).lower()
        for mode, keywords in Normalizer.WORK_MODE_RULES:
            if any(kw in text for kw in keywords):
                return mode
        return Normalizer.DEFAULT_WORK_MODE

    @staticmethod
    def extract_experience_level(title: Optional[str], description: Optional[str] = None) -> str:
        text = f"{title or ''} {description or ''}".lower()
        for level, keywords in Normalizer.EXPERIENCE_RULES:
            if any(kw in text for kw in keywords):
                return level
        return Normalizer.DEFAULT_EXPERIENCE_LEVEL

    @staticmethod
    def extract_skills(*texts: Optional[str]) -> List[str]:
        """Lexicon terms found in the given texts, without duplicates."""
        combined = ' '.join(t for t in texts if t)
        return match_keywords(combined, SKILL_LEXICON)

    @staticmethod
    def generate_search_keywords(title: Optional[str], company: Optional[str],
                                 location: Optional[str]) -> List[str]:
        """
        Lowercase tokens (3+ chars) from title and location plus the full company name.
        """
        keywords: Dict[str, None] = {}

        for word in (title or '').lower().split():
            if len(word) >= MIN_KEYWORD_LENGTH:
                keywords[word] = None

        if company:
            keywords[company.lower()] = None

        for word in (location or '').lower().split():
            if len(word) >= MIN_KEYWORD_LENGTH:
                keywords[word] = None

        return list(keywords)

    @staticmethod
    def make_summary(text: Optional[str]) -> str:
        if not text:
            return ''
        if len(text) > SUMMARY_LENGTH:
            return text[:SUMMARY_LENGTH] + '...'
        return text

    @staticmethod
    def parse_rating(value: Any) -> Optional[float]:
        """Parse a company rating. Unparseable values give None; range is checked at validation."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            rating = float(value)
        elif isinstance(value, str) and value.strip():
            try:
                rating = float(value.strip())
            except ValueError:
                return None
        else:
            return None
        if rating != rating:  # NaN
            return None
        return rating


def normalize_job(raw: Dict, now: Optional[datetime] = None) -> Dict:
    """
    Build a canonical job document from a raw extracted record.

    Args:
        raw: Raw job dict produced by an extraction plugin
        now: Timestamp to stamp on the document (default: current UTC time)

    Returns:
        Canonical job document

    Raises:
        ValidationError: if the sanitized title or company is missing
    """
    title = Normalizer.sanitize_string(raw.get('title'))
    company = Normalizer.sanitize_string(raw.get('company'))

    errors = []
    if not title:
        errors.append('Title is required')
    if not company:
        errors.append('Company is required')
    if errors:
        raise ValidationError(errors)

    location = Normalizer.sanitize_string(raw.get('location'))
    description = Normalizer.sanitize_string(raw.get('description'))
    posted_date = Normalizer.sanitize_string(raw.get('posted_date'))

    job_types = Normalizer.sanitize_list(raw.get('job_types')) or Normalizer.sanitize_list(raw.get('job_type'))
    requirements = Normalizer.sanitize_list(raw.get('requirements'))
    requirements = list(dict.fromkeys(requirements))

    quality = calculate_data_quality({
        'title': title,
        'company': company,
        'location': location,
        'description': description,
        'job_types': job_types,
        'posted_date': posted_date,
    })

    summary = Normalizer.sanitize_string(raw.get('summary')) or description

    job_id = raw.get('job_id')
    if job_id is not None and not isinstance(job_id, str):
        job_id = str(job_id)

    now = now or datetime.now(timezone.utc)

    document = {
        'title': title,
        'company': company,
        'location': location or NOT_SPECIFIED,

        'description': description or '',
        'summary': Normalizer.make_summary(summary),
        'requirements': requirements,

        'job_types': job_types,
        'work_mode': Normalizer.extract_work_mode(location, job_types),
        'experience_level': Normalizer.extract_experience_level(title, description),

        'company_rating': Normalizer.parse_rating(raw.get('company_rating')),
        'company_size': Normalizer.sanitize_string(raw.get('company_size')),
        'industry': Normalizer.sanitize_string(raw.get('industry')),

        'source_url': Normalizer.sanitize_string(raw.get('source_url')),
        'job_id': Normalizer.sanitize_string(job_id),
        'source': Normalizer.sanitize_string(raw.get('source')) or DEFAULT_SOURCE,

        'skills': Normalizer.extract_skills(title, description, ' '.join(requirements)),
        'search_keywords': Normalizer.generate_search_keywords(title, company, location),
        'posted_date': posted_date,
        'data_quality': quality,

        'scraped_at': now,
        'created_at': now,
        'updated_at': now,
    }

    logger.debug(
        f"Normalized '{title}' at {company}: level={document['experience_level']}, "
        f"mode={document['work_mode']}, quality={quality['score']}"
    )
    return document
