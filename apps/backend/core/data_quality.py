"""
Data Quality Scoring Module
Scores job documents on completeness and validates them before they are stored.
"""

import logging
from typing import Dict, Optional, Any

logger = logging.getLogger(__name__)

# Fields that make up the completeness checklist, in reporting order
QUALITY_FIELDS = (
    'title',
    'company',
    'location',
    'description',
    'job_types',
    'posted_date',
)

RATING_MIN = 0.0
RATING_MAX = 5.0


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, set, dict)):
        return len(value) > 0
    return True


def _has_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.split())


class DataQualityScorer:
    """
    Scores job data quality based on completeness.

    score = round(100 * filled / len(QUALITY_FIELDS)); a field counts as
    filled when it is present and non-empty.
    """

    LOW_QUALITY_THRESHOLD = 50

    def score_job(self, fields: Dict) -> Dict:
        """
        Score a job's completeness.

        Args:
            fields: Mapping holding (some of) the QUALITY_FIELDS

        Returns:
            Dict with score (0-100), filled_fields, total_fields, missing_fields
        """
        filled = [name for name in QUALITY_FIELDS if _is_filled(fields.get(name))]
        missing = [name for name in QUALITY_FIELDS if name not in filled]
        score = round(100 * len(filled) / len(QUALITY_FIELDS))

        return {
            'score': score,
            'filled_fields': len(filled),
            'total_fields': len(QUALITY_FIELDS),
            'missing_fields': missing,
        }

    def validate_document(self, document: Dict) -> Dict:
        """
        Validate a canonical job document before it is written.

        Title and company must hold non-whitespace text. An out-of-range company rating or a
        low quality score only produce warnings.
        """
        errors = []
        warnings = []

        if not _has_text(document.get('title')):
            errors.append('Title is required')
        if not _has_text(document.get('company')):
            errors.append('Company is required')

        rating = document.get('company_rating')
        if rating is not None:
            try:
                rating_value = float(rating)
            except (TypeError, ValueError):
                warnings.append('Company rating is not a number')
            else:
                if rating_value != rating_value or not RATING_MIN <= rating_value <= RATING_MAX:
                    warnings.append('Company rating should be between 0 and 5')

        quality = document.get('data_quality') or self.score_job(document)
        score = quality.get('score', 0)
        if score < self.LOW_QUALITY_THRESHOLD:
            warnings.append('Low data quality score')

        return {
            'is_valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'score': score,
        }


# Global instance
_quality_scorer: Optional[DataQualityScorer] = None


def get_quality_scorer() -> DataQualityScorer:
    """Get or create the global quality scorer instance"""
    global _quality_scorer

    if _quality_scorer is None:
        _quality_scorer = DataQualityScorer()

    return _quality_scorer


def calculate_data_quality(fields: Dict) -> Dict:
    return get_quality_scorer().score_job(fields)


def validate_job_document(document: Dict) -> Dict:
    return get_quality_scorer().validate_document(document)
