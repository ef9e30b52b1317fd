"""
Error taxonomy for the scrape-extract-normalize-persist pipeline.
"""
from typing import List


class ScraperError(Exception):
    """Base class for pipeline errors"""


class SessionError(ScraperError):
    """Browser session could not be started or used"""


class NavigationTimeout(ScraperError):
    """Navigation did not finish within its timeout"""

    def __init__(self, url: str, timeout_ms: int):
        super().__init__(f"Navigation to {url} timed out after {timeout_ms}ms")
        self.url = url
        self.timeout_ms = timeout_ms


class ExtractionElementError(ScraperError):
    """A single listing element could not be parsed"""


class ValidationError(ScraperError):
    """Mandatory job fields are missing"""

    def __init__(self, errors: List[str]):
        super().__init__(f"Validation failed: {', '.join(errors)}")
        self.errors = list(errors)


class DuplicateJobError(ScraperError):
    """Store rejected a job because the (title, company, location) triple exists"""


class StoreError(ScraperError):
    """Store connectivity or write failure other than a duplicate"""
