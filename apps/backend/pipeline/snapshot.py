"""
Page snapshots.

A Snapshot is the rendered markup of a listing page captured once the page
is ready. SnapshotManager optionally keeps snapshots on disk for auditing and
debugging extraction drift.
"""

import os
import json
import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
from datetime import datetime, timezone
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Static capture of rendered markup at a point in time."""
    url: str
    html: str
    matched_selector: Optional[str] = None
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def size(self) -> int:
        return len(self.html)


def _domain_of(url: str) -> str:
    return urlparse(url).netloc.replace('www.', '') or 'unknown'


class SnapshotManager:
    """Manages snapshots of scraped listing pages."""

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path or os.getenv('SNAPSHOT_PATH', 'snapshots'))
        self.base_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"Snapshot manager initialized: {self.base_path}")

    def _paths(self, url: str):
        domain_dir = self.base_path / _domain_of(url)
        url_hash = hashlib.sha256(url.encode()).hexdigest()
        return domain_dir, domain_dir / f"{url_hash}.html", domain_dir / f"{url_hash}.meta.json"

    def save_snapshot(self, snapshot: Snapshot, extraction_result: Dict) -> Optional[Path]:
        """Save HTML snapshot and metadata. Returns the HTML path, or None on failure."""
        try:
            domain_dir, html_path, meta_path = self._paths(snapshot.url)
            domain_dir.mkdir(parents=True, exist_ok=True)

            html_path.write_text(snapshot.html, encoding='utf-8')

            metadata = {
                "url": snapshot.url,
                "domain": _domain_of(snapshot.url),
                "snapshot_at": snapshot.captured_at.isoformat(),
                "matched_selector": snapshot.matched_selector,
                "html_size": snapshot.size,
                "extraction_result": extraction_result,
            }
            with open(meta_path, 'w', encoding='utf-8') as f:
                json.dump(metadata, f, indent=2, ensure_ascii=False, default=str)

            logger.debug(f"Saved snapshot: {html_path}")
            return html_path
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save snapshot: {e}")
            return None
