"""
Database persistence for scraped jobs.

Validates canonical job documents and writes them to the jobs table. The
table carries a unique index over (title, company, location); a second
document with the same triple is classified as a duplicate, never updated.
"""

import os
import re
import time
import logging
from enum import Enum
from typing import Dict, Optional, Any, List

import psycopg2
import psycopg2.errors
from psycopg2.extras import Json, RealDictCursor
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from core.data_quality import validate_job_document
from core.errors import DuplicateJobError, StoreError, ValidationError
from core.normalize import NOT_SPECIFIED, Normalizer, normalize_job
from core.scrape_config import get_scrape_config

logger = logging.getLogger(__name__)

DEFAULT_JOBS_TABLE = os.getenv('JOBS_TABLE', 'jobs')
CONNECT_TIMEOUT = 5
CONNECT_ATTEMPTS = 3
TOP_JOB_TYPES = 5

TABLE_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# Document keys, in column order
JOB_COLUMNS = (
    'title',
    'company',
    'location',
    'description',
    'summary',
    'requirements',
    'job_types',
    'work_mode',
    'experience_level',
    'company_rating',
    'company_size',
    'industry',
    'source_url',
    'job_id',
    'source',
    'skills',
    'search_keywords',
    'posted_date',
    'data_quality',
    'scraped_at',
    'created_at',
    'updated_at',
)

JSON_COLUMNS = {'requirements', 'job_types', 'skills', 'search_keywords', 'data_quality'}

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS {table} (
        id BIGSERIAL PRIMARY KEY,
        title TEXT,
        company TEXT,
        location TEXT,
        description TEXT,
        summary TEXT,
        requirements JSONB NOT NULL DEFAULT '[]'::jsonb,
        job_types JSONB NOT NULL DEFAULT '[]'::jsonb,
        work_mode TEXT,
        experience_level TEXT,
        company_rating DOUBLE PRECISION,
        company_size TEXT,
        industry TEXT,
        source_url TEXT,
        job_id TEXT,
        source TEXT,
        skills JSONB NOT NULL DEFAULT '[]'::jsonb,
        search_keywords JSONB NOT NULL DEFAULT '[]'::jsonb,
        posted_date TEXT,
        data_quality JSONB,
        scraped_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

# (name suffix, statement); {name} and {table} are filled per table
INDEXES = (
    ('text_search',
     "CREATE INDEX {name} ON {table} USING GIN (to_tsvector('english', "
     "coalesce(title, '') || ' ' || coalesce(company, '') || ' ' || "
     "coalesce(description, '') || ' ' || coalesce(skills::text, '')))"),
    ('company_index', "CREATE INDEX {name} ON {table} (company)"),
    ('location_index', "CREATE INDEX {name} ON {table} (location)"),
    ('scraped_date_index', "CREATE INDEX {name} ON {table} (scraped_at DESC)"),
    ('posted_date_index', "CREATE INDEX {name} ON {table} (posted_date DESC)"),
    ('experience_level_index', "CREATE INDEX {name} ON {table} (experience_level)"),
    ('work_mode_index', "CREATE INDEX {name} ON {table} (work_mode)"),
    ('company_date_index', "CREATE INDEX {name} ON {table} (company, scraped_at DESC)"),
    ('location_experience_index', "CREATE INDEX {name} ON {table} (location, experience_level)"),
    ('job_unique_index',
     "CREATE UNIQUE INDEX {name} ON {table} (title, company, location) "
     "WHERE title IS NOT NULL AND company IS NOT NULL"),
)


class SaveOutcome(str, Enum):
    SAVED = 'saved'
    DUPLICATE = 'duplicate'
    VALIDATION_FAILED = 'validation_failed'
    STORE_ERROR = 'store_error'


class JobStore:
    """Duplicate-aware single and batch writes of job documents."""

    def __init__(self, db_url: Optional[str] = None, jobs_table: Optional[str] = None,
                 write_delay: Optional[float] = None):
        """
        Initialize the store.

        Args:
            db_url: PostgreSQL connection string (default: DATABASE_URL env var)
            jobs_table: Table name (default: JOBS_TABLE env var or 'jobs')
            write_delay: Seconds to wait between batch writes (default: the scrape config write_delay)
        """
        self.db_url = db_url or os.getenv('DATABASE_URL')
        self.jobs_table = jobs_table or DEFAULT_JOBS_TABLE
        self.write_delay = get_scrape_config().write_delay if write_delay is None else write_delay
        self.conn = None

        if not TABLE_NAME_PATTERN.match(self.jobs_table):
            raise ValueError(f"Invalid table name: {self.jobs_table!r}")

        logger.info(f"JobStore initialized: table={self.jobs_table}, write_delay={self.write_delay}s")

    @retry(
        stop=stop_after_attempt(CONNECT_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(psycopg2.OperationalError),
        reraise=True
    )
    def _open_connection(self):
        return psycopg2.connect(self.db_url, connect_timeout=CONNECT_TIMEOUT)

    def connect(self):
        """
        Open the store connection.

        Raises:
            StoreError: if no connection string is configured or the connection fails
        """
        if self.conn is not None and not self.conn.closed:
            return self.conn
        if not self.db_url:
            raise StoreError("DATABASE_URL is not configured")

        logger.info("[store] Connecting to database...")
        try:
            self.conn = self._open_connection()
        except psycopg2.Error as e:
            logger.error(f"[store] Database connection failed: {e}")
            raise StoreError(f"Could not connect to database: {e}") from e

        logger.info(f"[store] Connected, using table: {self.jobs_table}")
        return self.conn

    def close(self):
        """Close the store connection. Safe to call repeatedly."""
        if self.conn is None:
            return
        conn, self.conn = self.conn, None
        try:
            if not conn.closed:
                conn.close()
            logger.info("[store] Database connection closed")
        except psycopg2.Error as e:
            logger.warning(f"[store] Error closing database connection: {e}")

    def _require_conn(self):
        if self.conn is None or self.conn.closed:
            raise StoreError("Store is not connected")
        return self.conn

    def _rollback(self, conn):
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.debug(f"[store] Rollback failed: {e}")

    def ensure_schema(self):
        """Create the jobs table if it does not exist."""
        conn = self._require_conn()
        try:
            with conn.cursor() as cur:
                cur.execute(CREATE_TABLE_SQL.format(table=self.jobs_table))
            conn.commit()
        except psycopg2.Error as e:
            self._rollback(conn)
            raise StoreError(f"Could not create table {self.jobs_table}: {e}") from e

    def ensure_indexes(self) -> List[str]:
        """
        Create query indexes and the (title, company, location) uniqueness constraint.

        An index that already exists is skipped; any other failure is logged as
        a warning and the remaining indexes are still attempted.

        Returns:
            Names of the indexes created by this call
        """
        conn = self._require_conn()
        created = []

        for suffix, statement in INDEXES:
            name = f"{self.jobs_table}_{suffix}"
            try:
                with conn.cursor() as cur:
                    cur.execute(statement.format(name=name, table=self.jobs_table))
                conn.commit()
                created.append(name)
                logger.info(f"[store] Created index: {name}")
            except psycopg2.errors.DuplicateTable:
                self._rollback(conn)
                logger.debug(f"[store] Index already exists: {name}")
            except psycopg2.Error as e:
                self._rollback(conn)
                logger.warning(f"[store] Index creation warning for {name}: {e}")

        return created

    def _adapt(self, column: str, value: Any) -> Any:
        if column in JSON_COLUMNS and value is not None:
            return Json(value)
        return value

    def _insert(self, document: Dict) -> str:
        """
        Insert one document.

        Raises:
            DuplicateJobError: on a uniqueness violation
            StoreError: on any other database failure
        """
        conn = self._require_conn()
        values = [self._adapt(column, document.get(column)) for column in JOB_COLUMNS]
        placeholders = ', '.join(['%s'] * len(JOB_COLUMNS))

        try:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO {self.jobs_table} ({', '.join(JOB_COLUMNS)})
                    VALUES ({placeholders})
                    RETURNING id
                    """,
                    values
                )
                row = cur.fetchone()
            conn.commit()
        except psycopg2.errors.UniqueViolation as e:
            self._rollback(conn)
            raise DuplicateJobError(str(e)) from e
        except psycopg2.Error as e:
            self._rollback(conn)
            raise StoreError(str(e)) from e

        return str(row[0]) if row else None

    @staticmethod
    def _result(outcome: SaveOutcome, job_id: Optional[str] = None, error: Optional[str] = None,
                warnings: Optional[List[str]] = None) -> Dict[str, Any]:
        return {
            'outcome': outcome,
            'success': outcome == SaveOutcome.SAVED,
            'is_duplicate': outcome == SaveOutcome.DUPLICATE,
            'job_id': job_id,
            'error': error,
            'warnings': warnings or [],
        }

    def save_document(self, document: Dict) -> Dict[str, Any]:
        """
        Validate and insert a canonical job document.

        The document is re-validated even if it came from the normalizer.
        A missing or blank location is stored as "Not specified" so the
        (title, company, location) unique index can match it.

        Returns:
            Dict with outcome (SaveOutcome), success, is_duplicate, job_id, error, warnings
        """
        document = dict(document, location=Normalizer.sanitize_string(document.get('location')) or NOT_SPECIFIED)
        title = document.get('title')
        company = document.get('company')
        validation = validate_job_document(document)

        if validation['warnings']:
            logger.warning(f"[store] Warnings for '{title}' at {company}: {', '.join(validation['warnings'])}")

        if not validation['is_valid']:
            error = f"Validation failed: {', '.join(validation['errors'])}"
            logger.error(f"[store] {error}")
            return self._result(SaveOutcome.VALIDATION_FAILED, error=error, warnings=validation['warnings'])

        try:
            job_id = self._insert(document)
        except DuplicateJobError:
            logger.info(f"[store] Job already exists: {title} at {company}")
            return self._result(SaveOutcome.DUPLICATE, error='Job already exists (duplicate)',
                                warnings=validation['warnings'])
        except StoreError as e:
            logger.error(f"[store] Error saving job '{title}' at {company}: {e}")
            return self._result(SaveOutcome.STORE_ERROR, error=str(e), warnings=validation['warnings'])

        logger.info(
            f"[store] Saved '{title}' at {company} (id={job_id}, "
            f"level={document.get('experience_level')}, mode={document.get('work_mode')}, "
            f"quality={validation['score']}%)"
        )
        return self._result(SaveOutcome.SAVED, job_id=job_id, warnings=validation['warnings'])

    def save_job(self, raw: Dict) -> Dict[str, Any]:
        """Normalize a raw extracted record, then validate and insert it."""
        try:
            document = normalize_job(raw)
        except ValidationError as e:
            logger.error(f"[store] {e}")
            return self._result(SaveOutcome.VALIDATION_FAILED, error=str(e))
        return self.save_document(document)

    def save_jobs(self, raws: List[Dict]) -> Dict[str, Any]:
        """
        Save records one at a time, pausing between writes.

        A failed record never stops the batch.

        Returns:
            Dict with total, saved, duplicates, errors and per-record details
            (index, title, company, outcome, error, job_id) in input order
        """
        report = {
            'total': len(raws or []),
            'saved': 0,
            'duplicates': 0,
            'errors': 0,
            'details': [],
        }
        if not raws:
            logger.info("[store] No jobs to save")
            return report

        logger.info(f"[store] Starting batch save of {len(raws)} jobs...")

        for index, raw in enumerate(raws):
            result = self.save_job(raw)
            outcome = result['outcome']

            if outcome == SaveOutcome.SAVED:
                report['saved'] += 1
            elif outcome == SaveOutcome.DUPLICATE:
                report['duplicates'] += 1
            else:
                report['errors'] += 1

            report['details'].append({
                'index': index,
                'title': raw.get('title'),
                'company': raw.get('company'),
                'outcome': outcome,
                'error': result['error'],
                'job_id': result['job_id'],
            })

            if index < len(raws) - 1 and self.write_delay > 0:
                time.sleep(self.write_delay)

        logger.info(
            f"[store] Batch save results: total={report['total']}, saved={report['saved']}, "
            f"duplicates={report['duplicates']}, errors={report['errors']}"
        )
        return report

    def get_job_stats(self) -> Optional[Dict[str, Any]]:
        """Collection-level counts and the most common job types. None on failure."""
        conn = self._require_conn()
        table = self.jobs_table
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(f"""
                    SELECT COUNT(*) AS total,
                           COUNT(*) FILTER (WHERE scraped_at >= date_trunc('day', NOW())) AS today_count,
                           COUNT(DISTINCT company) AS companies_count,
                           COUNT(DISTINCT location) AS locations_count
                    FROM {table}
                """)
                counts = dict(cur.fetchone() or {})

                cur.execute(f"""
                    SELECT jt AS job_type, COUNT(*) AS count
                    FROM {table}, jsonb_array_elements_text(job_types) AS jt
                    GROUP BY jt
                    ORDER BY count DESC
                    LIMIT %s
                """, (TOP_JOB_TYPES,))
                top_job_types = [dict(row) for row in cur.fetchall()]
            conn.commit()
        except psycopg2.Error as e:
            self._rollback(conn)
            logger.error(f"[store] Error getting job stats: {e}")
            return None

        counts['top_job_types'] = top_job_types
        return counts

    def get_recent_jobs(self, limit: int = 10) -> List[Dict]:
        """Most recently scraped jobs."""
        conn = self._require_conn()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(f"""
                    SELECT id, title, company, location, experience_level, work_mode, scraped_at
                    FROM {self.jobs_table}
                    ORDER BY scraped_at DESC
                    LIMIT %s
                """, (limit,))
                rows = [dict(row) for row in cur.fetchall()]
            conn.commit()
        except psycopg2.Error as e:
            self._rollback(conn)
            logger.error(f"[store] Error fetching recent jobs: {e}")
            return []
        return rows
