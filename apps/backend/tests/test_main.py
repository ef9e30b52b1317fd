"""
Tests for the command-line entry point.
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import main
from core.errors import SessionError, StoreError


def test_parse_args_defaults():
    args = main.parse_args([])
    assert args.source is None
    assert args.pages == 4
    assert args.url is None
    assert args.stats is False


def test_run_success():
    summary = {'pages_loaded': 2, 'pages_requested': 2, 'jobs_found': 40,
               'saved': 35, 'duplicates': 5, 'errors': 0}
    with patch('main.run_scrape', new_callable=AsyncMock, return_value=summary) as mock_run:
        assert main.main(['--source', 'remoteok', '--pages', '2']) == 0
    mock_run.assert_awaited_once_with(None, 2, 'remoteok')


def test_fatal_errors_exit_nonzero():
    for error in (SessionError('no browser'), StoreError('no database')):
        with patch('main.run_scrape', new_callable=AsyncMock, side_effect=error):
            assert main.main([]) == 1


def test_too_many_pages_exit_code():
    with patch('main.run_scrape', new_callable=AsyncMock, side_effect=ValueError('Cannot select 500')):
        assert main.main(['--pages', '500']) == 2


def test_stats():
    store = MagicMock()
    store.get_job_stats.return_value = {
        'total': 3, 'today_count': 1, 'companies_count': 2, 'locations_count': 2,
        'top_job_types': [{'job_type': 'Full-time', 'count': 3}],
    }
    with patch('main.JobStore', return_value=store):
        assert main.main(['--stats']) == 0
    store.connect.assert_called_once()
    store.close.assert_called_once()


def test_stats_unavailable():
    store = MagicMock()
    store.get_job_stats.return_value = None
    with patch('main.JobStore', return_value=store):
        assert main.main(['--stats']) == 1


def test_stats_lists_recent_jobs(caplog):
    store = MagicMock()
    store.get_job_stats.return_value = {
        'total': 1, 'today_count': 1, 'companies_count': 1, 'locations_count': 1, 'top_job_types': [],
    }
    store.get_recent_jobs.return_value = [
        {'title': 'Python Developer', 'company': 'Acme', 'location': 'Pune', 'scraped_at': '2024-05-01'},
    ]
    with patch('main.JobStore', return_value=store), caplog.at_level(logging.INFO, logger='main'):
        assert main.main(['--stats']) == 0
    store.get_recent_jobs.assert_called_once_with(main.RECENT_JOBS)
    assert 'Python Developer at Acme (Pune)' in caplog.text


def test_source_defaults_to_naukri():
    summary = {'pages_loaded': 1, 'pages_requested': 1, 'jobs_found': 0,
               'saved': 0, 'duplicates': 0, 'errors': 0}
    with patch('main.run_scrape', new_callable=AsyncMock, return_value=summary) as mock_run:
        assert main.main(['--pages', '1']) == 0
    mock_run.assert_awaited_once_with(None, 1, 'naukri')


def test_source_inferred_from_url():
    url = 'https://remoteok.io/remote-python-jobs?page={page}'
    summary = {'pages_loaded': 1, 'pages_requested': 1, 'jobs_found': 0,
               'saved': 0, 'duplicates': 0, 'errors': 0}
    with patch('main.run_scrape', new_callable=AsyncMock, return_value=summary) as mock_run:
        assert main.main(['--url', url, '--pages', '1']) == 0
    mock_run.assert_awaited_once_with(url, 1, 'remoteok')


def test_explicit_source_wins_over_url():
    assert main.resolve_source('wellfound', 'https://www.naukri.com/python-jobs') == 'wellfound'


def test_unknown_url_without_source_exit_code():
    with patch('main.run_scrape', new_callable=AsyncMock) as mock_run:
        assert main.main(['--url', 'https://example.com/jobs']) == 2
    mock_run.assert_not_awaited()
