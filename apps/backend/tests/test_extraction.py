"""
Tests for source extraction plugins and the plugin registry.
"""

import pytest
from unittest.mock import patch

from crawler.plugins import PluginRegistry, get_plugin_registry
from crawler.plugins.naukri import NaukriPlugin
from crawler.plugins.remoteok import RemoteOKPlugin
from crawler.plugins.wellfound import WellfoundPlugin


NAUKRI_HTML = """
<html><body>
<div class="styles_job-listing-container__OCfZC">
  <div class="srp-jobtuple-wrapper" data-job-id="101">
    <div class="cust-job-tuple">
      <a class="title" href="/job-listings-python-developer-101">Python  Developer</a>
      <div class="row2">
        <a class="comp-name" href="/acme-jobs">Acme Corp</a>
        <span class="rating"><a class="main-2">4.1 <i>*</i></a></span>
      </div>
      <span class="expwdth" title="3-5 Yrs">3-5 Yrs</span>
      <span class="locWdth" title="Bengaluru, Pune">Bengaluru</span>
      <span class="job-desc">Build REST services with Django and Docker</span>
      <ul class="tags-gt"><li class="tag-li">Python</li><li class="tag-li">Django</li><li class="tag-li">Python</li></ul>
      <span class="job-post-day">3 Days Ago</span>
      <img class="logoImage" src="https://img.naukri.com/acme.gif"/>
    </div>
  </div>
  <div class="srp-jobtuple-wrapper" data-job-id="102">
    <a class="title" href="https://www.naukri.com/job-listings-react-102">Frontend Engineer</a>
    <span class="job-desc">React and TypeScript on AWS</span>
  </div>
  <div class="srp-jobtuple-wrapper" data-job-id="103">
    <span class="job-desc">No title here</span>
  </div>
</div>
</body></html>
"""

REMOTEOK_HTML = """
<html><body>
<table id="jobsboard">
  <tr class="job" data-id="555">
    <td class="company">
      <a class="preventLink" href="/remote-jobs/555-senior-go-engineer"><h2>Senior Go Engineer</h2></a>
      <h3>Gopher Inc</h3>
    </td>
    <td class="tags"><div class="tag">Go</div><div class="tag">Kubernetes</div></td>
    <td class="time"><time datetime="2024-04-01T10:00:00+00:00">1mo</time></td>
  </tr>
  <tr class="job">
    <td class="company">
      <a class="preventLink" href="/remote-jobs/777-python-dev"><h2>Python Dev</h2></a>
    </td>
  </tr>
</table>
</body></html>
"""

WELLFOUND_HTML = """
<html><body>
<div data-test="StartupResult">
  <div>
    <div data-testid="startup-header">
      <a href="/company/rocket"><h2>Rocket Labs</h2></a>
    </div>
    <span class="text-xs text-neutral-1000">Rockets for everyone, built with Python</span>
  </div>
  <span class="text-xs italic text-neutral-500">11-50 Employees</span>
  <span class="text-pop-green">Actively Hiring</span>
  <div class="min-h-[50px] items-end justify-between">
    <a class="text-sm font-semibold text-brand-burgandy" href="/jobs/2468-backend-engineer">Backend Engineer</a>
    <span class="whitespace-nowrap rounded-lg bg-accent-yellow-100">Contract</span>
    <span class="pl-1 text-xs">Remote • India</span>
    <span class="pl-1 text-xs">3 years of exp</span>
    <span class="text-xs lowercase text-dark-a">2 days ago</span>
  </div>
  <div class="min-h-[50px] items-end justify-between">
    <a class="text-sm font-semibold text-brand-burgandy" href="/jobs/1357-react-developer">React Developer</a>
  </div>
</div>
<div class="min-h-[50px] items-end justify-between">
  <a class="text-sm font-semibold text-brand-burgandy" href="/jobs/999-orphan">Orphan Role</a>
</div>
</body></html>
"""


class TestNaukriPlugin:

    def test_extracts_full_listing(self):
        result = NaukriPlugin().extract(NAUKRI_HTML)
        job = result.jobs[0]

        assert job['job_id'] == '101'
        assert job['title'] == 'Python Developer'
        assert job['company'] == 'Acme Corp'
        assert job['company_rating'] == 4.1
        assert job['experience'] == '3-5 Yrs'
        assert job['location'] == 'Bengaluru, Pune'
        assert job['posted_date'] == '3 Days Ago'
        assert job['source_url'] == 'https://www.naukri.com/job-listings-python-developer-101'
        assert job['company_url'] == 'https://www.naukri.com/acme-jobs'
        assert job['company_logo'] == 'https://img.naukri.com/acme.gif'
        assert job['skills'] == ['Python', 'Django']
        assert job['requirements'] == ['Python', 'Django']
        assert job['job_types'] == ['Full-time']
        assert job['source'] == 'naukri.com'

    def test_missing_fields_use_fallbacks(self):
        result = NaukriPlugin().extract(NAUKRI_HTML)
        job = result.jobs[1]

        assert job['company'] == 'Unknown Company'
        assert job['location'] == 'Not specified'
        assert job['company_rating'] is None
        assert job['source_url'] == 'https://www.naukri.com/job-listings-react-102'
        assert job['skills'] == ['React', 'TypeScript', 'AWS']

    def test_listing_without_title_is_dropped(self):
        result = NaukriPlugin().extract(NAUKRI_HTML)
        assert len(result.jobs) == 2
        assert result.metadata == {'listings': 3, 'skipped': 0}

    def test_failing_element_is_skipped(self):
        plugin = NaukriPlugin()
        original = plugin.extract_listing
        calls = []

        def flaky(element):
            calls.append(element)
            if len(calls) == 1:
                raise AttributeError('layout changed')
            return original(element)

        with patch.object(plugin, 'extract_listing', side_effect=flaky):
            result = plugin.extract(NAUKRI_HTML)

        assert [job['job_id'] for job in result.jobs] == ['102']
        assert result.skipped == 1

    def test_empty_page(self):
        result = NaukriPlugin().extract('<html><body></body></html>')
        assert result.jobs == []
        assert result.is_success() is False


class TestRemoteOKPlugin:

    def test_extracts_listing(self):
        result = RemoteOKPlugin().extract(REMOTEOK_HTML)
        job = result.jobs[0]

        assert job['job_id'] == '555'
        assert job['title'] == 'Senior Go Engineer'
        assert job['company'] == 'Gopher Inc'
        assert job['location'] == 'Remote'
        assert job['description'] == 'Go, Kubernetes'
        assert job['summary'] == 'Senior Go Engineer at Gopher Inc - Remote position'
        assert job['skills'] == ['Go', 'Kubernetes']
        assert job['posted_date'] == '2024-04-01T10:00:00+00:00'
        assert job['source_url'] == 'https://remoteok.io/remote-jobs/555-senior-go-engineer'
        assert job['source'] == 'remoteok.io'

    def test_fallbacks(self):
        job = RemoteOKPlugin().extract(REMOTEOK_HTML).jobs[1]

        assert job['company'] == 'Remote Company'
        assert job['job_id'] == '777-python-dev'
        assert job['skills'] == ['Python']
        assert job['posted_date'] == ''


class TestWellfoundPlugin:

    def test_extracts_rows_with_company_details(self):
        result = WellfoundPlugin().extract(WELLFOUND_HTML)
        job = result.jobs[0]

        assert job['job_id'] == '2468'
        assert job['title'] == 'Backend Engineer'
        assert job['company'] == 'Rocket Labs'
        assert job['company_url'] == 'https://wellfound.com/company/rocket'
        assert job['company_size'] == '11-50'
        assert job['company_status'] == 'Actively Hiring'
        assert job['job_types'] == ['Contract']
        assert job['location'] == 'Remote • India'
        assert job['experience'] == '3 years of exp'
        assert job['posted_date'] == '2 days ago'
        assert job['description'] == 'Rockets for everyone, built with Python'
        assert job['skills'] == ['Python']
        assert job['requirements'] == []
        assert job['source_url'] == 'https://wellfound.com/jobs/2468-backend-engineer'

    def test_row_defaults(self):
        job = WellfoundPlugin().extract(WELLFOUND_HTML).jobs[1]

        assert job['company'] == 'Rocket Labs'
        assert job['job_types'] == ['Full-time']
        assert job['location'] == 'Not specified'
        assert job['skills'] == ['Python', 'React']

    def test_row_outside_card_is_skipped(self):
        result = WellfoundPlugin().extract(WELLFOUND_HTML)

        assert [job['title'] for job in result.jobs] == ['Backend Engineer', 'React Developer']
        assert result.skipped == 1


class TestPluginRegistry:

    def test_builtin_plugins_registered(self):
        registry = get_plugin_registry()
        for name in ('naukri', 'remoteok', 'wellfound'):
            assert registry.get_plugin(name).name == name

    def test_extract_dispatches_by_source(self):
        result = get_plugin_registry().extract(REMOTEOK_HTML, 'remoteok')
        assert len(result.jobs) == 2

    def test_unknown_source_gives_empty_result(self):
        result = PluginRegistry().extract(NAUKRI_HTML, 'monster')
        assert result.jobs == []
        assert 'No plugin' in result.message

    def test_plugin_crash_gives_empty_result(self):
        registry = PluginRegistry()
        plugin = NaukriPlugin()
        registry.register(plugin)

        with patch.object(plugin, 'find_listings', side_effect=RuntimeError('boom')):
            result = registry.extract(NAUKRI_HTML, 'naukri')

        assert result.jobs == []
        assert 'boom' in result.message

    @pytest.mark.parametrize('url,expected', [
        ('https://www.naukri.com/python-jobs-3', 'naukri'),
        ('https://remoteok.io/remote-dev-jobs', 'remoteok'),
        ('https://wellfound.com/role/python', 'wellfound'),
        ('https://example.com/jobs', None),
    ])
    def test_find_plugin_by_url(self, url, expected):
        plugin = get_plugin_registry().find_plugin(url)
        assert (plugin.name if plugin else None) == expected
