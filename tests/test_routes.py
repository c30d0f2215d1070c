"""
API Routes - Integration Tests
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest

from bizscrape import create_app
from bizscrape.config import TestingConfig
from bizscrape.services import shared_services
from bizscrape.services.anti_detection import NoDelayProfile
from bizscrape.services.fetch_gateway import FetchGateway
from bizscrape.services.persistence import PersistenceGateway
from bizscrape.services.scraper_service import ScraperService
from bizscrape.services.scraping_job_manager import ScrapeJobManager


SITE_URL = 'https://directory-site.com/plumbers'

DIRECTORY_PAGE = """
<div class="business-card">
  <h2 class="business-name">Acme Plumbing</h2>
  <div class="email">info@acmeplumbing.com</div>
  <div class="address">123 Main St, Springfield, IL 62704</div>
</div>
<div class="business-card">
  <h2 class="business-name">Byte Works</h2>
  <div class="email">hello@byteworks.com</div>
  <div class="address">9 Oak Ave, Peoria, IL 61602</div>
</div>
"""


def directory_handler(request):
    target = request.url.params.get('url', '')
    if target.endswith('/robots.txt'):
        return httpx.Response(404)
    if target.startswith(SITE_URL):
        return httpx.Response(200, text=DIRECTORY_PAGE)
    return httpx.Response(500)


class TestRoutes:
    """Test the JSON API end to end"""

    @pytest.fixture(autouse=True)
    def client(self, tmp_path, monkeypatch):
        class Config(TestingConfig):
            EXPORT_FOLDER = str(tmp_path / 'exports')

        gateway = FetchGateway(relays=['https://relay.test/?url='],
                               transport=httpx.MockTransport(directory_handler))
        service = ScraperService(gateway=gateway, profile=NoDelayProfile(use_fake_useragent=False))
        store = PersistenceGateway(str(tmp_path / 'store.json'))

        monkeypatch.setattr(shared_services, 'scraper_service', service)
        monkeypatch.setattr(shared_services, 'record_store', store)
        monkeypatch.setattr(shared_services, 'job_manager', ScrapeJobManager(service, store))

        self.store = store
        self.app = create_app(Config)
        self.client = self.app.test_client()

    def _run_payload(self, **extra):
        payload = {'url': SITE_URL, 'policy': {'base_delay_seconds': 0}}
        payload.update(extra)
        return payload

    def test_health(self):
        response = self.client.get('/api/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'

    def test_unknown_route_is_json(self):
        response = self.client.get('/api/nowhere')

        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_run_scrape(self):
        response = self.client.post('/api/scraper/run', json=self._run_payload())
        body = response.get_json()

        assert response.status_code == 200
        assert body['success'] is True
        assert [r['name'] for r in body['data']['processed_data']] == ['Acme Plumbing', 'Byte Works']
        assert body['data']['saved_result_id'] is None

    def test_run_scrape_and_save(self):
        response = self.client.post('/api/scraper/run', json=self._run_payload(save=True))
        result_id = response.get_json()['data']['saved_result_id']

        assert result_id is not None

        records = self.client.get(f'/api/records?result_id={result_id}').get_json()['data']
        assert records['total'] == 2

        results = self.client.get('/api/records/results').get_json()['data']['results']
        assert results[0]['id'] == result_id

        configs = self.client.get('/api/records/configs').get_json()['data']
        assert configs['scrape_configs'][0]['url'] == SITE_URL

    def test_denylisted_run(self):
        response = self.client.post('/api/scraper/run', json=self._run_payload(url='https://linkedin.com/company/acme'))
        body = response.get_json()

        assert body['success'] is False
        assert body['data']['status'] == 'error'

    def test_delete_record(self):
        response = self.client.post('/api/scraper/run', json=self._run_payload(save=True))
        result_id = response.get_json()['data']['saved_result_id']
        record_id = self.store.list_records(result_id)[0]['id']

        assert self.client.delete(f'/api/records/{record_id}').status_code == 200
        assert self.client.delete(f'/api/records/{record_id}').status_code == 404

    def test_permissions(self):
        assert self.client.post('/api/scraper/permissions', json={}).status_code == 400

        body = self.client.post('/api/scraper/permissions', json={'url': 'https://www.linkedin.com/in/x'}).get_json()

        assert body['success'] is True
        assert body['data']['allowed'] is False

    def test_scraper_config(self):
        data = self.client.get('/api/scraper/config').get_json()['data']

        assert 'linkedin.com' in data['denylisted_sites']
        assert data['default_policy']['respect_robots_txt'] is True

    def test_job_lifecycle(self):
        response = self.client.post('/api/scraper/jobs', json=self._run_payload())
        job_id = response.get_json()['data']['job_id']

        assert response.status_code == 202

        shared_services.job_manager.wait(job_id, timeout=5)
        body = self.client.get(f'/api/scraper/jobs/{job_id}').get_json()

        assert body['data']['status'] == 'completed'
        assert len(body['data']['result']['processed_data']) == 2

        listed = self.client.get('/api/scraper/jobs').get_json()['data']['jobs']
        assert listed[0]['job_id'] == job_id
        assert 'processed_data' not in listed[0]['result']

        assert self.client.post(f'/api/scraper/jobs/{job_id}/cancel').status_code == 409

    def test_unknown_job(self):
        assert self.client.get('/api/scraper/jobs/missing').status_code == 404
        assert self.client.post('/api/scraper/jobs/missing/cancel').status_code == 404

    def test_export_csv_and_download(self):
        records = [{'name': 'Acme', 'email': 'info@acmeplumbing.com'}]
        response = self.client.post('/api/export/csv', json={'records': records, 'filename': 'acme.csv'})
        data = response.get_json()['data']

        assert data['filename'] == 'acme.csv'
        assert data['total_exported'] == 1

        download = self.client.get(data['download_url'])
        assert download.status_code == 200
        assert download.data.decode('utf-8').startswith('name,email\n"Acme"')

    def test_export_json(self):
        response = self.client.post('/api/export/json', json={'records': [{'name': 'Acme'}]})

        assert response.status_code == 200
        assert response.get_json()['data']['filename'].endswith('.json')

    def test_export_without_records(self):
        assert self.client.post('/api/export/csv', json={'records': []}).status_code == 404

    def test_download_missing_file(self):
        assert self.client.get('/api/export/download/none.csv').status_code == 404

    def test_form_style_false_save_flag(self):
        response = self.client.post('/api/scraper/run', json=self._run_payload(save='false'))

        assert response.get_json()['data']['saved_result_id'] is None
        assert self.store.list_results() == []

    def test_health_reports_jobs(self):
        self.client.post('/api/scraper/jobs', json=self._run_payload())
        job = shared_services.job_manager.list_jobs()[0]
        shared_services.job_manager.wait(job.job_id, timeout=5)

        jobs = self.client.get('/api/health').get_json()['jobs']

        assert jobs['total_jobs'] == 1
        assert jobs['by_status'] == {'completed': 1}

    def test_api_info(self):
        body = self.client.get('/api/').get_json()

        assert body['name'] == 'BizScrape API'
        assert 'run' in body['endpoints']
