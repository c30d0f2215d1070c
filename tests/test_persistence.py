"""
Persistence Gateway - Unit Tests
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from bizscrape.models.business import BusinessData
from bizscrape.models.scrape import ScrapeConfig, ProcessingConfig, ScrapingResult, Location
from bizscrape.services.errors import PersistenceError
from bizscrape.services.persistence import PersistenceGateway


class TestPersistenceGateway:
    """Test the JSON file store"""

    @pytest.fixture(autouse=True)
    def store(self, tmp_path):
        self.data_file = tmp_path / 'data' / 'store.json'
        self.store = PersistenceGateway(str(self.data_file))

    def _result(self, *records):
        return ScrapingResult().start().succeed(list(records))

    def test_save_and_list_configs(self):
        config_id = self.store.save_scrape_config(
            ScrapeConfig(url='https://directory-site.com', location=Location(city='Austin'))
        )

        configs = self.store.list_configs()

        assert configs[0]['id'] == config_id
        assert configs[0]['url'] == 'https://directory-site.com'
        assert configs[0]['location']['city'] == 'Austin'
        assert self.data_file.exists()

    def test_save_processing_config(self):
        self.store.save_processing_config(ProcessingConfig(model='rules', instructions='tidy'))
        assert self.store.list_processing_configs()[0]['instructions'] == 'tidy'

    def test_save_result_stores_business_rows(self):
        """Non-schema fields travel in additional_data"""
        scrape_id = self.store.save_scrape_config(ScrapeConfig())
        result = self._result(
            BusinessData(name='Acme', email='info@acmeplumbing.com',
                         additional_fields={'source_url': 'https://directory-site.com'}),
            BusinessData(name='Bright'),
        )

        result_id = self.store.save_result(scrape_id, None, result)
        rows = self.store.list_records(result_id)

        assert len(rows) == 2
        acme = next(row for row in rows if row['name'] == 'Acme')
        assert acme['email'] == 'info@acmeplumbing.com'
        assert acme['additional_data'] == {'source_url': 'https://directory-site.com'}
        assert acme['result_id'] == result_id

        saved = self.store.list_results()[0]
        assert saved['id'] == result_id
        assert saved['scrape_config_id'] == scrape_id
        assert saved['total_records'] == 2
        assert 'processed_data' not in saved

    def test_stored_rows_round_trip_to_records(self):
        result_id = self.store.save_result('cfg', None, self._result(
            BusinessData(name='Acme', additional_fields={'rating': '4.5'})
        ))
        row = self.store.list_records(result_id)[0]

        record = BusinessData.from_dict(row)

        assert record.name == 'Acme'
        assert record.get('rating') == '4.5'

    def test_list_results_limit(self):
        for _ in range(3):
            self.store.save_result('cfg', None, self._result(BusinessData(name='Acme')))
        assert len(self.store.list_results(limit=2)) == 2

    def test_list_all_records_limit(self):
        self.store.save_result('cfg', None, self._result(*[BusinessData(name=f'Biz {i}') for i in range(5)]))
        assert len(self.store.list_all_records(limit=3)) == 3
        assert len(self.store.list_all_records()) == 5

    def test_delete_record(self):
        result_id = self.store.save_result('cfg', None, self._result(BusinessData(name='Acme')))
        record_id = self.store.list_records(result_id)[0]['id']

        assert self.store.delete_record(record_id) is True
        assert self.store.list_records(result_id) == []
        assert self.store.delete_record(record_id) is False

    def test_empty_store(self):
        assert self.store.list_configs() == []
        assert self.store.list_all_records() == []

    def test_corrupt_store_raises(self):
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        self.data_file.write_text('{not json', encoding='utf-8')

        with pytest.raises(PersistenceError):
            self.store.list_results()
