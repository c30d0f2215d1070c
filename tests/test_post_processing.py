"""
Post Processing - Unit Tests
Tests for result filtering, normalization and rule-based enhancement
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from bizscrape.models.business import BusinessData, UNKNOWN_BUSINESS
from bizscrape.models.scrape import ScrapeConfig, Location, ProcessingConfig
from bizscrape.services.record_enhancer import RecordEnhancer
from bizscrape.services.record_normalizer import (
    FAILURE_MARKER,
    WARNING_GLYPH,
    is_sample_record,
    normalize,
    order_fields,
    sentinel_record,
    sample_warning
)
from bizscrape.services.result_filter import filter_records, matches_location, matches_industry


class TestResultFilter:
    """Test location and industry filtering"""

    def setup_method(self):
        """Setup for each test"""
        self.records = [
            BusinessData(name='Byte Works', industry='Technology', city='Austin', state='TX'),
            BusinessData(name='Green Leaf Cafe', category='Restaurant', city='Dallas', state='TX'),
            BusinessData(name='Hudson Legal', description='Estate law firm', city='Albany', state='NY'),
            BusinessData(name='Roaming Plumbers', address='500 Congress Ave, Austin, TX 78701'),
        ]

    def test_identity_without_filters(self):
        """No filters: the very same list comes back"""
        assert filter_records(self.records) is self.records
        assert filter_records(self.records, Location(), '  ') is self.records

    def test_industry_technology(self):
        """Records with no match either way are excluded"""
        names = [r.name for r in filter_records(self.records, industry='Technology')]
        assert names == ['Byte Works']

    def test_industry_reverse_containment(self):
        """The field text may be contained in the filter"""
        record = BusinessData(name='Zed', industry='Law')
        assert matches_industry(record, 'Law firms')

    def test_industry_case_insensitive(self):
        names = [r.name for r in filter_records(self.records, industry='LAW')]
        assert names == ['Hudson Legal']

    def test_city_filter(self):
        names = [r.name for r in filter_records(self.records, Location(city='austin'))]
        assert names == ['Byte Works', 'Roaming Plumbers']

    def test_city_and_state_must_both_pass(self):
        record = BusinessData(name='X', city='Austin', state='NV')
        assert not matches_location(record, Location(city='Austin', state='TX'))

    def test_missing_fields_pass_location(self):
        """A record with no city or state is not excluded by location"""
        record = BusinessData(name='Nowhere Inc')
        assert matches_location(record, Location(city='Austin', state='TX'))

    def test_state_found_in_address(self):
        record = BusinessData(name='Y', state='Texas', address='1 Main St, Austin, TX 78701')
        assert matches_location(record, Location(state='TX'))

    def test_both_filters_are_anded(self):
        names = [r.name for r in filter_records(self.records, Location(state='TX'), 'restaurant')]
        assert names == ['Green Leaf Cafe']


class TestRecordNormalizer:
    """Test sentinel detection and field ordering"""

    def test_sentinel_record_is_detected(self):
        config = ScrapeConfig(location=Location(city='Austin'), industry='plumbers')
        record = sentinel_record(config)

        assert FAILURE_MARKER in record.name
        assert record.description.startswith(WARNING_GLYPH)
        assert record.state == 'Sample State'
        assert is_sample_record(record)

    def test_real_record_is_not_sample(self):
        assert not is_sample_record(BusinessData(name='Acme', description='Plumbing'))

    def test_sample_warning(self):
        config = ScrapeConfig()
        records = [sentinel_record(config), BusinessData(name='Acme')]

        warning = sample_warning(records)

        assert warning.startswith('1 of 2 records')
        assert sample_warning([BusinessData(name='Acme')]) is None

    def test_normalize_guarantees_names(self):
        record = BusinessData(name='Acme')
        record.name = ''

        records, warnings = normalize([record])

        assert records[0].name == UNKNOWN_BUSINESS
        assert warnings == []

    def test_order_fields(self):
        """Priority fields first, the rest alphabetical"""
        keys = ['zeta', 'description', 'email', 'name', 'alpha', 'email']
        assert order_fields(keys) == ['name', 'email', 'description', 'alpha', 'zeta']


class TestRecordEnhancer:
    """Test rule-based categorisation"""

    def setup_method(self):
        """Setup for each test"""
        self.enhancer = RecordEnhancer(ProcessingConfig(instructions='Categorise listings'))

    @pytest.mark.parametrize('description,category,industry', [
        ('An innovative software studio', 'Technology', 'Tech Companies'),
        ('Family cafe with breakfast all day', 'Food & Dining', 'Restaurants'),
        ('Professional bookkeeping', 'Professional Services', 'Consulting'),
        ('24 hour emergency plumbing', 'Home Services', 'Home Improvement'),
        ('Estate and family law', 'Legal Services', 'Lawyers'),
        ('Dog grooming salon', 'Other', 'Other'),
    ])
    def test_categorise_from_description(self, description, category, industry):
        enhanced = self.enhancer.enhance_record(BusinessData(name='Biz', description=description))

        assert enhanced.category == category
        assert enhanced.industry == industry

    def test_existing_values_kept(self):
        record = BusinessData(name='Biz', description='cafe', category='Bakery', industry='Food')
        enhanced = self.enhancer.enhance_record(record)

        assert enhanced.category == 'Bakery'
        assert enhanced.industry == 'Food'

    def test_industry_from_unmapped_category(self):
        enhanced = self.enhancer.enhance_record(BusinessData(name='Biz', category='Florist'))
        assert enhanced.industry == 'Florist'

    def test_never_invents_email(self):
        enhanced = self.enhancer.enhance(
            [BusinessData(name='Biz', website='https://biz-site.com', description='innovative')]
        )
        assert enhanced[0].email is None

    def test_location_from_address(self):
        enhanced = self.enhancer.enhance_record(
            BusinessData(name='Biz', address='77 King St, Charleston, SC 29401')
        )
        assert (enhanced.city, enhanced.state) == ('Charleston', 'SC')

    def test_returns_copies(self):
        record = BusinessData(name='Biz', description='cafe')
        self.enhancer.enhance([record])
        assert record.category is None
