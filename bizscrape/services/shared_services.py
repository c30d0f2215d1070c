"""
Shared Service Instances
Singleton instances shared across all blueprints
"""

from bizscrape.services.scraper_service import ScraperService
from bizscrape.services.persistence import PersistenceGateway
from bizscrape.services.scraping_job_manager import ScrapeJobManager

# Shared instances - these are singletons used across all blueprints
scraper_service = ScraperService()
record_store = PersistenceGateway()
job_manager = ScrapeJobManager(scraper_service, record_store)
