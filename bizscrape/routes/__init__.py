"""
API Routes Package
"""

from bizscrape.routes.scraper import scraper_bp
from bizscrape.routes.export import export_bp
from bizscrape.routes.records import records_bp
from bizscrape.routes.health import health_bp

__all__ = ['scraper_bp', 'export_bp', 'records_bp', 'health_bp']
