"""
Application Configuration
"""

import os


def _env_list(name: str, default: list) -> list:
    """Read a comma separated list from the environment"""
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    """Base configuration class"""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'

    # Scraping Configuration
    SCRAPING_DELAY = int(os.getenv('SCRAPING_DELAY', 2))
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', 30))
    MIN_CONTENT_LENGTH = int(os.getenv('MIN_CONTENT_LENGTH', 100))
    USE_FAKE_USERAGENT = os.getenv('USE_FAKE_USERAGENT', '0') == '1'
    CRAWLER_USER_AGENT = os.getenv(
        'CRAWLER_USER_AGENT',
        'Mozilla/5.0 (compatible; BizScrapeCrawler/1.0)'
    )

    # Pass-through relays, tried in order
    RELAY_URLS = _env_list('RELAY_URLS', [
        'https://api.allorigins.win/raw?url=',
        'https://corsproxy.io/?',
        'https://cors-anywhere.herokuapp.com/',
    ])
    SEARCH_RELAY_URLS = _env_list('SEARCH_RELAY_URLS', [
        'https://corsproxy.io/?',
        'https://api.allorigins.win/raw?url=',
        'https://cors-anywhere.herokuapp.com/',
        'https://cors.eu.org/',
        'https://crossorigin.me/',
        'https://crossorigin.kirchner.dev/?url=',
    ])
    ALTERNATE_SEARCH_RELAY_URLS = _env_list('ALTERNATE_SEARCH_RELAY_URLS', [
        'https://corsproxy.io/?',
        'https://api.allorigins.win/raw?url=',
    ])

    # Crawl policy
    RESTRICTIVE_DISALLOW_COUNT = int(os.getenv('RESTRICTIVE_DISALLOW_COUNT', 10))
    HIGH_CRAWL_DELAY_SECONDS = int(os.getenv('HIGH_CRAWL_DELAY_SECONDS', 30))
    DENYLISTED_SITES = _env_list('DENYLISTED_SITES', [
        'linkedin.com',
        'instagram.com',
        'facebook.com',
        'twitter.com',
        'amazon.com/s',
        'indeed.com',
    ])

    # Email enrichment
    EMAIL_ENRICH_THRESHOLD = float(os.getenv('EMAIL_ENRICH_THRESHOLD', 0.7))
    EMAIL_ENRICH_MAX_RECORDS = int(os.getenv('EMAIL_ENRICH_MAX_RECORDS', 20))
    EMAIL_ENRICH_BATCH_SIZE = int(os.getenv('EMAIL_ENRICH_BATCH_SIZE', 3))
    MAX_CONTACT_PAGES = int(os.getenv('MAX_CONTACT_PAGES', 2))

    # Storage and export
    DATA_FOLDER = os.getenv('DATA_FOLDER', 'data')
    EXPORT_FOLDER = os.getenv('EXPORT_FOLDER', 'exports')
    MAX_EXPORT_ROWS = int(os.getenv('MAX_EXPORT_ROWS', 10000))

    # Background jobs
    JOB_RETENTION_HOURS = float(os.getenv('JOB_RETENTION_HOURS', 24))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True
    SCRAPING_DELAY = 0
