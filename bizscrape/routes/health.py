"""
Health Check Routes
"""

from datetime import datetime

from flask import Blueprint, jsonify

from bizscrape.services import shared_services

health_bp = Blueprint('health', __name__)

API_VERSION = '1.0.0'


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Liveness plus a summary of background scrape jobs"""
    return jsonify({
        'status': 'healthy',
        'service': 'bizscrape',
        'version': API_VERSION,
        'timestamp': datetime.utcnow().isoformat(),
        'jobs': shared_services.job_manager.get_job_statistics()
    })


@health_bp.route('/', methods=['GET'])
def api_info():
    """Endpoint map"""
    return jsonify({
        'name': 'BizScrape API',
        'version': API_VERSION,
        'endpoints': {
            'health': 'GET /api/health',
            'run': 'POST /api/scraper/run',
            'jobs': 'GET|POST /api/scraper/jobs',
            'permissions': 'POST /api/scraper/permissions',
            'export': 'POST /api/export/csv, POST /api/export/json',
            'records': 'GET /api/records'
        }
    })
