"""
Web Scraper Routes
"""

import asyncio

from flask import Blueprint, jsonify, request
from loguru import logger

from bizscrape.models.scrape import ScrapeConfig, ProcessingConfig, ResultStatus, parse_flag
from bizscrape.services import shared_services

scraper_bp = Blueprint('scraper', __name__)


def _parse_run_request(data):
    """Scrape and processing configs from a request body"""
    config = ScrapeConfig.from_dict(data.get('config') or data)
    processing = ProcessingConfig.from_dict(data.get('processing')) if data.get('processing') else None
    return config, processing


@scraper_bp.route('/run', methods=['POST'])
def run_scrape():
    """Run the scrape pipeline and wait for the result"""
    try:
        data = request.get_json() or {}
        config, processing = _parse_run_request(data)

        service = shared_services.scraper_service
        result = service.run_sync(config, processing)

        saved_result_id = None
        if parse_flag(data.get('save', False)) and result.processed_data:
            saved_result_id = service.save_run(shared_services.record_store, config, processing, result)

        payload = result.to_dict(include_raw=parse_flag(data.get('include_raw', True)))
        payload['saved_result_id'] = saved_result_id

        return jsonify({
            'success': result.status == ResultStatus.SUCCESS,
            'data': payload
        })

    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid scrape request: {str(e)}")
        return jsonify({
            'success': False,
            'error': f"Invalid request: {str(e)}"
        }), 400
    except Exception as e:
        logger.error(f"Error running scrape: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@scraper_bp.route('/jobs', methods=['POST'])
def start_job():
    """Start a scrape run in the background"""
    try:
        data = request.get_json() or {}
        config, processing = _parse_run_request(data)

        manager = shared_services.job_manager
        job = manager.create_job(config, processing, save=parse_flag(data.get('save', False)))
        manager.start_job(job.job_id)

        return jsonify({
            'success': True,
            'data': {
                'job_id': job.job_id,
                'status': job.status.value,
                'message': 'Scrape job started'
            }
        }), 202

    except (TypeError, ValueError) as e:
        return jsonify({
            'success': False,
            'error': f"Invalid request: {str(e)}"
        }), 400
    except Exception as e:
        logger.error(f"Error starting scrape job: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@scraper_bp.route('/jobs', methods=['GET'])
def list_jobs():
    """List scrape jobs, newest first"""
    try:
        limit = request.args.get('limit', 50, type=int)
        jobs = shared_services.job_manager.list_jobs(limit=limit)

        return jsonify({
            'success': True,
            'data': {
                'jobs': [job.to_dict(include_records=False) for job in jobs],
                'total': len(jobs)
            }
        })

    except Exception as e:
        logger.error(f"Error listing jobs: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@scraper_bp.route('/jobs/<job_id>', methods=['GET'])
def get_job(job_id):
    """Get job status and, once finished, its records"""
    job = shared_services.job_manager.get_job(job_id)
    if not job:
        return jsonify({
            'success': False,
            'error': 'Job not found'
        }), 404

    return jsonify({
        'success': True,
        'data': job.to_dict()
    })


@scraper_bp.route('/jobs/<job_id>/cancel', methods=['POST'])
def cancel_job(job_id):
    """Request cancellation of a pending or running job"""
    manager = shared_services.job_manager
    job = manager.get_job(job_id)
    if not job:
        return jsonify({
            'success': False,
            'error': 'Job not found'
        }), 404

    if not manager.cancel_job(job_id):
        return jsonify({
            'success': False,
            'error': f"Job already {job.status.value}"
        }), 409

    return jsonify({
        'success': True,
        'data': {
            'job_id': job_id,
            'status': job.status.value,
            'message': 'Cancellation requested'
        }
    })


@scraper_bp.route('/permissions', methods=['POST'])
def check_permissions():
    """Check robots.txt and denylist for a URL"""
    try:
        data = request.get_json() or {}
        url = (data.get('url') or '').strip()

        if not url:
            return jsonify({
                'success': False,
                'error': 'url is required'
            }), 400

        permission = asyncio.run(shared_services.scraper_service.check_permissions(url))

        return jsonify({
            'success': True,
            'data': permission.to_dict()
        })

    except Exception as e:
        logger.error(f"Error checking permissions: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@scraper_bp.route('/config', methods=['GET'])
def get_scraper_config():
    """Effective scraper settings"""
    config = shared_services.scraper_service.config

    return jsonify({
        'success': True,
        'data': {
            'relays': list(config.RELAY_URLS),
            'search_relays': list(config.SEARCH_RELAY_URLS),
            'alternate_search_relays': list(config.ALTERNATE_SEARCH_RELAY_URLS),
            'denylisted_sites': list(config.DENYLISTED_SITES),
            'default_delay_seconds': config.SCRAPING_DELAY,
            'min_content_length': config.MIN_CONTENT_LENGTH,
            'email_enrichment': {
                'threshold': config.EMAIL_ENRICH_THRESHOLD,
                'max_records': config.EMAIL_ENRICH_MAX_RECORDS,
                'batch_size': config.EMAIL_ENRICH_BATCH_SIZE,
                'max_contact_pages': config.MAX_CONTACT_PAGES
            },
            'default_policy': ScrapeConfig().policy.to_dict()
        }
    })
