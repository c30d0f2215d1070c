"""
Stored Record Routes
"""

from flask import Blueprint, jsonify, request
from loguru import logger

from bizscrape.services import shared_services
from bizscrape.services.errors import PersistenceError

records_bp = Blueprint('records', __name__)


def _storage_error(e: PersistenceError):
    logger.error(f"Record store error: {str(e)}")
    return jsonify({
        'success': False,
        'error': str(e)
    }), 503


@records_bp.route('', methods=['GET'])
def list_records():
    """Stored business records, optionally for one result"""
    try:
        store = shared_services.record_store
        result_id = request.args.get('result_id')

        if result_id:
            records = store.list_records(result_id)
        else:
            records = store.list_all_records(limit=request.args.get('limit', 1000, type=int))

        return jsonify({
            'success': True,
            'data': {
                'records': records,
                'total': len(records)
            }
        })

    except PersistenceError as e:
        return _storage_error(e)
    except Exception as e:
        logger.error(f"Error listing records: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@records_bp.route('/<record_id>', methods=['DELETE'])
def delete_record(record_id):
    """Delete a stored business record"""
    try:
        if not shared_services.record_store.delete_record(record_id):
            return jsonify({
                'success': False,
                'error': 'Record not found'
            }), 404

        return jsonify({
            'success': True,
            'message': 'Record deleted successfully'
        })

    except PersistenceError as e:
        return _storage_error(e)
    except Exception as e:
        logger.error(f"Error deleting record {record_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@records_bp.route('/results', methods=['GET'])
def list_results():
    """Most recent saved run results"""
    try:
        limit = request.args.get('limit', 10, type=int)
        results = shared_services.record_store.list_results(limit)

        return jsonify({
            'success': True,
            'data': {
                'results': results,
                'total': len(results)
            }
        })

    except PersistenceError as e:
        return _storage_error(e)
    except Exception as e:
        logger.error(f"Error listing results: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@records_bp.route('/configs', methods=['GET'])
def list_configs():
    """Saved scrape and processing configurations"""
    try:
        store = shared_services.record_store

        return jsonify({
            'success': True,
            'data': {
                'scrape_configs': store.list_configs(),
                'processing_configs': store.list_processing_configs()
            }
        })

    except PersistenceError as e:
        return _storage_error(e)
    except Exception as e:
        logger.error(f"Error listing configs: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500
