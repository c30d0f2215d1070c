"""
Data Export Routes
"""

from flask import Blueprint, jsonify, request, send_file, current_app
from loguru import logger
import os

from bizscrape.services.export_service import ExportService
from bizscrape.services.record_normalizer import sample_warning
from bizscrape.services.scraper_service import ScraperService

export_bp = Blueprint('export', __name__)

EXPORTERS = {
    'csv': 'export_to_csv',
    'json': 'export_to_json',
}


def _export(file_format: str):
    data = request.get_json() or {}
    records = ScraperService.records_from_payload(data.get('records') or [])

    if not records:
        return jsonify({
            'success': False,
            'error': 'No records found to export'
        }), 404

    export_service = ExportService(current_app.config.get('EXPORT_FOLDER'))
    filename = os.path.basename(data.get('filename') or ExportService.default_filename(file_format))
    filepath = getattr(export_service, EXPORTERS[file_format])(records, filename)

    logger.info(f"Exported {len(records)} records to {file_format.upper()}: {filename}")

    return jsonify({
        'success': True,
        'data': {
            'filename': filename,
            'filepath': filepath,
            'total_exported': len(records),
            'warning': sample_warning(records),
            'download_url': f'/api/export/download/{filename}'
        }
    })


@export_bp.route('/csv', methods=['POST'])
def export_to_csv():
    """Export posted records to a CSV file"""
    try:
        return _export('csv')
    except Exception as e:
        logger.error(f"Error exporting to CSV: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@export_bp.route('/json', methods=['POST'])
def export_to_json():
    """Export posted records to a JSON file"""
    try:
        return _export('json')
    except Exception as e:
        logger.error(f"Error exporting to JSON: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@export_bp.route('/download/<filename>', methods=['GET'])
def download_file(filename):
    """Download an exported file"""
    try:
        export_folder = current_app.config.get('EXPORT_FOLDER', 'exports')
        filepath = os.path.abspath(os.path.join(export_folder, os.path.basename(filename)))

        if not os.path.exists(filepath):
            return jsonify({
                'success': False,
                'error': 'File not found'
            }), 404

        return send_file(
            filepath,
            as_attachment=True,
            download_name=filename
        )

    except Exception as e:
        logger.error(f"Error downloading file: {str(e)}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500
