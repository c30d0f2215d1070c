"""
Flask Application Factory
"""

from flask import Flask, jsonify
from flask_cors import CORS
from loguru import logger
from werkzeug.exceptions import HTTPException
import os
import sys

from bizscrape.config import Config


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(log_level: str = None, log_file: str = None):
    """Configure loguru sinks: stdout plus a rotating file"""
    log_level = log_level or os.getenv('LOG_LEVEL', 'INFO')
    log_file = log_file if log_file is not None else os.getenv('LOG_FILE', 'logs/bizscrape.log')

    logger.remove()
    logger.add(sys.stdout, level=log_level, format=CONSOLE_FORMAT)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention="30 days",
            level=log_level,
            format=FILE_FORMAT
        )

    return logger


def register_error_handlers(app: Flask):
    """Uniform JSON envelope for errors raised outside the route try blocks"""

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({
            'success': False,
            'error': e.description
        }), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception(f"Unhandled error: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'Internal server error'
        }), 500


def create_app(config_class=Config):
    """Create and configure the Flask application"""

    setup_logging(log_file='' if getattr(config_class, 'TESTING', False) else None)
    logger.info("Starting BizScrape backend")

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Disable strict slashes to prevent redirects that break CORS preflight
    app.url_map.strict_slashes = False

    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         methods=["GET", "POST", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Accept"],
         supports_credentials=False)

    os.makedirs(app.config['EXPORT_FOLDER'], exist_ok=True)

    from bizscrape.routes.scraper import scraper_bp
    from bizscrape.routes.export import export_bp
    from bizscrape.routes.records import records_bp
    from bizscrape.routes.health import health_bp

    app.register_blueprint(health_bp, url_prefix='/api')
    app.register_blueprint(scraper_bp, url_prefix='/api/scraper')
    app.register_blueprint(export_bp, url_prefix='/api/export')
    app.register_blueprint(records_bp, url_prefix='/api/records')

    register_error_handlers(app)

    logger.info("Application initialized successfully")

    return app
