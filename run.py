"""
BizScrape Backend
Main entry point for the Flask application
"""

import os
from dotenv import load_dotenv

# Load environment variables before the config module reads them
load_dotenv()

from bizscrape import create_app
from bizscrape.config import DevelopmentConfig, ProductionConfig

config_class = ProductionConfig if os.getenv('FLASK_ENV') == 'production' else DevelopmentConfig
app = create_app(config_class)

if __name__ == '__main__':
    host = os.getenv('HOST', '0.0.0.0')
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_DEBUG', '1') == '1'

    print(f"BizScrape backend running on http://{host}:{port}")

    app.run(host=host, port=port, debug=debug)
