"""
Flask application factory for the Merchant Residuals Audit service.
"""
from flask import Flask, jsonify, request
from pathlib import Path
import logging
import os

from werkzeug.exceptions import HTTPException

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def create_storage():
    """Build the configured storage backend (filesystem or in-memory)."""
    from config import config

    if config.storage.is_filesystem():
        from storage.service import StorageService
        return StorageService(base_dir=config.storage.base_dir)

    from storage.memory import InMemoryStorage
    return InMemoryStorage()


def create_app(storage=None):
    """
    Application factory pattern.

    Args:
        storage: MerchantStore to serve from. Defaults to the backend
            selected by RESIDUALS_STORAGE.

    Returns:
        Configured Flask application instance
    """
    from config import config

    app = Flask(__name__)

    # App configuration
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['MAX_CONTENT_LENGTH'] = config.upload.max_content_length

    # Ensure instance folder exists
    instance_path = Path(app.instance_path)
    instance_path.mkdir(parents=True, exist_ok=True)

    app.extensions['storage'] = storage if storage is not None else create_storage()

    # Register blueprints
    from web.views import bp as main_bp
    app.register_blueprint(main_bp)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.name, 'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        app.logger.error(f"[ERROR] {request.method} {request.path}: {e}", exc_info=True)
        return jsonify({'error': 'Internal server error', 'message': str(e)}), 500

    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
