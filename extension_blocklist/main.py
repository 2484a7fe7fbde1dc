"""
Main Flask application entry point

Production: gunicorn extension_blocklist.wsgi:app
"""

from flask import jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from extension_blocklist.config import Config
from extension_blocklist.errors import SettingsError
from extension_blocklist.settings import ExtensionSettings
from extension_blocklist.store.factory import create_store
from extension_blocklist.utils.logger import setup_logger
from extension_blocklist.web_ui import create_web_ui_app

VERSION = '1.0.0'


def create_app(config=None, store=None):
    """
    Build the application

    Args:
        config: Optional Config (loaded from file/environment when omitted)
        store: Optional ExtensionStore (built from config when omitted)

    Returns:
        Flask app instance
    """
    config = config or Config()
    logger = setup_logger(config)

    store = store or create_store(config, logger)
    settings = ExtensionSettings(store, config.limits, logger)

    try:
        settings.refresh()
    except SettingsError:
        logger.warning("Starting with an empty extension list; the store is unavailable")

    app = create_web_ui_app(config, logger, settings)
    CORS(app)

    limiter = Limiter(
        app=app,
        key_func=get_remote_address,
        default_limits=["2000 per day", "300 per hour"],
        storage_uri="memory://"
    )

    # Write endpoints share the configured limit; reads use the defaults
    for endpoint in ('add_extensions', 'update_extensions', 'delete_extensions'):
        app.view_functions[endpoint] = limiter.limit(
            config.security.write_rate_limit
        )(app.view_functions[endpoint])

    @app.route('/health', methods=['GET'])
    @limiter.exempt
    def health_check():
        """
        Health check endpoint
        """
        return jsonify({
            "status": "healthy",
            "version": VERSION,
            "service": "extension-blocklist",
            "storage": config.storage.backend,
            "extensions": len(settings.records)
        }), 200

    return app


if __name__ == '__main__':
    config = Config()
    app = create_app(config)

    # Development mode only - use gunicorn in production
    app.config['APP_LOGGER'].warning("Running in development mode. Use gunicorn for production.")
    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.server.debug
    )
