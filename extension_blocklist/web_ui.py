"""
Web UI routes and handlers
"""

from flask import Flask, render_template, request, jsonify, redirect, url_for, session
from functools import wraps

from extension_blocklist.errors import ExtensionNotFound, SettingsError
from extension_blocklist.reconciler import RejectReason, Rejected
from extension_blocklist.settings import GENERIC_ERROR_MESSAGE

# Rejections caused by the input itself; the rest conflict with stored state
BAD_INPUT_REASONS = (RejectReason.EMPTY_INPUT, RejectReason.TOO_LONG, RejectReason.INVALID_CHARS)

UPDATE_FIELDS = ('enabled', 'name', 'type')


def _raw_input_from(data):
    """
    Extract the comma-separated submission from a POST body

    Accepts {"input": "a, b"}, {"input": ["a", "b"]}, {"name": "a"}
    or [{"name": "a"}, {"name": "b"}].
    """
    if isinstance(data, list):
        return ','.join(str(item.get('name') or '') for item in data if isinstance(item, dict))
    if isinstance(data, dict):
        value = data.get('input') or data.get('name') or ''
        if isinstance(value, (list, tuple)):
            return ','.join(str(item) for item in value if item is not None)
        return str(value)
    return ''


def _is_true(value):
    if isinstance(value, bool):
        return value
    return str(value).lower() in ('1', 'true', 'yes', 'on')


def create_web_ui_app(config, logger, settings):
    """
    Create Web UI Flask application

    Args:
        config: Application configuration
        logger: Logger instance
        settings: ExtensionSettings instance

    Returns:
        Flask app instance
    """
    app = Flask(__name__)
    app.secret_key = config.security.session_secret
    app.config['MAX_CONTENT_LENGTH'] = config.security.max_payload_size

    # Store references
    app.config['APP_CONFIG'] = config
    app.config['APP_LOGGER'] = logger
    app.config['APP_SETTINGS'] = settings

    # Authentication decorator
    def require_auth(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if config.webui.username and config.webui.password:
                if not session.get('authenticated'):
                    if request.path.startswith('/api/'):
                        return jsonify({'status': 'error', 'message': 'Authentication required'}), 401
                    return redirect(url_for('login'))
            return f(*args, **kwargs)
        return decorated_function

    def error_response(message, status):
        return jsonify({'status': 'error', 'message': message or GENERIC_ERROR_MESSAGE}), status

    @app.errorhandler(SettingsError)
    def handle_settings_error(e):
        logger.error(f"Request failed: {str(e)}", exc_info=True)
        return error_response(str(e), 500)

    @app.errorhandler(ExtensionNotFound)
    def handle_not_found(e):
        return error_response(str(e), 404)

    @app.route('/')
    @require_auth
    def settings_page():
        """Extension settings page"""
        return render_template(
            'settings.html',
            fixed=settings.fixed(),
            custom=settings.custom(),
            all_fixed_enabled=settings.all_fixed_enabled(),
            max_custom=config.limits.max_custom,
            max_length=config.limits.max_length
        )

    @app.route('/login', methods=['GET', 'POST'])
    def login():
        """Login page"""
        if request.method == 'POST':
            username = request.form.get('username')
            password = request.form.get('password')

            if (username == config.webui.username and
                    password == config.webui.password):
                session['authenticated'] = True
                return redirect(url_for('settings_page'))
            else:
                return render_template('login.html', error='Invalid credentials')

        return render_template('login.html')

    @app.route('/logout')
    def logout():
        """Logout"""
        session.pop('authenticated', None)
        return redirect(url_for('login'))

    # API Endpoints

    @app.route('/api/extensions', methods=['GET'])
    @require_auth
    def list_extensions():
        """List every extension"""
        if _is_true(request.args.get('refresh', False)):
            settings.refresh()
        return jsonify([ext.to_dict() for ext in settings.records])

    @app.route('/api/extensions', methods=['POST'])
    @require_auth
    def add_extensions():
        """Add extensions from a comma-separated submission"""
        data = request.get_json(silent=True)
        result = settings.add(_raw_input_from(data))

        if isinstance(result, Rejected):
            status = 400 if result.reason in BAD_INPUT_REASONS else 409
            return jsonify({
                'status': 'error',
                'reason': result.reason.value,
                'names': result.names,
                'message': result.message
            }), status

        body = result.to_dict()
        body['status'] = 'success'
        return jsonify(body), 201

    @app.route('/api/extensions', methods=['PUT'])
    @require_auth
    def update_extensions():
        """Update fields of one extension or enable/disable every fixed extension"""
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return error_response('Invalid payload format', 400)

        if data.get('bulk') == 'fixedToggleAll':
            if 'enabled' not in data:
                return error_response('Missing enabled flag', 400)
            updated = settings.set_all_fixed(_is_true(data['enabled']))
            return jsonify({'status': 'success', 'updated': len(updated)})

        record_id = data.get('id')
        fields = {key: data[key] for key in UPDATE_FIELDS if data.get(key) is not None}
        if 'enabled' in fields:
            fields['enabled'] = _is_true(fields['enabled'])

        if not record_id or not fields:
            return error_response('Missing extension id or data to update', 400)

        try:
            record_id = int(record_id)
        except (TypeError, ValueError):
            return error_response(f"Invalid extension id: {record_id}", 400)

        try:
            record = settings.update(record_id, fields)
        except ValueError as e:
            return error_response(str(e), 400)

        return jsonify(record.to_dict())

    @app.route('/api/extensions', methods=['DELETE'])
    @require_auth
    def delete_extensions():
        """Delete one extension or every custom extension"""
        record_id = request.args.get('id')
        clear = request.args.get('all')

        if clear == 'custom':
            if not _is_true(request.args.get('confirm', False)):
                return error_response('Deleting all custom extensions requires confirm=true', 400)
            removed = settings.clear_custom(confirm=True)
            return jsonify({'status': 'success', 'deleted': removed})

        if not record_id:
            return error_response('Missing extension id', 400)

        try:
            settings.delete(int(record_id))
        except ValueError:
            return error_response(f"Invalid extension id: {record_id}", 400)

        return '', 204

    return app
