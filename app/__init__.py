import os
import logging
from flask import Flask, jsonify, redirect
from dotenv import load_dotenv
from pydantic import ValidationError

from .config import DevConfig, ProdConfig, TestConfig
from .errors import BackendError, FormError, UnauthorizedError

CONFIGS = {
    'development': DevConfig,
    'production': ProdConfig,
    'testing': TestConfig,
}


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    app.config.from_object(CONFIGS.get(env, ProdConfig))

    # Initialise logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO)

    from app.auth.guard import close_session, current_session, open_session, redirect_to_login
    from app.quotations.drafts import DraftStore

    app.extensions['drafts'] = DraftStore(ttl=app.config['DRAFT_TTL_MINUTES'] * 60)
    app.before_request(open_session)
    app.teardown_appcontext(close_session)

    @app.route('/')
    def index():
        return redirect(app.config['DEFAULT_SCREEN'])

    @app.errorhandler(UnauthorizedError)
    def unauthorized(e):
        # Any 401 from the backend ends the session, wherever it happened.
        auth = current_session()
        user = auth.user or {}
        logging.warning("backend rejected session for %s", user.get('username'))
        auth.clear()
        app.extensions['drafts'].discard_user(user.get('id'))
        return redirect_to_login(message=e.message)

    @app.errorhandler(BackendError)
    def backend_error(e):
        status = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
        return jsonify(error=e.message, errors=e.errors), status

    @app.errorhandler(FormError)
    def form_error(e):
        return jsonify(error=e.message), 400

    @app.errorhandler(ValidationError)
    def validation_error(e):
        errors = [
            {'field': '.'.join(str(p) for p in err['loc']), 'message': err['msg']}
            for err in e.errors()
        ]
        return jsonify(error='Invalid input', errors=errors), 400

    @app.errorhandler(404)
    def not_found(_):
        return jsonify(error='Not found'), 404

    @app.errorhandler(500)
    def server_error(_):
        return jsonify(error='Internal server error'), 500

    from app.auth.routes import bp as auth_bp
    from app.bundles.routes import bp as bundles_bp
    from app.equipment.routes import bp as equipment_bp
    from app.quotations.routes import bp as quotations_bp
    from app.cli import quotations_cli

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(equipment_bp, url_prefix='/equipment')
    app.register_blueprint(bundles_bp, url_prefix='/bundles')
    app.register_blueprint(quotations_bp, url_prefix='/quotations')
    app.cli.add_command(quotations_cli)

    return app
