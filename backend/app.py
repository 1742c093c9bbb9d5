import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from backend.auth import auth
from backend.blocklist import make_blocklist
from backend.commands import register_commands
from backend.config import Config
from backend.database import db, init_db
from backend.errors import AuthenticationError, ParkPalError
from backend.extensions import cors, jwt, mail
from backend.payments import StripeGateway
from backend.routes import api

logger = logging.getLogger(__name__)


def create_app(config_class=Config, **overrides):
    """Builds the ParkPal API application."""
    app = Flask(__name__)

    # --- Application Configuration ---
    app.config.from_object(config_class)
    app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )

    # Initialize plugins
    db.init_app(app)
    jwt.init_app(app)
    mail.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}},
        supports_credentials=True
    )

    app.extensions['parkpal.blocklist'] = make_blocklist(app.config)
    if not app.config.get('STRIPE_SECRET_KEY'):
        logger.warning("STRIPE_SECRET_KEY is not set; payment endpoints will fail")
    app.extensions['parkpal.payment_gateway'] = StripeGateway(
        app.config.get('STRIPE_SECRET_KEY'),
        currency=app.config.get('STRIPE_CURRENCY', 'usd')
    )

    app.register_blueprint(auth)
    app.register_blueprint(api)
    register_error_handlers(app)
    register_commands(app)

    init_db(app)

    # Health Check Route
    @app.route('/')
    def health_check():
        return "ParkPal API is running."

    return app


def register_error_handlers(app):

    @app.errorhandler(ParkPalError)
    def handle_parkpal_error(e):
        if isinstance(e, AuthenticationError):
            return '', 401
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        # Keep API errors in the same {message} shape
        if request.path.startswith('/api/'):
            return jsonify({'message': e.description}), e.code
        return e


if __name__ == '__main__':
    create_app().run(debug=True)
