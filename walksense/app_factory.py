# walksense/app_factory.py
import click
from flask import Flask, jsonify
from flask_login import LoginManager
from sqlalchemy.exc import OperationalError
from walksense.init_db import db
from walksense.errors import register_error_handlers
from walksense.logging_config import setup_logging
from walksense.authentication.models import User
from walksense.authentication.seed import create_seed_accounts, load_seed_accounts
from walksense.authentication.views import get_pending_store, load_user_from_request
from walksense.mail import get_mailer

# Registers the location tables on the shared metadata
from walksense.location import models as location_models  # noqa: F401


def create_app(config_class='walksense.config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_class)

    setup_logging(app.config.get('LOG_TIMEZONE'))

    db.init_app(app)

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.request_loader
    def load_user_from_bearer(request):
        return load_user_from_request(request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'Unauthenticated.'}), 401

    register_error_handlers(app)

    get_pending_store(app)
    get_mailer(app)

    prefix = app.config.get('API_URL_PREFIX', '/api').rstrip('/')

    # Import and register blueprints
    from walksense.authentication.routes import auth_bp as auth_blueprint
    app.register_blueprint(auth_blueprint, url_prefix=prefix or None)

    from walksense.location.routes import location_bp as location_blueprint
    app.register_blueprint(location_blueprint, url_prefix=f'{prefix}/location')

    @app.cli.command('seed-accounts')
    @click.argument('json_path', required=False)
    def seed_accounts_command(json_path):
        """Create the demo guardian/PWD accounts listed in a JSON file."""
        accounts = load_seed_accounts(json_path or app.config.get('SEED_ACCOUNTS_PATH'))
        click.echo(f"Created {create_seed_accounts(accounts)} account pair(s).")

    with app.app_context():
        try:
            db.create_all()
            create_seed_accounts(load_seed_accounts(app.config.get('SEED_ACCOUNTS_PATH')))
        except OperationalError as e:
            app.logger.error(f"OperationalError during database initialization: {e}")

    return app
