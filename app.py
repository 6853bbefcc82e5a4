"""
Laptop Rental - availability and booking system
Flask application factory and initialization
"""

import os
import atexit
import click
import logging
from flask import Flask, render_template, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config, ProductionConfig

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db, get_db

from models.services import EXTENSION_KEY, build_services
from models.sqlite_store import SQLiteIntervalStore
from utils.mailer import Mailer


def create_app(config_name=None, store=None, mailer=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')
        store: Interval Store to use instead of the SQLite database
        mailer: Mailer to use instead of the Resend-backed one

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    if config_name == 'production':
        ProductionConfig.validate()

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Wire store, engine, workflow and mailer
    initialize_services(app, store, mailer)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register context processors
    register_context_processors(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)


def initialize_services(app, store=None, mailer=None):
    """Build the booking services and attach them to the app."""
    if store is None:
        db_path = app.config['DATABASE_PATH']
        db_dir = os.path.dirname(db_path)
        if db_path != ':memory:' and db_dir:
            os.makedirs(db_dir, exist_ok=True)
        store = SQLiteIntervalStore(get_db, timeout=app.config['STORE_TIMEOUT_SECONDS'])

    if mailer is None:
        mailer = Mailer(
            api_key=app.config.get('RESEND_API_KEY'),
            template_folder=os.path.join(app.root_path, 'templates', 'email'),
            enabled=app.config.get('MAIL_ENABLED', True)
        )
        mailer.start()
        atexit.register(mailer.stop)

    app.extensions[EXTENSION_KEY] = build_services(
        store, mailer,
        mail_from=app.config['MAIL_FROM'],
        operator_email=app.config['OPERATOR_EMAIL']
    )


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.public.routes import public_bp
    from blueprints.auth.routes import auth_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.api.routes import api_bp

    # Register blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp, url_prefix='/user')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(api_bp, url_prefix='/api')


def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return render_template('errors/404.html'), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        return render_template('errors/500.html'), 500

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        return render_template('errors/403.html'), 403


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-user')
    @click.argument('email')
    @click.option('--first-name', default='', help='First name')
    @click.option('--last-name', default='', help='Last name')
    @click.password_option()
    def create_user_command(email, first_name, last_name, password):
        """Create a new administrator."""
        from models.errors import PersistenceError
        from models.services import get_services

        with app.app_context():
            try:
                user_id = get_services().store.create_user(
                    email=email,
                    password=password,
                    first_name=first_name,
                    last_name=last_name
                )
                click.echo(f'User created successfully! ID: {user_id}')
            except PersistenceError as e:
                click.echo(f'Error creating user: {str(e)}', err=True)

    @app.cli.command('add-laptop')
    @click.argument('name')
    def add_laptop_command(name):
        """Add a laptop to the rental catalog."""
        from models.errors import PersistenceError
        from models.services import get_services

        with app.app_context():
            try:
                laptop_id = get_services().store.create_laptop(name)
                click.echo(f'Laptop added successfully! ID: {laptop_id}')
            except PersistenceError as e:
                click.echo(f'Error adding laptop: {str(e)}', err=True)


def register_context_processors(app):
    """Register template context processors."""

    @app.context_processor
    def utility_processor():
        """Inject utility values into templates."""
        from datetime import datetime

        return {
            'current_year': datetime.now().year,
            'app_name': app.config.get('APP_NAME', 'Laptop Rental'),
            'app_version': app.config.get('APP_VERSION', '1.0.0')
        }

    # Add custom template filters
    @app.template_filter('format_date')
    def format_date_filter(value, format='%Y-%m-%d'):
        """Format a date or ISO date string."""
        from utils.datetime_helpers import parse_date
        if not value:
            return ''
        try:
            return parse_date(value).strftime(format)
        except (TypeError, ValueError):
            return value


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/laptop_rental.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        # Module loggers (models, utils) share the file
        logging.getLogger('models').addHandler(file_handler)
        logging.getLogger('models').setLevel(logging.INFO)
        logging.getLogger('utils').addHandler(file_handler)
        logging.getLogger('utils').setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('Laptop Rental startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
