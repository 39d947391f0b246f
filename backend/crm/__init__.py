import os
import sys
import logging
from contextlib import contextmanager
import click
from flask import Flask, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
migrate = Migrate()

logger = logging.getLogger(__name__)


def create_app(config_overrides=None):
    app = Flask(__name__)
    config_overrides = config_overrides or {}

    is_production = os.getenv('FLASK_ENV') == 'production'

    # Require SECRET_KEY — no insecure fallback
    secret_key = config_overrides.get('SECRET_KEY') or os.getenv('SECRET_KEY')
    if not secret_key:
        raise RuntimeError('SECRET_KEY environment variable is required')
    app.config['SECRET_KEY'] = secret_key

    # Database configuration
    database_url = config_overrides.get('SQLALCHEMY_DATABASE_URI') or os.getenv('DATABASE_URL')
    if not database_url:
        raise RuntimeError('DATABASE_URL environment variable is required')

    if is_production and not database_url.startswith('postgresql'):
        raise RuntimeError(
            'Production requires PostgreSQL. '
            'DATABASE_URL must start with postgresql://'
        )

    app.config['SQLALCHEMY_DATABASE_URI'] = database_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if not database_url.startswith('sqlite'):
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {
            'pool_pre_ping': True,
            'pool_recycle': 300,
        }

    # Request size limit (1 MB)
    app.config['MAX_CONTENT_LENGTH'] = 1 * 1024 * 1024

    app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # CORS — restrict origins
    allowed_origins = os.getenv('ALLOWED_ORIGINS', '')
    if allowed_origins:
        origins_list = [o.strip() for o in allowed_origins.split(',') if o.strip()]
    elif is_production:
        raise RuntimeError(
            'ALLOWED_ORIGINS environment variable is required in production'
        )
    else:
        # Development: allow localhost variants
        origins_list = [
            'http://localhost:*',
            'http://127.0.0.1:*',
        ]

    CORS(app, resources={
        r"/api/*": {"origins": origins_list},
    })

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'no-referrer'
        return response

    # Validate Content-Type on write requests
    @app.before_request
    def validate_content_type():
        if request.method in ('POST', 'PUT', 'PATCH') and request.path.startswith('/api/'):
            content_type = request.content_type or ''
            if 'application/json' not in content_type:
                from flask import jsonify
                return jsonify({'error': 'Content-Type must be application/json'}), 415

    # Setup audit logging
    from crm.utils.audit_logger import setup_audit_logging
    setup_audit_logging(app)

    # Register blueprints
    from crm.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix='/api')

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy'}, 200

    register_cli(app)

    return app


@contextmanager
def progress_to_stdout():
    """Print crm.* progress logging to stdout while a CLI command runs."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    crm_logger = logging.getLogger('crm')
    previous_level = crm_logger.level
    crm_logger.addHandler(handler)
    crm_logger.setLevel(logging.INFO)
    try:
        yield
    finally:
        crm_logger.removeHandler(handler)
        crm_logger.setLevel(previous_level)


def register_cli(app):
    """CLI wrappers around the data migrations."""

    @app.cli.command('migrate-to-crm')
    @click.option('--execute', is_flag=True, help='Write changes (default is a dry run).')
    def migrate_to_crm_command(execute):
        """Create Person/Unit records from legacy application data."""
        from crm.reconcile import ReconciliationMigrator, MigrationError
        from crm.store import CrmStore
        with progress_to_stdout():
            try:
                ReconciliationMigrator(CrmStore(), commit=execute).run()
            except MigrationError as e:
                logger.error(f'Migration failed: {e}')
                sys.exit(1)

    @app.cli.command('link-units')
    @click.option('--execute', is_flag=True, help='Write changes (default is a dry run).')
    def link_units_command(execute):
        """Link applications to Unit rows by property name and unit number."""
        from crm.unit_linker import UnitLinker
        from crm.store import CrmStore
        with progress_to_stdout():
            UnitLinker(CrmStore(), commit=execute).run()

    @app.cli.command('seed-default-tasks')
    def seed_default_tasks_command():
        """Add the default applicant checklist to applications without tasks."""
        from crm.default_tasks import seed_default_tasks
        with progress_to_stdout():
            result = seed_default_tasks()
        click.echo(f"Applications updated: {result['updated']}, skipped: {result['skipped']}")
