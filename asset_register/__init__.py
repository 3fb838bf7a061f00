from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
import os
from asset_register.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def create_app(config_overrides=None):
    from pathlib import Path

    # Get the base directory (package's parent)
    base_dir = Path(__file__).parent.parent
    instance_dir = base_dir / 'instance'

    app = Flask(__name__)

    logger = get_logger("asset_register")
    logger.info("Initializing Flask application")

    config_overrides = dict(config_overrides or {})

    # SECURITY: Require SECRET_KEY - no fallback
    app.config['SECRET_KEY'] = config_overrides.pop('SECRET_KEY', None) or os.environ.get('SECRET_KEY')
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite file in instance/
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'asset_register.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Evidence / proof photo storage
    app.config['FILE_STORE_ROOT'] = os.environ.get('FILE_STORE_ROOT', str(instance_dir / 'photos'))
    app.config['MAX_PHOTO_BYTES'] = int(os.environ.get('MAX_PHOTO_BYTES', str(2 * 1024 * 1024)))  # Default: 2 MB

    # Asset tag format: <PREFIX>-<YYYY>-<NNNNNN>
    app.config['ASSET_TAG_PREFIX'] = os.environ.get('ASSET_TAG_PREFIX', 'AST')

    app.config.update(config_overrides)

    logger.debug(f"Database configured: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from asset_register.data.core.unit import Unit
    from asset_register.data.core.user_info.user import User
    from asset_register.data.core.asset_info.asset import Asset
    from asset_register.data.core.attachments.photo import Photo
    from asset_register.data.workflows.asset_movement import AssetMovement
    from asset_register.data.workflows.asset_loan import AssetLoan
    from asset_register.data.workflows.incident_report import IncidentReport
    from asset_register.data.workflows.asset_sale import AssetSale

    logger.debug("Models imported and registered")

    # Register blueprints
    from asset_register.presentation.routes import init_app as init_routes
    init_routes(app)

    logger.info("Flask application initialization complete")

    return app
