"""
Routes package for the asset register
JSON API only; domain errors are translated to HTTP status codes here.
"""

from flask import jsonify
from asset_register import login_manager
from asset_register.buisness.core.errors import (
    AssetRegisterError,
    AuthorizationError,
    ConflictError,
    FormatError,
    NotFoundError,
    StateError,
    ValidationError,
)
from asset_register.logger import get_logger

logger = get_logger("asset_register.routes")

ERROR_STATUS = {
    FormatError: 400,
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    StateError: 409,
}


def error_response(error: AssetRegisterError):
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(error, cls)), 400)
    body = {'success': False, 'error': error.kind, 'message': str(error)}
    field = getattr(error, 'field', None)
    if field:
        body['field'] = field
    return jsonify(body), status


def init_app(app):
    """Register the API blueprint and the domain error handlers"""
    logger.debug("Initializing route blueprints")

    from .api import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    @app.errorhandler(AssetRegisterError)
    def handle_domain_error(error):
        logger.info(f"Request failed with {error.kind}: {error}")
        return error_response(error)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'unauthorized', 'message': 'Authentication required'}), 401

    logger.info("Registered API blueprint")
