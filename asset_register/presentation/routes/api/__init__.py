from flask import Blueprint

api_bp = Blueprint('api', __name__)

# Import all route modules
from . import (  # noqa: E402,F401
    transfers,
    loans,
    incidents,
    sales,
    assets,
    reports,
    photos,
)
