"""
CRM JSON API routes.
"""
import logging
from flask import Blueprint, jsonify

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)


def validation_error(errors):
    """400 response for a list of validation error strings."""
    return jsonify({'error': 'Validation failed', 'details': errors}), 400


def not_found(resource):
    return jsonify({'error': f'{resource} not found'}), 404


# Import submodules to register routes on api_bp
from . import properties    # noqa: E402, F401
from . import units         # noqa: E402, F401
from . import people        # noqa: E402, F401
from . import applications  # noqa: E402, F401
from . import exports       # noqa: E402, F401
from . import tasks         # noqa: E402, F401
