"""
Invitations blueprint
Sending invitations and the public token landing endpoints
"""
from flask import Blueprint

invitations_bp = Blueprint('invitations', __name__)

# Import routes after blueprint creation to avoid circular imports
from . import routes  # noqa: E402,F401
