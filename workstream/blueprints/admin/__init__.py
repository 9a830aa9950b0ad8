"""
Admin blueprint for workspace administrators
Batch management of every sender's invitations
"""
from flask import Blueprint

# Create admin blueprint
admin_bp = Blueprint(
    'admin',
    __name__,
    url_prefix='/admin'
)

# Import routes after blueprint creation to avoid circular imports
from . import routes  # noqa: E402,F401
