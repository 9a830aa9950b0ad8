"""
Admin routes for workspace administrators
"""
from flask import request, jsonify
from flask_login import login_required
from . import admin_bp
from workstream.auth import current_identity
from workstream.services import admin_service
from workstream.utils.security_decorators import require_workspace_admin


def _invitation_ids():
    data = request.get_json(silent=True) or {}
    return data.get('invitation_ids')


@admin_bp.route('/invitations')
@login_required
@require_workspace_admin
def invitations():
    """Every invitation in the workspace"""
    return jsonify({'invitations': admin_service.list_all_invitations(current_identity())})


@admin_bp.route('/invitations/cancel', methods=['POST'])
@login_required
@require_workspace_admin
def bulk_cancel():
    count = admin_service.bulk_cancel(current_identity(), _invitation_ids())
    return jsonify({'success': True, 'count': count})


@admin_bp.route('/invitations/resend', methods=['POST'])
@login_required
@require_workspace_admin
def bulk_resend():
    count = admin_service.bulk_resend(current_identity(), _invitation_ids())
    return jsonify({'success': True, 'count': count})


@admin_bp.route('/invitations/delete', methods=['POST'])
@login_required
@require_workspace_admin
def bulk_delete():
    """Permanently delete invitations"""
    count = admin_service.bulk_delete(current_identity(), _invitation_ids())
    return jsonify({'success': True, 'count': count})
