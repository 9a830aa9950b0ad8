from flask import request, jsonify
from flask_login import login_required
from werkzeug.datastructures import MultiDict
from workstream import csrf, limiter
from workstream.auth import current_identity
from workstream.blueprints.invitations import invitations_bp
from workstream.blueprints.invitations.forms import SendInvitationForm
from workstream.exceptions import InvalidInput, NotFound
from workstream.services import invitation_service


@invitations_bp.route('/', methods=['POST'])
@login_required
@limiter.limit("30 per hour")
def send():
    """Send an invitation"""
    data = request.get_json(silent=True) or {}
    form = SendInvitationForm(formdata=MultiDict({k: v for k, v in data.items() if v is not None}))
    if not form.validate():
        raise InvalidInput(form.first_error())

    invitation = invitation_service.send_invitation(
        current_identity(),
        email=form.email.data,
        role=form.role.data,
        invitation_type=form.type.data,
        project_id=form.project_id.data,
        task_id=form.task_id.data,
        message=form.message.data or None
    )

    return jsonify({
        'success': True,
        'invitation_id': invitation.id,
        'invitation': invitation.to_dict()
    }), 201


@invitations_bp.route('/sent')
@login_required
def sent():
    """Invitations sent by the current user"""
    invitations = invitation_service.list_sent_invitations(current_identity())
    return jsonify({'invitations': invitations})


@invitations_bp.route('/project/<int:project_id>')
@login_required
def for_project(project_id):
    """Invitations for a project the current user belongs to"""
    invitations = invitation_service.list_project_invitations(current_identity(), project_id)
    return jsonify({'invitations': invitations})


@invitations_bp.route('/token/<token>')
@limiter.limit("60 per minute")
def by_token(token):
    """Public invitation landing data"""
    invitation = invitation_service.get_invitation_by_token(token)
    if invitation is None:
        raise NotFound("Invalid invitation token")
    return jsonify({'invitation': invitation_service.present_invitation(invitation)})


@invitations_bp.route('/token/<token>/accept', methods=['POST'])
@login_required
@limiter.limit("20 per minute")
def accept(token):
    invitation = invitation_service.accept_invitation(current_identity(), token)
    return jsonify({
        'success': True,
        'invitation': invitation.to_dict(),
        'project_id': invitation.project_id or (invitation.task.project_id if invitation.task else None),
        'task_id': invitation.task_id
    })


@invitations_bp.route('/token/<token>/decline', methods=['POST'])
@csrf.exempt
@limiter.limit("20 per minute")
def decline(token):
    invitation = invitation_service.decline_invitation(token)
    return jsonify({'success': True, 'invitation': invitation.to_dict()})


@invitations_bp.route('/<int:invitation_id>/cancel', methods=['POST'])
@login_required
def cancel(invitation_id):
    """Withdraw a pending invitation"""
    invitation = invitation_service.cancel_invitation(current_identity(), invitation_id)
    return jsonify({'success': True, 'invitation': invitation.to_dict()})


@invitations_bp.route('/<int:invitation_id>/resend', methods=['POST'])
@login_required
@limiter.limit("30 per hour")
def resend(invitation_id):
    """Re-send an invitation with a fresh link"""
    invitation = invitation_service.resend_invitation(current_identity(), invitation_id)
    return jsonify({
        'success': True,
        'invitation_id': invitation.id,
        'invitation': invitation.to_dict()
    }), 201
