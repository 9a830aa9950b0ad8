"""
Workspace administration of invitations
Batch operations over any sender's invitations
"""
from flask import current_app
from workstream import db
from workstream.exceptions import AlreadyExists, InvalidInput, NotAuthenticated, NotAuthorized
from workstream.models.invitation import Invitation
from workstream.models.user import User
from workstream.services.invitation_service import expire_if_lapsed, present_invitation, reissue_invitation
from workstream.services.notification_service import schedule_invitation_status_notification


def require_admin(identity):
    """Raise unless the identity's directory record is a workspace administrator"""
    if identity is None:
        raise NotAuthenticated("Not authenticated")
    user = User.get_by_subject(identity.subject_id)
    if not user or not user.is_admin:
        raise NotAuthorized("Not authorized - admin access required")
    return user


def _load(ids):
    if not isinstance(ids, (list, tuple)) or not ids:
        raise InvalidInput("invitation_ids must be a non-empty list")
    try:
        ids = [int(i) for i in ids]
    except (TypeError, ValueError):
        raise InvalidInput("invitation_ids must contain integers")
    return Invitation.query.filter(Invitation.id.in_(ids)).order_by(Invitation.id).all()


def list_all_invitations(identity):
    """Every invitation in the workspace, newest first"""
    require_admin(identity)
    invitations = Invitation.query.order_by(Invitation.created_at.desc(), Invitation.id.desc()).all()
    return [present_invitation(invitation) for invitation in invitations]


def bulk_cancel(identity, ids):
    """
    Cancel each still-pending invitation and notify its sender

    Lapsed invitations are expired instead of cancelled.

    Returns:
        int: Number of invitations cancelled
    """
    require_admin(identity)
    cancelled = []
    for invitation in _load(ids):
        if invitation.status != 'pending' or expire_if_lapsed(invitation):
            continue
        invitation.mark_as_cancelled()
        cancelled.append(invitation.id)

    db.session.commit()
    current_app.logger.info(f"Admin {identity.subject_id} cancelled invitations {cancelled}")

    for invitation_id in cancelled:
        schedule_invitation_status_notification(invitation_id, 'cancelled')
    return len(cancelled)


def bulk_resend(identity, ids):
    """
    Re-issue each non-accepted invitation with a new token and expiry

    Invitations whose email already has another live pending invitation are
    skipped.

    Returns:
        int: Number of invitations re-issued
    """
    require_admin(identity)
    resent = 0
    for invitation in _load(ids):
        if invitation.status == 'accepted':
            continue
        try:
            reissue_invitation(invitation)
        except AlreadyExists:
            current_app.logger.warning(
                f"Skipped resend of invitation {invitation.id}: {invitation.email} already has a pending invitation"
            )
            continue
        resent += 1

    current_app.logger.info(f"Admin {identity.subject_id} resent {resent} invitations")
    return resent


def bulk_delete(identity, ids):
    """
    Permanently delete invitations

    Returns:
        int: Number of rows deleted
    """
    require_admin(identity)
    invitations = _load(ids)
    for invitation in invitations:
        db.session.delete(invitation)
    db.session.commit()

    current_app.logger.info(
        f"Admin {identity.subject_id} deleted invitations {[invitation.id for invitation in invitations]}"
    )
    return len(invitations)
