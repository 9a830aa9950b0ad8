"""
Invitation Expiry Job
Proactively expires pending invitations whose expiry has passed
"""
from datetime import datetime
from flask import current_app
from workstream import db
from workstream.models.invitation import Invitation
from workstream.services.notification_service import schedule_invitation_status_notification


def expire_overdue_invitations(now=None):
    """
    Mark every lapsed pending invitation as expired and notify each sender

    Lazy expiry on read still applies; this only keeps lists tidy between reads.

    Returns:
        dict: {'expired': count, 'invitation_ids': [...]}
    """
    now = now or datetime.utcnow()

    overdue = Invitation.query.filter(
        Invitation.status == 'pending',
        Invitation.expires_at < now
    ).order_by(Invitation.id).all()

    for invitation in overdue:
        invitation.mark_as_expired()
    db.session.commit()

    expired_ids = [invitation.id for invitation in overdue]
    for invitation_id in expired_ids:
        schedule_invitation_status_notification(invitation_id, 'expired')

    current_app.logger.info(f"[EXPIRY] Expired {len(expired_ids)} overdue invitations")
    return {'expired': len(expired_ids), 'invitation_ids': expired_ids}
