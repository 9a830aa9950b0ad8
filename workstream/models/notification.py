from datetime import datetime
from workstream import db


class Notification(db.Model):
    """In-app alert for one user about one event"""
    __tablename__ = 'notifications'

    TYPES = (
        'invitation_accepted',
        'invitation_declined',
        'invitation_expired',
        'invitation_cancelled',
        'task_assigned',
        'task_due_reminder',
        'task_completed',
        'project_invitation',
        'workspace_invitation',
    )
    RELATED_TYPES = ('invitation', 'project', 'task')

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), nullable=False, index=True)  # Recipient subject id
    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    read = db.Column(db.Boolean, default=False, nullable=False)
    action_url = db.Column(db.String(500))
    related_id = db.Column(db.String(64))
    related_type = db.Column(db.String(20))

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    read_at = db.Column(db.DateTime)

    __table_args__ = (
        db.Index('idx_notifications_user_read', 'user_id', 'read'),
        db.Index('idx_notifications_user_type_related', 'user_id', 'type', 'related_id'),
    )

    def __repr__(self):
        return f'<Notification {self.type} for {self.user_id}>'

    def mark_as_read(self, now=None):
        self.read = True
        self.read_at = now or datetime.utcnow()

    def to_dict(self):
        """Convert notification to dictionary for JSON responses"""
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'read': self.read,
            'action_url': self.action_url,
            'related_id': self.related_id,
            'related_type': self.related_type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'read_at': self.read_at.isoformat() if self.read_at else None
        }
