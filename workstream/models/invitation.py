"""
Invitation Model
Time-bound, token-based offers of workspace, project or task access
"""
from datetime import datetime, timedelta
from workstream import db
from workstream.utils.tokens import generate_invitation_token


class Invitation(db.Model):
    """Model for invitations sent via email"""

    __tablename__ = 'invitations'

    TYPES = ('workspace', 'project', 'task')
    ROLES = ('admin', 'member', 'viewer')

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    invited_by = db.Column(db.String(255), nullable=False, index=True)  # Subject id of the sender
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='SET NULL'), index=True)
    task_id = db.Column(db.Integer, db.ForeignKey('tasks.id', ondelete='SET NULL'), index=True)
    type = db.Column(db.String(20), default='workspace', nullable=False)  # 'workspace', 'project', 'task'
    role = db.Column(db.String(20), default='member', nullable=False)  # 'admin', 'member', 'viewer'
    message = db.Column(db.Text)  # Optional note shown to the invitee

    # Unique token for invitation link; the only public lookup key
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # Status tracking
    status = db.Column(db.String(20), default='pending', nullable=False)

    # Expiry
    expires_at = db.Column(db.DateTime, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    accepted_at = db.Column(db.DateTime)

    # Relationships
    project = db.relationship('Project', backref=db.backref('invitations', lazy='dynamic'))
    task = db.relationship('Task', backref=db.backref('invitations', lazy='dynamic'))

    # At most one pending invitation per email
    __table_args__ = (
        db.Index(
            'uq_invitations_pending_email', 'email', unique=True,
            postgresql_where=db.text("status = 'pending'"),
            sqlite_where=db.text("status = 'pending'")
        ),
    )

    def __repr__(self):
        return f'<Invitation {self.email} ({self.type}) {self.status}>'

    @staticmethod
    def generate_token():
        """Generate a token not used by any existing invitation"""
        token = generate_invitation_token()
        while Invitation.query.filter_by(token=token).first() is not None:
            token = generate_invitation_token()
        return token

    @classmethod
    def create_invitation(cls, email, invited_by, invitation_type='workspace', role='member',
                          project_id=None, task_id=None, message=None, expires_in_days=7):
        """Create a new invitation with automatic token generation and expiry"""
        now = datetime.utcnow()
        invitation = cls(
            email=email.lower(),
            invited_by=invited_by,
            type=invitation_type,
            role=role,
            project_id=project_id,
            task_id=task_id,
            message=message,
            status='pending',
            token=cls.generate_token(),
            created_at=now,
            expires_at=now + timedelta(days=expires_in_days)
        )
        return invitation

    @classmethod
    def get_by_token(cls, token):
        """Look up an invitation by its public token"""
        if not token:
            return None
        return cls.query.filter_by(token=token).first()

    @classmethod
    def get_pending_for_email(cls, email):
        """Get the pending invitation for an email address, lapsed or not"""
        return cls.query.filter_by(email=email.lower(), status='pending').first()

    def is_expired(self, now=None):
        """Check if the invitation's expiry time has passed"""
        return (now or datetime.utcnow()) > self.expires_at

    def mark_as_accepted(self):
        """Mark the invitation as accepted"""
        self.status = 'accepted'
        self.accepted_at = datetime.utcnow()

    def mark_as_declined(self):
        self.status = 'declined'

    def mark_as_cancelled(self):
        self.status = 'cancelled'

    def mark_as_expired(self):
        """Mark the invitation as expired"""
        self.status = 'expired'

    def to_dict(self):
        """Convert invitation to dictionary for JSON responses (token excluded)"""
        return {
            'id': self.id,
            'email': self.email,
            'invited_by': self.invited_by,
            'project_id': self.project_id,
            'task_id': self.task_id,
            'type': self.type,
            'role': self.role,
            'status': self.status,
            'message': self.message,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'accepted_at': self.accepted_at.isoformat() if self.accepted_at else None
        }
