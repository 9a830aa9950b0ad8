from datetime import datetime
from workstream import db


class User(db.Model):
    """Directory record for an identity resolved by the identity provider"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    subject_id = db.Column(db.String(255), unique=True, nullable=False, index=True)  # Identity provider subject
    email = db.Column(db.String(255), nullable=False, index=True)

    # Profile information (denormalized from identity claims)
    name = db.Column(db.String(200), nullable=False)
    avatar_url = db.Column(db.String(500))

    # Workspace administrator (batch invitation management)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<User {self.subject_id} {self.email}>'

    @classmethod
    def get_by_subject(cls, subject_id):
        """Get a user by identity provider subject id"""
        if not subject_id:
            return None
        return cls.query.filter_by(subject_id=subject_id).first()

    @classmethod
    def get_by_email(cls, email):
        """Get a user by email address (case-insensitive)"""
        if not email:
            return None
        return cls.query.filter(db.func.lower(cls.email) == email.strip().lower()).first()

    def to_dict(self):
        """Convert user to dictionary for JSON responses"""
        return {
            'id': self.id,
            'subject_id': self.subject_id,
            'email': self.email,
            'name': self.name,
            'avatar_url': self.avatar_url,
            'is_admin': self.is_admin,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
