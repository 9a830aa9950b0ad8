from workstream import db
from datetime import datetime


class Project(db.Model):
    """Project model for organizing tasks"""
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), default='active')  # planning, active, on-hold, completed, cancelled
    created_by = db.Column(db.String(255), nullable=False)  # Subject id of the creator

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tasks = db.relationship('Task', backref='project', lazy='dynamic')
    members = db.relationship('ProjectMember', backref='project', lazy='dynamic',
                              cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Project {self.id}: {self.name}>'

    @classmethod
    def create_with_owner(cls, name, owner, description=None):
        """Create a project and make its creator the owner member"""
        project = cls(name=name, description=description, created_by=owner.subject_id)
        db.session.add(project)
        db.session.flush()

        db.session.add(ProjectMember(
            project_id=project.id,
            user_id=owner.subject_id,
            name=owner.name,
            email=owner.email,
            avatar_url=owner.avatar_url,
            role='owner'
        ))
        db.session.commit()
        return project

    def to_dict(self):
        """Convert project to dictionary for JSON responses"""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'status': self.status,
            'created_by': self.created_by,
            'member_count': self.members.count(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }


class ProjectMember(db.Model):
    """Membership of a user in a project, with a snapshot of their profile"""
    __tablename__ = 'project_members'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.String(255), nullable=False, index=True)  # Subject id
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    avatar_url = db.Column(db.String(500))
    role = db.Column(db.String(20), default='member', nullable=False)  # owner, admin, member, viewer
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Unique constraint - user can only be a member once per project
    __table_args__ = (
        db.UniqueConstraint('project_id', 'user_id', name='unique_project_member'),
    )

    def __repr__(self):
        return f'<ProjectMember project={self.project_id} user={self.user_id} role={self.role}>'

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'avatar_url': self.avatar_url,
            'role': self.role
        }
