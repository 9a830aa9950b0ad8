from workstream import db
from datetime import datetime


class Task(db.Model):
    """Task model; assignment is the assigned_to subject id"""
    __tablename__ = 'tasks'

    CLOSED_STATUSES = ('completed', 'cancelled')

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), default='todo', nullable=False)  # todo, in-progress, completed, cancelled
    priority = db.Column(db.String(20), default='medium')  # low, medium, high, urgent
    assigned_to = db.Column(db.String(255), index=True)  # Subject id
    due_date = db.Column(db.DateTime, index=True)
    created_by = db.Column(db.String(255), nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
    # project relationship defined in project.py

    def __repr__(self):
        return f'<Task {self.id}: {self.title}>'

    def to_dict(self):
        """Convert task to dictionary for JSON responses"""
        return {
            'id': self.id,
            'project_id': self.project_id,
            'title': self.title,
            'status': self.status,
            'priority': self.priority,
            'assigned_to': self.assigned_to,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
