"""
Membership provisioning
Idempotent grants performed when an invitation is accepted
"""
from datetime import datetime
from workstream import db
from workstream.models.project import ProjectMember


def get_membership(project_id, subject_id):
    """Get the membership row for (project, user), if any"""
    return ProjectMember.query.filter_by(project_id=project_id, user_id=subject_id).first()


def has_project_role(project_id, subject_id, roles):
    """Check if a user holds one of `roles` on a project"""
    membership = get_membership(project_id, subject_id)
    return membership is not None and membership.role in roles


def ensure_membership(project_id, user, role='member'):
    """
    Make sure `user` is a member of the project

    An existing row keeps its role (never downgraded) and only gets its
    name/email/avatar snapshot refreshed. A missing row is inserted with
    `role`. Safe to call repeatedly.

    Returns:
        tuple: (ProjectMember, created)
    """
    membership = get_membership(project_id, user.subject_id)

    if membership:
        membership.name = user.name
        membership.email = user.email
        membership.avatar_url = user.avatar_url
        return membership, False

    membership = ProjectMember(
        project_id=project_id,
        user_id=user.subject_id,
        name=user.name,
        email=user.email,
        avatar_url=user.avatar_url,
        role=role
    )
    db.session.add(membership)
    db.session.flush()
    return membership, True


def assign_task(task, user):
    """Assign a task to the user and bump its updated_at"""
    task.assigned_to = user.subject_id
    task.updated_at = datetime.utcnow()
    return task
