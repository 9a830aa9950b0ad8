# Models package
from workstream.models.user import User
from workstream.models.project import Project, ProjectMember
from workstream.models.task import Task
from workstream.models.invitation import Invitation
from workstream.models.notification import Notification
from workstream.models.notification_settings import UserNotificationSettings
