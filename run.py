import os
from dotenv import load_dotenv
from workstream import create_app, db

# Load environment variables
load_dotenv()

# Create application
app = create_app(os.getenv('FLASK_ENV', 'development'))


@app.shell_context_processor
def make_shell_context():
    """Make database and models available in Flask shell"""
    from workstream.models.user import User
    from workstream.models.project import Project, ProjectMember
    from workstream.models.task import Task
    from workstream.models.invitation import Invitation
    from workstream.models.notification import Notification
    from workstream.models.notification_settings import UserNotificationSettings

    return {
        'db': db,
        'User': User,
        'Project': Project,
        'ProjectMember': ProjectMember,
        'Task': Task,
        'Invitation': Invitation,
        'Notification': Notification,
        'UserNotificationSettings': UserNotificationSettings
    }


if __name__ == '__main__':
    port = int(os.getenv('PORT', 5000))
    # Only enable debug mode in development
    debug_mode = os.getenv('FLASK_ENV') == 'development'
    app.run(host='0.0.0.0', port=port, debug=debug_mode)
