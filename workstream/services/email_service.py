"""
Email Service
Renders transactional emails and sends them using Twilio SendGrid
"""
from datetime import datetime
from flask import current_app
from markupsafe import escape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content
from workstream.exceptions import DownstreamDeliveryFailure, InvalidInput


def build_invitation_url(token):
    """Public acceptance link for an invitation token"""
    base_url = current_app.config.get('APP_BASE_URL', 'http://localhost:3000').rstrip('/')
    return f"{base_url}/invite/{token}"


def build_app_url(path):
    base_url = current_app.config.get('APP_BASE_URL', 'http://localhost:3000').rstrip('/')
    return f"{base_url}{path}"


def format_due_date(value):
    """Human-readable due date from an ISO string"""
    if not value:
        return 'No due date'
    return datetime.fromisoformat(value).strftime('%A, %B %d, %Y')


def _layout(heading, body_html, cta_url=None, cta_label=None, footer_note=''):
    """Wrap template content in the shared HTML layout"""
    cta = ''
    if cta_url:
        cta = f"""
            <center>
                <a href="{cta_url}" class="cta-button">{cta_label}</a>
            </center>"""

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.6;
            color: #333;
            margin: 0;
            padding: 0;
            background-color: #f4f4f4;
        }}
        .container {{
            max-width: 600px;
            margin: 40px auto;
            background: #ffffff;
            border-radius: 8px;
            overflow: hidden;
        }}
        .header {{
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            color: white;
            padding: 40px 30px;
            text-align: center;
        }}
        .content {{
            padding: 40px 30px;
        }}
        .details {{
            background: #f8f9fa;
            border-left: 4px solid #667eea;
            padding: 15px 20px;
            margin: 25px 0;
        }}
        .cta-button {{
            display: inline-block;
            background: #667eea;
            color: white;
            text-decoration: none;
            padding: 14px 40px;
            border-radius: 6px;
            font-weight: 600;
        }}
        .footer {{
            background: #f8f9fa;
            padding: 30px;
            text-align: center;
            color: #666;
            font-size: 14px;
        }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>{heading}</h1>
        </div>

        <div class="content">
            {body_html}
            {cta}
            <p style="font-size: 14px; color: #666; margin-top: 30px;">{footer_note}</p>
        </div>

        <div class="footer">
            <p>This email was sent by Workstream</p>
        </div>
    </div>
</body>
</html>
"""


def _message_block(message):
    if not message:
        return ''
    return f'<div class="details"><em>"{escape(message)}"</em></div>'


def render_workspace_invitation(params):
    inviter_name = escape(params['inviter_name'])
    url = params['invitation_url']
    role = escape(params.get('role') or 'member')

    if params.get('invitation_type') == 'project' and params.get('project_name'):
        project_name = escape(params['project_name'])
        subject = f"{params['inviter_name']} invited you to the {params['project_name']} project on Workstream"
        target_html = f"the <strong>{project_name}</strong> project"
        target_text = f"the {params['project_name']} project"
    else:
        subject = f"{params['inviter_name']} invited you to join Workstream"
        target_html = "their team"
        target_text = "their team"

    body = f"""
            <p>Hi there,</p>
            <p><strong>{inviter_name}</strong> has invited you to join {target_html} on Workstream as a <strong>{role}</strong>.</p>
            {_message_block(params.get('message'))}"""
    html = _layout("You're Invited!", body, url, 'Accept Invitation',
                   "This invitation will expire in 7 days. If you weren't expecting it, you can ignore this email.")

    text = f"""
{params['inviter_name']} has invited you to join {target_text} on Workstream as a {params.get('role') or 'member'}.
{('Message: ' + params['message']) if params.get('message') else ''}

Accept your invitation here:
{url}

This invitation will expire in 7 days.
"""
    return subject, html, text


def render_task_assignment(params):
    url = params['invitation_url']
    due_text = format_due_date(params.get('due_date'))

    subject = f"You've been assigned to: {params['task_title']}"
    body = f"""
            <p>Hi there,</p>
            <p><strong>{escape(params['inviter_name'])}</strong> has assigned you to a task in the
            <strong>{escape(params['project_name'])}</strong> project.</p>
            <div class="details">
                <strong>Task:</strong> {escape(params['task_title'])}<br>
                <strong>Project:</strong> {escape(params['project_name'])}<br>
                <strong>Due:</strong> {due_text}
            </div>
            {_message_block(params.get('message'))}"""
    html = _layout('New Task Assignment', body, url, 'Accept & View Task',
                   f"If you didn't expect this task assignment, please contact {escape(params['inviter_name'])}.")

    text = f"""
{params['inviter_name']} has assigned you to "{params['task_title']}" in the {params['project_name']} project.
Due: {due_text}

Accept the assignment here:
{url}
"""
    return subject, html, text


def _context_text(params):
    if params.get('task_title'):
        return f" for the task \"{params['task_title']}\""
    if params.get('project_name'):
        return f" to the {params['project_name']} project"
    return ''


def render_invitation_accepted(params):
    context = _context_text(params)
    subject = f"{params['accepted_by_email']} accepted your invitation"
    body = f"""
            <p>Hi {escape(params['inviter_name'])},</p>
            <p><strong>{escape(params['accepted_by_email'])}</strong> accepted your {escape(params['invitation_type'])} invitation{escape(context)}.</p>"""
    html = _layout('Invitation Accepted', body, build_app_url('/dashboard/team'), 'View Team')
    text = f"""
Hi {params['inviter_name']},

{params['accepted_by_email']} accepted your {params['invitation_type']} invitation{context}.
"""
    return subject, html, text


def render_invitation_declined(params):
    context = _context_text(params)
    subject = f"{params['declined_by_email']} declined your invitation"
    body = f"""
            <p>Hi {escape(params['inviter_name'])},</p>
            <p><strong>{escape(params['declined_by_email'])}</strong> declined your {escape(params['invitation_type'])} invitation{escape(context)}.</p>"""
    html = _layout('Invitation Declined', body, build_app_url('/dashboard/invitations'), 'View Invitations')
    text = f"""
Hi {params['inviter_name']},

{params['declined_by_email']} declined your {params['invitation_type']} invitation{context}.
"""
    return subject, html, text


def render_due_date_reminder(params):
    days = params['days_until_due']
    due_text = 'tomorrow' if days == 1 else f"in {days} days"
    subject = f"Task due {due_text}: {params['task_title']}"
    body = f"""
            <p>Hi {escape(params['recipient_name'])},</p>
            <p>Your task <strong>{escape(params['task_title'])}</strong> in
            <strong>{escape(params['project_name'])}</strong> is due {due_text}
            ({format_due_date(params.get('due_date'))}).</p>"""
    html = _layout('Task Due Soon', body, build_app_url('/dashboard/tasks'), 'View Tasks',
                   'You can change reminder settings on the notifications settings page.')
    text = f"""
Your task "{params['task_title']}" in {params['project_name']} is due {due_text}.
"""
    return subject, html, text


TEMPLATES = {
    'workspace_invitation': render_workspace_invitation,
    'task_assignment': render_task_assignment,
    'invitation_accepted': render_invitation_accepted,
    'invitation_declined': render_invitation_declined,
    'due_date_reminder': render_due_date_reminder,
}


class EmailService:
    """Service for sending emails via Twilio SendGrid"""

    def __init__(self):
        """Initialize SendGrid client from app config"""
        self.api_key = current_app.config.get('SENDGRID_API_KEY')
        self.from_email = current_app.config.get('MAIL_DEFAULT_SENDER', 'noreply@workstream.app')
        self.from_name = current_app.config.get('MAIL_DEFAULT_SENDER_NAME', 'Workstream')

        if not self.api_key:
            self.client = None
        else:
            self.client = SendGridAPIClient(self.api_key)

    @staticmethod
    def render(template, params):
        """
        Render a template to (subject, html, text)

        Args:
            template: Template key from TEMPLATES
            params: Template parameters (JSON-serializable)
        """
        renderer = TEMPLATES.get(template)
        if renderer is None:
            raise InvalidInput(f"Unknown email template: {template}")
        return renderer(params)

    def send(self, template, recipient, params):
        """
        Send one email

        Returns:
            bool: True if sent, False if sending is disabled

        Raises:
            DownstreamDeliveryFailure: SendGrid errored or rejected the message
        """
        subject, html_content, text_content = self.render(template, params)

        if not self.client:
            current_app.logger.warning(f"Skipping {template} email to {recipient} (SendGrid not configured)")
            return False

        message = Mail(
            from_email=Email(self.from_email, self.from_name),
            to_emails=To(recipient),
            subject=subject,
            plain_text_content=Content("text/plain", text_content),
            html_content=Content("text/html", html_content)
        )

        try:
            response = self.client.send(message)
        except Exception as e:
            raise DownstreamDeliveryFailure(f"Error sending {template} email to {recipient}: {e}") from e

        if response.status_code not in (200, 201, 202):
            raise DownstreamDeliveryFailure(
                f"Failed to send {template} email to {recipient}: status {response.status_code}"
            )

        current_app.logger.info(f"{template} email sent to {recipient}")
        return True


def enqueue_email(template, recipient, params):
    """
    Schedule a fire-and-forget email send

    Returns the job handle (None when it could not be enqueued).
    """
    from workstream.jobs import send_email_job
    from workstream.services.dispatch import dispatch

    if template not in TEMPLATES:
        raise InvalidInput(f"Unknown email template: {template}")

    return dispatch(send_email_job, template, recipient, params)
