from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, IntegerField, TextAreaField
from wtforms.validators import DataRequired, Email, Length, Optional
from workstream.models.invitation import Invitation
from workstream.utils.input_validators import MAX_MESSAGE_LENGTH


class SendInvitationForm(FlaskForm):
    """JSON body of POST /invitations/"""

    class Meta:
        csrf = False

    email = StringField('Email', validators=[DataRequired(), Email(), Length(max=255)])
    role = SelectField('Role', choices=[(role, role) for role in Invitation.ROLES], default='member')
    type = SelectField('Type', choices=[(t, t) for t in Invitation.TYPES], default='workspace')
    project_id = IntegerField('Project', validators=[Optional()])
    task_id = IntegerField('Task', validators=[Optional()])
    message = TextAreaField('Message', validators=[Optional(), Length(max=MAX_MESSAGE_LENGTH)])

    def first_error(self):
        """First validation message, prefixed with its field name"""
        for name, errors in self.errors.items():
            if errors:
                return f"{name}: {errors[0]}"
        return 'Invalid input'
