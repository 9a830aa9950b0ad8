from flask import request, jsonify, current_app
from flask_login import login_required
from workstream.auth import current_identity
from workstream.blueprints.notifications import notifications_bp
from workstream.exceptions import InvalidInput
from workstream.services import notification_service, notification_settings_service


@notifications_bp.route('/')
@login_required
def index():
    """Current user's notifications, newest first"""
    per_page = current_app.config.get('NOTIFICATIONS_PER_PAGE', 50)
    try:
        limit = int(request.args.get('limit', per_page))
    except ValueError:
        raise InvalidInput("limit must be an integer")
    limit = max(1, min(limit, per_page))
    unread_only = request.args.get('unread_only', '').lower() in ('1', 'true', 'yes')

    notifications = notification_service.list_notifications(
        current_identity(), limit=limit, unread_only=unread_only
    )
    return jsonify({'notifications': [n.to_dict() for n in notifications]})


@notifications_bp.route('/unread-count')
def unread_count():
    """Unread badge count; 0 when signed out"""
    return jsonify({'count': notification_service.unread_count(current_identity())})


@notifications_bp.route('/<int:notification_id>/read', methods=['POST'])
@login_required
def mark_read(notification_id):
    notification = notification_service.mark_as_read(current_identity(), notification_id)
    return jsonify({'success': True, 'notification': notification.to_dict()})


@notifications_bp.route('/read-all', methods=['POST'])
@login_required
def mark_all_read():
    updated = notification_service.mark_all_as_read(current_identity())
    return jsonify({'success': True, 'updated': updated})


@notifications_bp.route('/<int:notification_id>', methods=['DELETE'])
@login_required
def delete(notification_id):
    notification_service.delete_notification(current_identity(), notification_id)
    return jsonify({'success': True})


@notifications_bp.route('/settings', methods=['GET'])
@login_required
def get_settings():
    """Notification settings, created with defaults on first read"""
    settings = notification_settings_service.get_settings(current_identity())
    return jsonify({'settings': settings.to_dict()})


@notifications_bp.route('/settings', methods=['PUT'])
@login_required
def update_settings():
    """Partial update of the nested settings sections"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")

    settings = notification_settings_service.update_settings(
        current_identity(),
        email_notifications=data.get('email_notifications'),
        due_date_reminders=data.get('due_date_reminders'),
        digest_frequency=data.get('digest_frequency'),
        quiet_hours=data.get('quiet_hours')
    )
    return jsonify({'success': True, 'settings': settings.to_dict()})
