from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user

from extensions import db
from models import Notification
from services.notifications import unread_count
from .utils import get_or_404, audit, to_dicts

bp = Blueprint('notifications', __name__)


@bp.route('/notifications', methods=['GET'])
@login_required
def list_notifications():
    notifications = Notification.query.filter_by(user_id=current_user.id) \
        .order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return jsonify(to_dicts(notifications))


@bp.route('/notifications/count', methods=['GET'])
@login_required
def notification_count():
    count = unread_count(current_user.id)
    return jsonify({'count': count, 'notificationsUnreadCount': count})


@bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
@login_required
def mark_read(notification_id):
    notification = get_or_404(Notification, notification_id, "Notification not found")
    if notification.user_id != current_user.id:
        abort(403, description="You can only mark your own notifications as read")
    notification.is_read = True
    db.session.commit()
    audit('notification_read', f"Marked notification {notification.id} as read")
    return jsonify(notification.to_dict())
