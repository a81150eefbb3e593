"""
Activity logging for auditing and security.
"""

from flask import current_app, has_request_context
from error_handler import get_client_ip
from extensions import db
from models import SystemLog


def log_activity(user_id, action, details=None, ip_address=None):
    """Log one activity entry. Never raises; a failed write is logged and rolled back."""
    if ip_address is None and has_request_context():
        ip_address = get_client_ip()
    try:
        log_entry = SystemLog()
        log_entry.user_id = user_id
        log_entry.action = action
        log_entry.details = details
        log_entry.ip_address = ip_address
        db.session.add(log_entry)
        db.session.commit()
        return log_entry
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to log activity: {str(e)}")
        return None


def get_system_logs(limit=100):
    """Newest system log entries first."""
    return SystemLog.query.order_by(SystemLog.created_at.desc(), SystemLog.id.desc()).limit(limit).all()
