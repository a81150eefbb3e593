"""
Notification creation helpers. Used by homework, grades and attendance routes.
"""

import logging

from extensions import db
from models import Notification, ParentStudent, StudentClass, User

logger = logging.getLogger(__name__)


def create_notification(user_id, title, content):
    """Create a notification for one user."""
    notification = Notification()
    notification.user_id = user_id
    notification.title = title
    notification.content = content
    db.session.add(notification)
    db.session.commit()
    return notification


def create_notifications_for_users(user_ids, title, content):
    """Create notifications for multiple users in one commit."""
    notifications = []
    for user_id in dict.fromkeys(user_ids):
        notification = Notification(user_id=user_id, title=title, content=content)
        db.session.add(notification)
        notifications.append(notification)
    db.session.commit()
    return notifications


def notify_class_students(class_id, title, content):
    """Create notifications for every student enrolled in a class."""
    user_ids = [sc.student_id for sc in StudentClass.query.filter_by(class_id=class_id).all()]
    return create_notifications_for_users(user_ids, title, content)


def notify_parents_about_absence(student, status):
    """
    Tell each linked parent that `student` was marked `status` on a lesson.
    Returns the created notifications; failures are logged, not raised.
    """
    if isinstance(student, int):
        student = db.session.get(User, student)
    if student is None:
        return []
    try:
        parent_ids = [link.parent_id for link in ParentStudent.query.filter_by(student_id=student.id).all()]
        return create_notifications_for_users(
            parent_ids,
            'Lesson absence',
            f'Your child {student.last_name} {student.first_name} was marked as "{status}" on a lesson',
        )
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to notify parents of student {student.id}: {e}")
        return []


def unread_count(user_id):
    return Notification.query.filter_by(user_id=user_id, is_read=False).count()
