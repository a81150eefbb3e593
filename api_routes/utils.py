"""
Shared helpers for the API route modules.
"""

from datetime import date

from flask import abort, request
from flask_login import current_user

from extensions import db
from models import UserRoleEnum, UserRole, Class
from services.activity_log import log_activity
from services.roles import effective_role


def get_or_404(model, object_id, message=None):
    obj = db.session.get(model, object_id)
    if obj is None:
        abort(404, description=message or f"{model.__name__} not found")
    return obj


def acting_role():
    """Role of the current user for role-scoped listings."""
    return effective_role(current_user)


def is_super_admin():
    return current_user.role == UserRoleEnum.SUPER_ADMIN


def is_school_admin():
    return current_user.role == UserRoleEnum.SCHOOL_ADMIN


def admin_school_id():
    """School of the current user, falling back to a school bound to their school_admin role."""
    if current_user.school_id:
        return current_user.school_id
    role = UserRole.query.filter(UserRole.user_id == current_user.id,
                                 UserRole.role == UserRoleEnum.SCHOOL_ADMIN,
                                 UserRole.school_id.isnot(None)).first()
    return role.school_id if role else None


def require_own_school(school_id, message="You can only manage your own school"):
    """School admins may only touch their own school."""
    if is_school_admin() and school_id != admin_school_id():
        abort(403, description=message)


def require_own_school_class(class_id, message="You can only manage classes of your own school"):
    if is_school_admin():
        class_obj = db.session.get(Class, class_id)
        if class_obj is None or class_obj.school_id != admin_school_id():
            abort(403, description=message)


def arg_int(name):
    return request.args.get(name, type=int)


def arg_date(name):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        abort(400, description=f"Invalid {name}, expected YYYY-MM-DD")


def audit(action, details):
    """Record a mutation of the current user in system_logs."""
    return log_activity(current_user.id, action, details)


def to_dicts(objects):
    return [obj.to_dict() for obj in objects]
