from functools import wraps
from flask import abort
from flask_login import current_user

from models import UserRoleEnum

ADMIN_ROLES = [UserRoleEnum.SUPER_ADMIN, UserRoleEnum.SCHOOL_ADMIN]
SCHOOL_STAFF_ROLES = [UserRoleEnum.SUPER_ADMIN, UserRoleEnum.SCHOOL_ADMIN,
                      UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL]
TEACHING_ROLES = [UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER,
                  UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL]


def role_required(*roles):
    """
    Restricts access to users holding one of `roles`, either as the active
    role, the primary role or an additional role. Super admins always pass.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)  # Unauthorized - not logged in
            from services.roles import user_has_any_role
            if not user_has_any_role(current_user, roles):
                abort(403)  # Forbidden - wrong role
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Restricts access to super admins and school admins."""
    return role_required(*ADMIN_ROLES)(f)


def super_admin_required(f):
    """Restricts access to users with the 'super_admin' role."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)  # Unauthorized - not logged in
        if current_user.role != UserRoleEnum.SUPER_ADMIN:
            abort(403)  # Forbidden - wrong role
        return f(*args, **kwargs)
    return decorated_function
