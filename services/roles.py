"""
Role resolution for multi-role users.

A user has one primary role (`users.role`), any number of additional roles
(`user_roles` rows) and optionally an active role chosen in the role switcher.
"""

import logging

from extensions import db
from models import (UserRole, UserRoleEnum, ParentStudent, StudentClass, StudentSubgroup,
                    Schedule)

logger = logging.getLogger(__name__)


def effective_role(user):
    """The role the user is currently acting as."""
    return user.active_role or user.role


def additional_roles(user_id):
    return UserRole.query.filter_by(user_id=user_id).order_by(UserRole.id).all()


def user_has_any_role(user, roles):
    """
    Access rule shared by every protected endpoint: the active role, the
    primary role or an additional role is in `roles`; super admins always pass.
    """
    roles = set(roles)
    if user.active_role and user.active_role in roles:
        return True
    if user.role == UserRoleEnum.SUPER_ADMIN:
        return True
    if user.role in roles:
        return True
    return any(r.role in roles for r in additional_roles(user.id))


def available_roles(user):
    """
    Roles the user can switch between, with exactly one flagged `isActive`.
    The primary role is listed first with id -1 when it has no user_roles row.
    """
    result = [r.to_dict() for r in additional_roles(user.id)]
    if not any(r['role'] == user.role for r in result):
        result.insert(0, {
            'id': -1,
            'userId': user.id,
            'role': user.role,
            'schoolId': user.school_id,
            'classId': None,
            'isDefault': True,
        })

    active = user.active_role if any(r['role'] == user.active_role for r in result) else None
    for index, entry in enumerate(result):
        entry['isActive'] = entry['role'] == active if active else index == 0
    return result


def switch_active_role(user, role):
    """
    Make `role` the user's active role. Returns the matching user_roles row
    (None for the primary role) or raises LookupError when the user does not
    hold the role. A role bound to a school moves the user to that school.
    """
    user_role = UserRole.query.filter_by(user_id=user.id, role=role).first()
    if user_role is None and user.role != role:
        raise LookupError(f"User {user.id} does not have role {role}")

    user.active_role = role
    if user_role is not None and user_role.school_id is not None:
        user.school_id = user_role.school_id
    db.session.commit()
    logger.info(f"User {user.id} switched active role to {role}")
    return user_role


def class_teacher_class_id(user):
    """Class led by a class teacher, from their class_teacher role."""
    role = UserRole.query.filter(UserRole.user_id == user.id,
                                 UserRole.role == UserRoleEnum.CLASS_TEACHER,
                                 UserRole.class_id.isnot(None)).first()
    return role.class_id if role else None


def parent_child_ids(user):
    return [link.student_id for link in ParentStudent.query.filter_by(parent_id=user.id).all()]


def student_class_ids(user):
    user_id = user if isinstance(user, int) else user.id
    return [sc.class_id for sc in StudentClass.query.filter_by(student_id=user_id).all()]


def student_subgroup_ids(user_id):
    return [link.subgroup_id for link in StudentSubgroup.query.filter_by(student_id=user_id).all()]


def teacher_class_ids(user):
    """Classes a teacher has lessons in."""
    rows = db.session.query(Schedule.class_id).filter(Schedule.teacher_id == user.id).distinct().all()
    return [row[0] for row in rows]
