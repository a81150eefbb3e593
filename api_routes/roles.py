"""
Role switching and additional-role management.
"""

from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user

from decorators import admin_required
from extensions import db
from forms import SwitchRoleForm, ActiveRoleForm, UserRoleForm, validate_json
from models import User, UserRole, UserRoleEnum, Class
from services.roles import available_roles, switch_active_role
from .utils import get_or_404, audit, to_dicts, is_school_admin, admin_school_id

bp = Blueprint('roles', __name__)


@bp.route('/switch-role', methods=['POST'])
@login_required
def switch_role():
    form = validate_json(SwitchRoleForm)
    try:
        switch_active_role(current_user, form.role.data)
    except LookupError:
        abort(403, description="Forbidden. Role not found or doesn't belong to user")
    audit('role_switched', f"User switched to role: {form.role.data}")
    return jsonify(current_user.to_dict())


@bp.route('/users/<int:user_id>/active-role', methods=['PUT'])
@login_required
def change_active_role(user_id):
    if user_id != current_user.id:
        abort(403, description="Forbidden. You can only change your own role")
    form = validate_json(ActiveRoleForm)
    try:
        switch_active_role(current_user, form.active_role.data)
    except LookupError:
        abort(400, description="User does not have this role")
    audit('active_role_changed', f"Changed active role to {form.active_role.data}")
    return jsonify(current_user.to_dict())


@bp.route('/my-roles', methods=['GET'])
@login_required
def my_roles():
    return jsonify(available_roles(current_user))


@bp.route('/user-roles/<int:user_id>', methods=['GET'])
@login_required
def get_user_roles(user_id):
    user = get_or_404(User, user_id, "User not found")
    roles = UserRole.query.filter_by(user_id=user_id).order_by(UserRole.id).all()

    if current_user.id == user_id:
        return jsonify(to_dicts(roles))

    if current_user.role in (UserRoleEnum.SUPER_ADMIN, UserRoleEnum.SCHOOL_ADMIN):
        if is_school_admin() and user.school_id != admin_school_id():
            abort(403, description="Forbidden. You don't have the required permissions.")
        return jsonify(to_dicts(roles))

    if current_user.role in (UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL, UserRoleEnum.CLASS_TEACHER):
        if user.school_id != admin_school_id():
            abort(403, description="Forbidden. User is not from your school.")
        if current_user.role == UserRoleEnum.CLASS_TEACHER and user.role != UserRoleEnum.STUDENT:
            abort(403, description="Forbidden. You can only view student roles.")
        return jsonify(to_dicts(roles))

    abort(403, description="Forbidden. You don't have the required permissions.")


@bp.route('/user-roles', methods=['POST'])
@admin_required
def add_user_role():
    form = validate_json(UserRoleForm)
    user = get_or_404(User, form.user_id.data, "User not found")
    if is_school_admin() and user.school_id != admin_school_id():
        abort(403)

    role = form.role.data
    school_id = form.school_id.data
    class_id = form.class_id.data
    existing = UserRole.query.filter_by(user_id=user.id, role=role, school_id=school_id)

    if role == UserRoleEnum.CLASS_TEACHER:
        if not school_id:
            abort(400, description="School ID is required for class teacher role")
        if not class_id:
            abort(400, description="Class ID is required for class teacher role")
        class_obj = get_or_404(Class, class_id, "Class not found")
        if class_obj.school_id != school_id:
            abort(400, description="Class does not belong to the selected school")
        if existing.filter_by(class_id=class_id).first():
            abort(400, description="User already has this role for the specified class")
    elif existing.first():
        abort(400, description="User already has this role")

    user_role = UserRole(user_id=user.id, role=role, school_id=school_id, class_id=class_id)
    db.session.add(user_role)
    db.session.commit()

    details = f"Added role {role} to user {user.id}"
    if school_id:
        details += f" for school {school_id}"
    if class_id:
        details += f" and class {class_id}"
    audit('user_role_added', details)
    return jsonify(user_role.to_dict()), 201


@bp.route('/user-roles/<int:role_id>', methods=['DELETE'])
@admin_required
def remove_user_role(role_id):
    user_role = get_or_404(UserRole, role_id, "User role not found")
    user = get_or_404(User, user_role.user_id, "User not found")
    if is_school_admin() and user.school_id != admin_school_id():
        abort(403)

    db.session.delete(user_role)
    if user.active_role == user_role.role and user.role != user_role.role \
            and not UserRole.query.filter(UserRole.user_id == user.id, UserRole.role == user_role.role,
                                          UserRole.id != user_role.id).first():
        user.active_role = None
    db.session.commit()

    audit('user_role_removed', f"Removed role {user_role.role} from user {user_role.user_id}")
    return jsonify({'message': 'User role removed'})
