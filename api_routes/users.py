"""
User management: listing, creation, profile updates and deletion.
"""

from flask import Blueprint, jsonify, abort, request, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from decorators import admin_required, ADMIN_ROLES
from extensions import db
from forms import UserForm, validate_json, submitted_data
from models import (User, UserRole, UserRoleEnum, StudentClass, StudentSubgroup, Subgroup,
                    ParentStudent, Notification, Class)
from services.roles import user_has_any_role
from .utils import (get_or_404, audit, to_dicts, is_super_admin, is_school_admin, require_own_school,
                    admin_school_id)

bp = Blueprint('users', __name__)

USER_FIELDS = ['username', 'first_name', 'last_name', 'email', 'phone', 'role', 'school_id']


def check_can_create(creator, role, school_id):
    """Abort with 403 unless `creator` may create a user with `role` in `school_id`."""
    if not user_has_any_role(creator, ADMIN_ROLES):
        abort(403, description="Only administrators can create users")
    if creator.role != UserRoleEnum.SUPER_ADMIN:
        if role == UserRoleEnum.SUPER_ADMIN or (role == UserRoleEnum.SCHOOL_ADMIN
                                                and creator.role != UserRoleEnum.SCHOOL_ADMIN):
            abort(403, description="You are not allowed to create a user with this role")
    if creator.role == UserRoleEnum.SCHOOL_ADMIN and school_id != admin_school_id():
        abort(403, description="You can only create users for your own school")


def create_user(form):
    """Create a user from a validated UserForm, including class links."""
    if User.query.filter_by(username=form.username.data).first():
        abort(400, description="A user with this username already exists")

    user = User(
        username=form.username.data,
        password_hash=generate_password_hash(form.password.data),
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        email=form.email.data,
        phone=form.phone.data or None,
        role=form.role.data,
        school_id=form.school_id.data,
    )
    db.session.add(user)
    db.session.flush()

    class_ids = [cid for cid in (form.class_ids.data or []) if cid]
    if user.role == UserRoleEnum.CLASS_TEACHER and class_ids:
        db.session.add(UserRole(user_id=user.id, role=UserRoleEnum.CLASS_TEACHER,
                                school_id=user.school_id, class_id=class_ids[0]))
    elif user.role == UserRoleEnum.STUDENT:
        for class_id in class_ids:
            if db.session.get(Class, class_id) is None:
                current_app.logger.warning(f"Skipping unknown class {class_id} for student {user.username}")
                continue
            db.session.add(StudentClass(student_id=user.id, class_id=class_id))

    db.session.commit()
    return user


def move_student_to_class(user, new_class_id):
    """Replace a student's class membership and drop subgroups of the old classes."""
    old_class_ids = [sc.class_id for sc in StudentClass.query.filter_by(student_id=user.id).all()]
    if old_class_ids == [new_class_id]:
        return

    old_subgroup_ids = [sg.id for sg in Subgroup.query.filter(Subgroup.class_id.in_(old_class_ids)).all()] \
        if old_class_ids else []
    if old_subgroup_ids:
        StudentSubgroup.query.filter(StudentSubgroup.student_id == user.id,
                                     StudentSubgroup.subgroup_id.in_(old_subgroup_ids)) \
            .delete(synchronize_session=False)

    StudentClass.query.filter_by(student_id=user.id).delete()
    db.session.add(StudentClass(student_id=user.id, class_id=new_class_id))

    for role in UserRole.query.filter_by(user_id=user.id, role=UserRoleEnum.STUDENT).all():
        role.class_id = new_class_id


@bp.route('/users', methods=['GET'])
@login_required
def list_users():
    role_filter = request.args.get('role')
    active = current_user.active_role or current_user.role
    extra_roles = {r.role: r for r in UserRole.query.filter_by(user_id=current_user.id).all()}

    if active == UserRoleEnum.SUPER_ADMIN or current_user.role == UserRoleEnum.SUPER_ADMIN \
            or UserRoleEnum.SUPER_ADMIN in extra_roles:
        query = User.query
    elif active in (UserRoleEnum.SCHOOL_ADMIN, UserRoleEnum.PRINCIPAL) \
            or (role_filter and UserRoleEnum.SCHOOL_ADMIN in extra_roles):
        school_id = current_user.school_id
        if school_id is None:
            for role_name in (UserRoleEnum.SCHOOL_ADMIN, UserRoleEnum.PRINCIPAL):
                if role_name in extra_roles and extra_roles[role_name].school_id:
                    school_id = extra_roles[role_name].school_id
                    break
        if school_id is None:
            abort(400, description=f"No school found for {active}")
        query = User.query.filter_by(school_id=school_id)
    else:
        abort(403, description="Insufficient permissions to list users")

    if role_filter:
        query = query.filter_by(role=role_filter)
    return jsonify(to_dicts(query.order_by(User.last_name, User.first_name).all()))


@bp.route('/users', methods=['POST'])
@admin_required
def add_user():
    form = validate_json(UserForm)
    check_can_create(current_user, form.role.data, form.school_id.data)
    user = create_user(form)
    audit('user_created', f"Created user {user.username} with role {user.role}")
    return jsonify(user.to_dict()), 201


@bp.route('/users/<int:user_id>', methods=['GET'])
@login_required
def get_user(user_id):
    user = get_or_404(User, user_id, "User not found")
    if is_school_admin() and user.school_id != admin_school_id() and current_user.id != user_id:
        abort(403)
    return jsonify(user.to_dict())


@bp.route('/users/<int:user_id>', methods=['PUT'])
@login_required
def update_user(user_id):
    user = get_or_404(User, user_id, "User not found")
    own_school = is_school_admin() and user.school_id == admin_school_id()
    if not (is_super_admin() or own_school or current_user.id == user_id):
        abort(403)

    form = validate_json(UserForm, partial=True)
    data = submitted_data(form)
    if 'role' in data and data['role'] != user.role and not is_super_admin():
        abort(403, description="Cannot change user role")
    if 'school_id' in data and data['school_id'] != user.school_id and not is_super_admin():
        require_own_school(data['school_id'])
    if 'username' in data and data['username'] != user.username \
            and User.query.filter_by(username=data['username']).first():
        abort(400, description="A user with this username already exists")

    for field in USER_FIELDS:
        if field in data:
            setattr(user, field, data[field])
    if data.get('password'):
        user.password_hash = generate_password_hash(data['password'])

    class_ids = [cid for cid in (data.get('class_ids') or []) if cid]
    if user.role == UserRoleEnum.STUDENT and class_ids:
        get_or_404(Class, class_ids[0], "Class not found")
        move_student_to_class(user, class_ids[0])

    db.session.commit()
    audit('user_updated', f"Updated user: {user.username}")
    return jsonify(user.to_dict())


@bp.route('/users/<int:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    user = get_or_404(User, user_id, "User not found")
    if is_school_admin() and user.school_id != admin_school_id():
        abort(403, description="You cannot delete a user of another school")
    if current_user.id == user_id:
        abort(403, description="You cannot delete your own account")
    if is_school_admin() and user.role == UserRoleEnum.SUPER_ADMIN:
        abort(403, description="You cannot delete a system administrator")

    username = user.username
    StudentClass.query.filter_by(student_id=user.id).delete()
    StudentSubgroup.query.filter_by(student_id=user.id).delete()
    ParentStudent.query.filter((ParentStudent.parent_id == user.id) |
                               (ParentStudent.student_id == user.id)).delete(synchronize_session=False)
    UserRole.query.filter_by(user_id=user.id).delete()
    Notification.query.filter_by(user_id=user.id).delete()
    db.session.delete(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description="User still has lessons, grades or other records")

    audit('user_deleted', f"Deleted user: {username}")
    return jsonify({'success': True, 'message': 'User deleted'})
