from flask import Blueprint, jsonify, abort, current_app
from flask_login import login_user, logout_user, current_user, login_required
from werkzeug.security import check_password_hash

from forms import LoginForm, UserForm, validate_json
from models import User, UserRoleEnum
from services.activity_log import log_activity
from .users import check_can_create, create_user
from .utils import audit

bp = Blueprint('auth', __name__)


@bp.route('/register', methods=['POST'])
def register():
    """
    Create an account. The very first account must be a super admin and is
    logged in right away; after that only authenticated admins may register users.
    """
    form = validate_json(UserForm)
    role = form.role.data

    if current_user.is_authenticated:
        check_can_create(current_user, role, form.school_id.data)
    else:
        has_users = User.query.first() is not None
        if has_users and role == UserRoleEnum.SUPER_ADMIN:
            abort(403, description="A super admin already exists")
        if has_users:
            abort(403, description="Authentication is required to register users")
        if role != UserRoleEnum.SUPER_ADMIN:
            abort(403, description="The first user must be a super admin")

    user = create_user(form)

    if current_user.is_authenticated:
        audit('user_created', f"Created user {user.username} with role {user.role}")
    else:
        login_user(user)
        current_app.logger.info(f"Initial super admin {user.username} registered")
    return jsonify(user.to_dict()), 201


@bp.route('/login', methods=['POST'])
def login():
    form = validate_json(LoginForm)
    user = User.query.filter_by(username=form.username.data).first()
    if not user or not check_password_hash(user.password_hash, form.password.data):
        current_app.logger.warning(f"Failed login attempt for {form.username.data}")
        return jsonify({'message': 'Invalid username or password'}), 401

    login_user(user)
    log_activity(user.id, 'user_login', f"User {user.username} logged in")
    return jsonify(user.to_dict())


@bp.route('/logout', methods=['POST'])
def logout():
    if current_user.is_authenticated:
        log_activity(current_user.id, 'user_logout', f"User {current_user.username} logged out")
        logout_user()
    return jsonify({'message': 'Logged out'})


@bp.route('/user', methods=['GET'])
@login_required
def get_current_user():
    return jsonify(current_user.to_dict())
