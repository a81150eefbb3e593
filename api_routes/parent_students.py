from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user

from decorators import admin_required, SCHOOL_STAFF_ROLES
from extensions import db
from forms import ParentStudentForm, validate_json
from models import ParentStudent, User, UserRoleEnum
from services.roles import parent_child_ids
from .utils import audit, to_dicts, acting_role, is_school_admin, admin_school_id, arg_int

bp = Blueprint('parent_students', __name__)


@bp.route('/parent-students', methods=['GET'])
@login_required
def list_parent_students():
    parent_id = arg_int('parentId')
    student_id = arg_int('studentId')
    role = acting_role()

    if parent_id:
        if role not in SCHOOL_STAFF_ROLES and current_user.id != parent_id:
            abort(403, description="You can only view your own parent-student connections")
        links = ParentStudent.query.filter_by(parent_id=parent_id)
    elif student_id:
        if role == UserRoleEnum.STUDENT and current_user.id != student_id:
            abort(403, description="You can only view your own parent-student connections")
        if role == UserRoleEnum.PARENT and student_id not in parent_child_ids(current_user):
            abort(403, description="You can only view parent connections for your children")
        links = ParentStudent.query.filter_by(student_id=student_id)
    elif role == UserRoleEnum.PARENT:
        links = ParentStudent.query.filter_by(parent_id=current_user.id)
    else:
        abort(400, description="Either parentId or studentId must be provided")
    return jsonify(to_dicts(links.order_by(ParentStudent.id).all()))


@bp.route('/parent-students', methods=['POST'])
@admin_required
def connect_parent():
    form = validate_json(ParentStudentForm)
    parent = db.session.get(User, form.parent_id.data)
    student = db.session.get(User, form.student_id.data)
    if parent is None or parent.role != UserRoleEnum.PARENT:
        abort(404, description="Parent not found")
    if student is None or student.role != UserRoleEnum.STUDENT:
        abort(404, description="Student not found")
    if is_school_admin():
        school_id = admin_school_id()
        if student.school_id != school_id or parent.school_id != school_id:
            abort(403, description="You can only connect parents to students in your school")

    link = ParentStudent.query.filter_by(parent_id=parent.id, student_id=student.id).first()
    if link is None:
        link = ParentStudent(parent_id=parent.id, student_id=student.id)
        db.session.add(link)
        db.session.commit()
    audit('parent_connected_to_student', f"Connected parent {parent.id} to student {student.id}")
    return jsonify(link.to_dict()), 201
