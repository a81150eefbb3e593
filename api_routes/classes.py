"""
Classes and student enrolment.
"""

from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user

from decorators import admin_required
from extensions import db
from forms import ClassForm, StudentClassForm, validate_json, submitted_data
from models import Class, User, UserRole, UserRoleEnum, StudentClass
from services.roles import teacher_class_ids, student_class_ids, parent_child_ids
from .utils import (get_or_404, audit, to_dicts, acting_role, is_school_admin, admin_school_id,
                    arg_int)

bp = Blueprint('classes', __name__)


def leads_class(user, class_id):
    return UserRole.query.filter_by(user_id=user.id, role=UserRoleEnum.CLASS_TEACHER,
                                    class_id=class_id).first() is not None


def check_class_access(class_obj):
    """Abort with 403 unless the acting role may look at `class_obj`."""
    role = acting_role()
    if role == UserRoleEnum.SUPER_ADMIN:
        return
    if role in (UserRoleEnum.SCHOOL_ADMIN, UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL):
        if class_obj.school_id != admin_school_id():
            abort(403, description="You can only access classes in your school")
    elif role == UserRoleEnum.CLASS_TEACHER:
        if not leads_class(current_user, class_obj.id):
            abort(403, description="You can only access your assigned class")
    elif role == UserRoleEnum.TEACHER:
        if class_obj.id not in teacher_class_ids(current_user):
            abort(403, description="You can only access classes you teach")
    elif role == UserRoleEnum.STUDENT:
        if class_obj.id not in student_class_ids(current_user):
            abort(403, description="You can only access classes you are enrolled in")
    elif role == UserRoleEnum.PARENT:
        children = parent_child_ids(current_user)
        enrolled = StudentClass.query.filter(StudentClass.class_id == class_obj.id,
                                             StudentClass.student_id.in_(children)).first() \
            if children else None
        if enrolled is None:
            abort(403, description="You can only access classes of your children")
    else:
        abort(403, description="You don't have permission to access this class")


def class_students(class_id):
    return User.query.join(StudentClass, StudentClass.student_id == User.id) \
        .filter(StudentClass.class_id == class_id) \
        .order_by(User.last_name, User.first_name).all()


@bp.route('/classes', methods=['GET'])
@login_required
def list_classes():
    role = acting_role()
    school_id = admin_school_id()
    query = Class.query
    if role == UserRoleEnum.SUPER_ADMIN:
        pass
    elif school_id:
        query = query.filter_by(school_id=school_id)
    elif role == UserRoleEnum.STUDENT:
        query = query.filter(Class.id.in_(student_class_ids(current_user)))
    elif role == UserRoleEnum.TEACHER:
        query = query.filter(Class.id.in_(teacher_class_ids(current_user)))
    else:
        return jsonify([])
    return jsonify(to_dicts(query.order_by(Class.grade_level, Class.name).all()))


@bp.route('/classes/<int:class_id>', methods=['GET'])
@login_required
def get_class(class_id):
    class_obj = get_or_404(Class, class_id, "Class not found")
    check_class_access(class_obj)
    return jsonify(class_obj.to_dict())


@bp.route('/classes', methods=['POST'])
@admin_required
def create_class():
    form = validate_json(ClassForm)
    school_id = form.school_id.data
    if is_school_admin():
        own_school = admin_school_id()
        if own_school is None:
            abort(403, description="You don't have access to any school")
        if school_id and school_id != own_school:
            abort(403, description="You can only create classes for your school")
        school_id = own_school
    if not school_id:
        abort(400, description="School ID is required")

    class_obj = Class(name=form.name.data, school_id=school_id, grade_level=form.grade_level.data,
                      academic_year=form.academic_year.data)
    if form.grading_system.data:
        class_obj.grading_system = form.grading_system.data
    db.session.add(class_obj)
    db.session.commit()
    audit('class_created', f"Created class: {class_obj.name}")
    return jsonify(class_obj.to_dict()), 201


@bp.route('/classes/<int:class_id>', methods=['PATCH'])
@admin_required
def update_class(class_id):
    class_obj = get_or_404(Class, class_id, "Class not found")
    if is_school_admin() and class_obj.school_id != admin_school_id():
        abort(403, description="You can only update classes in your school")

    form = validate_json(ClassForm, partial=True)
    data = submitted_data(form)
    if 'school_id' in data and data['school_id'] != class_obj.school_id and is_school_admin():
        abort(403, description="You can only update classes in your school")
    for field, value in data.items():
        if value is not None:
            setattr(class_obj, field, value)
    db.session.commit()
    audit('class_updated', f"Updated class: {class_obj.name}")
    return jsonify(class_obj.to_dict())


@bp.route('/student-classes', methods=['GET'])
@login_required
def list_student_classes():
    student_id = arg_int('studentId')
    class_id = arg_int('classId')
    role = acting_role()

    if student_id:
        if role == UserRoleEnum.STUDENT and current_user.id != student_id:
            abort(403, description="You can only view your own classes")
        if role == UserRoleEnum.PARENT and student_id not in parent_child_ids(current_user):
            abort(403, description="You can only view your children's classes")
        return jsonify(to_dicts(StudentClass.query.filter_by(student_id=student_id).all()))

    if class_id:
        if role == UserRoleEnum.SCHOOL_ADMIN:
            class_obj = db.session.get(Class, class_id)
            if class_obj is None or class_obj.school_id != admin_school_id():
                abort(403, description="You can only view students in classes of your school")
        elif role == UserRoleEnum.TEACHER:
            if class_id not in teacher_class_ids(current_user):
                abort(403, description="You can only view students in classes you teach")
        elif role not in (UserRoleEnum.SUPER_ADMIN, UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL):
            abort(403, description="You don't have permission to view class students")
        return jsonify(to_dicts(class_students(class_id)))

    abort(400, description="Either studentId or classId must be provided")


@bp.route('/student-classes', methods=['POST'])
@admin_required
def add_student_to_class():
    form = validate_json(StudentClassForm)
    student = db.session.get(User, form.student_id.data)
    if student is None or student.role != UserRoleEnum.STUDENT:
        abort(404, description="Student not found")
    class_obj = get_or_404(Class, form.class_id.data, "Class not found")
    if is_school_admin() and class_obj.school_id != admin_school_id():
        abort(403, description="You can only add students to classes in your school")

    if not StudentClass.query.filter_by(student_id=student.id, class_id=class_obj.id).first():
        db.session.add(StudentClass(student_id=student.id, class_id=class_obj.id))
        db.session.commit()
    audit('student_added_to_class', f"Added student {student.id} to class {class_obj.id}")
    return jsonify({'message': 'Student added to class'}), 201


@bp.route('/students-by-class/<int:class_id>', methods=['GET'])
@login_required
def students_by_class(class_id):
    class_obj = get_or_404(Class, class_id, "Class not found")
    role = acting_role()
    if role == UserRoleEnum.SCHOOL_ADMIN:
        if class_obj.school_id != admin_school_id():
            abort(403, description="You can only view students in classes of your school")
    elif role == UserRoleEnum.TEACHER:
        if class_id not in teacher_class_ids(current_user):
            abort(403, description="You can only view students in classes you teach")
    elif role == UserRoleEnum.CLASS_TEACHER:
        if not leads_class(current_user, class_id):
            abort(403, description="You can only view students in your assigned class")
    elif role not in (UserRoleEnum.SUPER_ADMIN, UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL):
        abort(403, description="You don't have permission to view class students")
    return jsonify(to_dicts(class_students(class_id)))
