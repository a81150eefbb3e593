"""
Subgroups (named subsets of a class used for split lessons) and their members.
"""

from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError

from decorators import admin_required
from extensions import db
from forms import SubgroupForm, StudentSubgroupForm, validate_json, submitted_data
from models import Subgroup, StudentSubgroup, StudentClass, Schedule, User, UserRoleEnum
from services.roles import student_subgroup_ids, teacher_class_ids
from .utils import (get_or_404, audit, to_dicts, acting_role, is_school_admin, admin_school_id,
                    arg_int)

bp = Blueprint('subgroups', __name__)


def is_enrolled(student_id, class_id):
    return StudentClass.query.filter_by(student_id=student_id, class_id=class_id).first() is not None


def subgroup_students(subgroup_id):
    return User.query.join(StudentSubgroup, StudentSubgroup.student_id == User.id) \
        .filter(StudentSubgroup.subgroup_id == subgroup_id) \
        .order_by(User.last_name, User.first_name).all()


@bp.route('/subgroups', methods=['GET'])
@login_required
def list_subgroups():
    class_id = arg_int('classId')
    school_id = arg_int('schoolId')
    role = acting_role()
    query = Subgroup.query

    if class_id:
        query = query.filter_by(class_id=class_id)
    elif school_id:
        query = query.filter_by(school_id=school_id)
    elif role == UserRoleEnum.SUPER_ADMIN:
        pass
    elif role in (UserRoleEnum.SCHOOL_ADMIN, UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL):
        school_id = admin_school_id()
        if not school_id:
            return jsonify([])
        query = query.filter_by(school_id=school_id)
    elif role in (UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER):
        # Subgroups the teacher has lessons with, else every subgroup of their classes
        rows = db.session.query(Schedule.subgroup_id) \
            .filter(Schedule.teacher_id == current_user.id, Schedule.subgroup_id.isnot(None)) \
            .distinct().all()
        taught = [row[0] for row in rows]
        if taught:
            query = query.filter(Subgroup.id.in_(taught))
        else:
            query = query.filter(Subgroup.class_id.in_(teacher_class_ids(current_user)))
    elif role == UserRoleEnum.STUDENT:
        query = query.filter(Subgroup.id.in_(student_subgroup_ids(current_user.id)))
    else:
        return jsonify([])
    return jsonify(to_dicts(query.order_by(Subgroup.name).all()))


@bp.route('/subgroups/<int:subgroup_id>', methods=['GET'])
@login_required
def get_subgroup(subgroup_id):
    return jsonify(get_or_404(Subgroup, subgroup_id, "Subgroup not found").to_dict())


@bp.route('/subgroups', methods=['POST'])
@admin_required
def create_subgroup():
    form = validate_json(SubgroupForm)
    if is_school_admin() and form.school_id.data != admin_school_id():
        abort(403, description="You can only create subgroups in your own school")

    student_ids = list(dict.fromkeys(sid for sid in (form.student_ids.data or []) if sid))
    for student_id in student_ids:
        if not is_enrolled(student_id, form.class_id.data):
            abort(400, description=f"Student {student_id} must belong to the class that this subgroup is for")

    subgroup = Subgroup(name=form.name.data, description=form.description.data or None,
                        class_id=form.class_id.data, school_id=form.school_id.data)
    db.session.add(subgroup)
    db.session.flush()
    for student_id in student_ids:
        db.session.add(StudentSubgroup(student_id=student_id, subgroup_id=subgroup.id))
    db.session.commit()

    audit('subgroup_created', f"Created subgroup: {subgroup.name} for class ID: {subgroup.class_id}")
    return jsonify(subgroup.to_dict()), 201


@bp.route('/subgroups/<int:subgroup_id>', methods=['PATCH'])
@admin_required
def update_subgroup(subgroup_id):
    subgroup = get_or_404(Subgroup, subgroup_id, "Subgroup not found")
    if is_school_admin() and subgroup.school_id != admin_school_id():
        abort(403, description="You can only update subgroups in your own school")

    form = validate_json(SubgroupForm, partial=True)
    data = submitted_data(form)
    data.pop('student_ids', None)
    if 'name' in data:
        subgroup.name = data['name']
    if 'description' in data:
        subgroup.description = data['description'] or None
    db.session.commit()
    audit('subgroup_updated', f"Updated subgroup ID: {subgroup.id}, Name: {subgroup.name}")
    return jsonify(subgroup.to_dict())


@bp.route('/subgroups/<int:subgroup_id>', methods=['DELETE'])
@admin_required
def delete_subgroup(subgroup_id):
    subgroup = get_or_404(Subgroup, subgroup_id, "Subgroup not found")
    if is_school_admin() and subgroup.school_id != admin_school_id():
        abort(403, description="You can only delete subgroups in your own school")

    data = subgroup.to_dict()
    StudentSubgroup.query.filter_by(subgroup_id=subgroup.id).delete()
    db.session.delete(subgroup)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description="Subgroup still has lessons, grades or assignments")
    audit('subgroup_deleted', f"Deleted subgroup ID: {subgroup_id}, Name: {data['name']}")
    return jsonify(data)


@bp.route('/student-subgroups', methods=['GET'])
@login_required
def list_student_subgroups():
    query = StudentSubgroup.query
    subgroup_id = arg_int('subgroupId')
    student_id = arg_int('studentId')
    if subgroup_id:
        query = query.filter_by(subgroup_id=subgroup_id)
    elif student_id:
        query = query.filter_by(student_id=student_id)
    return jsonify(to_dicts(query.order_by(StudentSubgroup.id).all()))


@bp.route('/student-subgroups', methods=['POST'])
@admin_required
def add_student_to_subgroup():
    form = validate_json(StudentSubgroupForm)
    subgroup = get_or_404(Subgroup, form.subgroup_id.data, "Subgroup not found")
    student = db.session.get(User, form.student_id.data)
    if student is None or student.role != UserRoleEnum.STUDENT:
        abort(404, description="Student not found")

    if is_school_admin():
        if subgroup.school_id != admin_school_id():
            abort(403, description="You can only add students to subgroups in your own school")
        if student.school_id != admin_school_id():
            abort(403, description="You can only add students from your own school")

    if not is_enrolled(student.id, subgroup.class_id):
        abort(400, description="Student must belong to the class that this subgroup is for")

    link = StudentSubgroup.query.filter_by(student_id=student.id, subgroup_id=subgroup.id).first()
    if link is None:
        link = StudentSubgroup(student_id=student.id, subgroup_id=subgroup.id)
        db.session.add(link)
        db.session.commit()
    audit('student_added_to_subgroup', f"Added student ID: {student.id} to subgroup ID: {subgroup.id}")
    return jsonify(link.to_dict()), 201


@bp.route('/student-subgroups', methods=['DELETE'])
@admin_required
def remove_student_from_subgroup():
    student_id = arg_int('studentId')
    subgroup_id = arg_int('subgroupId')
    if not student_id or not subgroup_id:
        abort(400, description="studentId and subgroupId are required")

    subgroup = get_or_404(Subgroup, subgroup_id, "Subgroup not found")
    if is_school_admin() and subgroup.school_id != admin_school_id():
        abort(403, description="You can only remove students from subgroups in your own school")

    StudentSubgroup.query.filter_by(student_id=student_id, subgroup_id=subgroup_id).delete()
    db.session.commit()
    audit('student_removed_from_subgroup', f"Removed student ID: {student_id} from subgroup ID: {subgroup_id}")
    return jsonify({'message': 'Student removed from subgroup successfully'})


@bp.route('/students-by-subgroup', methods=['GET'])
@login_required
def students_by_subgroup():
    subgroup_id = arg_int('subgroupId')
    if not subgroup_id:
        abort(400, description="Invalid subgroup ID")
    get_or_404(Subgroup, subgroup_id, "Subgroup not found")
    return jsonify(to_dicts(subgroup_students(subgroup_id)))
