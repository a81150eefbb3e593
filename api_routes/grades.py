"""
Lesson grades and the averages shown in the journal.
"""

from datetime import datetime, time

from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user

from decorators import role_required
from extensions import db
from forms import GradeForm, validate_json, submitted_data
from models import Grade, Class, User, StudentClass, GradingSystemEnum, UserRoleEnum
from services.grade_calculation import subject_averages, student_subject_average
from services.notifications import create_notification
from services.roles import class_teacher_class_id, parent_child_ids
from .utils import get_or_404, audit, to_dicts, acting_role, arg_int, arg_date

bp = Blueprint('grades', __name__)

GRADING_ROLES = (UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER)
JOURNAL_ROLES = (UserRoleEnum.SUPER_ADMIN, UserRoleEnum.SCHOOL_ADMIN, UserRoleEnum.TEACHER,
                 UserRoleEnum.CLASS_TEACHER, UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL)


def check_student_access(student_id):
    role = acting_role()
    if role == UserRoleEnum.STUDENT and current_user.id != student_id:
        abort(403, description="You can only view your own grades")
    if role == UserRoleEnum.PARENT and student_id not in parent_child_ids(current_user):
        abort(403, description="You can only view your children's grades")


def own_grade(grade_id, action):
    grade = get_or_404(Grade, grade_id, "Grade not found")
    if grade.teacher_id != current_user.id:
        abort(403, description=f"You can only {action} grades you gave")
    return grade


def check_grade_value(class_id, value):
    class_obj = get_or_404(Class, class_id, "Class not found")
    if class_obj.grading_system == GradingSystemEnum.FIVE_POINT and not 1 <= value <= 5:
        abort(400, description="Five-point grades must be between 1 and 5")


@bp.route('/grades', methods=['GET'])
@login_required
def list_grades():
    student_id = arg_int('studentId')
    class_id = arg_int('classId')
    subject_id = arg_int('subjectId')
    role = acting_role()
    query = Grade.query

    if student_id:
        check_student_access(student_id)
        query = query.filter_by(student_id=student_id)
        if subject_id:
            query = query.filter_by(subject_id=subject_id)
    elif class_id or subject_id:
        if role not in JOURNAL_ROLES:
            abort(403, description="Forbidden")
        if class_id:
            query = query.filter_by(class_id=class_id)
        if subject_id:
            query = query.filter_by(subject_id=subject_id)
    elif role == UserRoleEnum.STUDENT:
        query = query.filter_by(student_id=current_user.id)
    elif role == UserRoleEnum.PARENT:
        query = query.filter(Grade.student_id.in_(parent_child_ids(current_user)))
    elif role == UserRoleEnum.CLASS_TEACHER:
        own_class = class_teacher_class_id(current_user)
        if not own_class:
            return jsonify([])
        query = query.filter_by(class_id=own_class)
    elif role == UserRoleEnum.TEACHER:
        query = query.filter_by(teacher_id=current_user.id)
    else:
        return jsonify([])
    return jsonify(to_dicts(query.order_by(Grade.created_at, Grade.id).all()))


@bp.route('/grades', methods=['POST'])
@role_required(*GRADING_ROLES)
def create_grade():
    form = validate_json(GradeForm)
    student = get_or_404(User, form.student_id.data, "Student not found")
    check_grade_value(form.class_id.data, form.grade.data)

    schedule_id = form.schedule_id.data
    assignment_id = form.assignment_id.data
    if schedule_id and assignment_id:
        existing = Grade.query.filter_by(student_id=student.id, schedule_id=schedule_id,
                                         assignment_id=assignment_id).first()
        if existing:
            return jsonify({
                'message': "This assignment is already graded. Create a new assignment or change the existing grade.",
                'existingGradeId': existing.id,
            }), 400

    grade = Grade(
        student_id=student.id,
        subject_id=form.subject_id.data,
        class_id=form.class_id.data,
        teacher_id=current_user.id,
        schedule_id=schedule_id,
        assignment_id=assignment_id,
        subgroup_id=form.subgroup_id.data,
        grade=form.grade.data,
        comment=form.comment.data or None,
        grade_type=form.grade_type.data,
    )
    if form.date.data:
        grade.created_at = datetime.combine(form.date.data, time())
    db.session.add(grade)
    db.session.commit()

    create_notification(student.id, "New grade", f"You have a new grade: {grade.grade} ({grade.grade_type})")
    audit('grade_created', f"Created grade {grade.grade} for student {grade.student_id}")
    return jsonify(grade.to_dict()), 201


@bp.route('/grades/<int:grade_id>', methods=['PUT', 'PATCH'])
@role_required(*GRADING_ROLES)
def update_grade(grade_id):
    grade = own_grade(grade_id, 'edit')
    form = validate_json(GradeForm, partial=True)
    data = submitted_data(form)
    if data.get('date'):
        data['created_at'] = datetime.combine(data.pop('date'), time())
    data.pop('date', None)
    if 'grade' in data:
        check_grade_value(data.get('class_id', grade.class_id), data['grade'])

    for field, value in data.items():
        if field == 'comment':
            value = value or None
        setattr(grade, field, value)
    db.session.commit()

    if 'grade' in data:
        create_notification(grade.student_id, "Grade updated",
                            f"Your grade was changed to: {grade.grade} ({grade.grade_type})")
    audit('grade_updated', f"Updated grade for student {grade.student_id}")
    return jsonify(grade.to_dict())


@bp.route('/grades/<int:grade_id>', methods=['DELETE'])
@role_required(*GRADING_ROLES)
def delete_grade(grade_id):
    grade = own_grade(grade_id, 'delete')
    student_id = grade.student_id
    db.session.delete(grade)
    db.session.commit()

    create_notification(student_id, "Grade removed", "One of your subject grades was removed")
    audit('grade_deleted', f"Deleted grade for student {student_id}")
    return jsonify({'success': True})


@bp.route('/student-subject-averages', methods=['GET'])
@role_required(*JOURNAL_ROLES)
def class_subject_averages():
    class_id = arg_int('classId')
    if not class_id and acting_role() == UserRoleEnum.CLASS_TEACHER:
        class_id = class_teacher_class_id(current_user)
    if not class_id:
        abort(400, description="classId is required")
    class_obj = get_or_404(Class, class_id, "Class not found")

    student_id = arg_int('studentId')
    students = User.query.join(StudentClass, StudentClass.student_id == User.id) \
        .filter(StudentClass.class_id == class_id).all()
    if student_id:
        students = [s for s in students if s.id == student_id]

    grades = Grade.query.filter_by(class_id=class_id)
    if student_id:
        grades = grades.filter_by(student_id=student_id)
    averages = subject_averages(class_obj, students, grades.all(),
                                from_date=arg_date('fromDate'), to_date=arg_date('toDate'))
    return jsonify({str(sid): {str(key): value for key, value in result.items()}
                    for sid, result in averages.items()})


@bp.route('/student-subject-average', methods=['GET'])
@login_required
def single_subject_average():
    student_id = arg_int('studentId')
    subject_id = arg_int('subjectId')
    if not student_id or not subject_id:
        abort(400, description="studentId and subjectId are required")
    check_student_access(student_id)

    link = StudentClass.query.filter_by(student_id=student_id).order_by(StudentClass.id).first()
    if link is None:
        abort(404, description="Student is not enrolled in any class")
    class_obj = get_or_404(Class, link.class_id, "Class not found")
    return jsonify(student_subject_average(student_id, subject_id, class_obj,
                                           subgroup_id=arg_int('subgroupId')))
