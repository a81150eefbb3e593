"""
Assignments of cumulative-grading lessons and the scores students earn on them.
"""

from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError

from decorators import role_required
from extensions import db
from forms import AssignmentForm, CumulativeGradeForm, validate_json, submitted_data
from models import Assignment, CumulativeGrade, Schedule, User, UserRoleEnum
from services.grade_calculation import class_assignment_averages
from .utils import get_or_404, audit, to_dicts, arg_int

bp = Blueprint('assignments', __name__)

EDITOR_ROLES = (UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER,
                UserRoleEnum.SCHOOL_ADMIN, UserRoleEnum.SUPER_ADMIN)


def ordered(query):
    return query.order_by(Assignment.display_order, Assignment.id).all()


def check_score(assignment, score):
    if score > float(assignment.max_score):
        abort(400, description=f"Score cannot exceed the max score of {assignment.max_score:g}")


@bp.route('/assignments', methods=['GET'])
@login_required
def list_assignments():
    class_id = arg_int('classId')
    subject_id = arg_int('subjectId')
    subgroup_id = arg_int('subgroupId')
    if not (class_id or subject_id or subgroup_id):
        return jsonify([])

    query = Assignment.query
    if class_id:
        query = query.filter_by(class_id=class_id)
    if subject_id:
        query = query.filter_by(subject_id=subject_id)
    if subgroup_id:
        query = query.filter_by(subgroup_id=subgroup_id)
    return jsonify(to_dicts(ordered(query)))


@bp.route('/assignments/class/<int:class_id>', methods=['GET'])
@login_required
def assignments_by_class(class_id):
    return jsonify(to_dicts(ordered(Assignment.query.filter_by(class_id=class_id))))


@bp.route('/assignments/teacher/<int:teacher_id>', methods=['GET'])
@login_required
def assignments_by_teacher(teacher_id):
    return jsonify(to_dicts(ordered(Assignment.query.filter_by(teacher_id=teacher_id))))


@bp.route('/assignments/subject/<int:subject_id>', methods=['GET'])
@login_required
def assignments_by_subject(subject_id):
    return jsonify(to_dicts(ordered(Assignment.query.filter_by(subject_id=subject_id))))


@bp.route('/assignments/subgroup/<int:subgroup_id>', methods=['GET'])
@login_required
def assignments_by_subgroup(subgroup_id):
    return jsonify(to_dicts(ordered(Assignment.query.filter_by(subgroup_id=subgroup_id))))


@bp.route('/assignments/schedule/<int:schedule_id>', methods=['GET'])
@login_required
def assignments_by_schedule(schedule_id):
    return jsonify(to_dicts(ordered(Assignment.query.filter_by(schedule_id=schedule_id))))


@bp.route('/assignments/<int:assignment_id>', methods=['GET'])
@login_required
def get_assignment(assignment_id):
    return jsonify(get_or_404(Assignment, assignment_id, "Assignment not found").to_dict())


@bp.route('/assignments', methods=['POST'])
@role_required(*EDITOR_ROLES)
def create_assignment():
    form = validate_json(AssignmentForm)
    schedule = get_or_404(Schedule, form.schedule_id.data, "Schedule not found")
    assignment = Assignment(
        schedule_id=schedule.id,
        assignment_type=form.assignment_type.data,
        max_score=form.max_score.data,
        teacher_id=form.teacher_id.data or current_user.id,
        class_id=form.class_id.data,
        subject_id=form.subject_id.data,
        subgroup_id=form.subgroup_id.data,
        description=form.description.data or None,
        display_order=form.display_order.data or 0,
        planned_for=bool(form.planned_for.data),
    )
    db.session.add(assignment)
    db.session.commit()
    audit('assignment_created', f"Created {assignment.assignment_type} assignment for schedule {schedule.id}")
    return jsonify(assignment.to_dict()), 201


@bp.route('/assignments/<int:assignment_id>', methods=['PATCH'])
@role_required(*EDITOR_ROLES)
def update_assignment(assignment_id):
    assignment = get_or_404(Assignment, assignment_id, "Assignment not found")
    form = validate_json(AssignmentForm, partial=True)
    data = submitted_data(form)
    if 'schedule_id' in data:
        get_or_404(Schedule, data['schedule_id'], "Schedule not found")
    for field, value in data.items():
        if field in ('description', 'subgroup_id'):
            value = value or None
        elif field == 'display_order':
            value = value or 0
        setattr(assignment, field, value)
    db.session.commit()
    audit('assignment_updated', f"Updated assignment {assignment.id}")
    return jsonify(assignment.to_dict())


@bp.route('/assignments/<int:assignment_id>', methods=['DELETE'])
@role_required(*EDITOR_ROLES)
def delete_assignment(assignment_id):
    assignment = get_or_404(Assignment, assignment_id, "Assignment not found")
    data = assignment.to_dict()
    CumulativeGrade.query.filter_by(assignment_id=assignment.id).delete()
    db.session.delete(assignment)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description="Assignment still has lesson grades")
    audit('assignment_deleted', f"Deleted assignment {assignment_id}")
    return jsonify({'message': 'Assignment deleted successfully', 'assignment': data})


@bp.route('/cumulative-grades/assignment/<int:assignment_id>', methods=['GET'])
@login_required
def cumulative_grades_by_assignment(assignment_id):
    grades = CumulativeGrade.query.filter_by(assignment_id=assignment_id).order_by(CumulativeGrade.id).all()
    return jsonify(to_dicts(grades))


@bp.route('/cumulative-grades/student/<int:student_id>', methods=['GET'])
@login_required
def cumulative_grades_by_student(student_id):
    grades = CumulativeGrade.query.filter_by(student_id=student_id).order_by(CumulativeGrade.id).all()
    return jsonify(to_dicts(grades))


@bp.route('/cumulative-grades/student/<int:student_id>/assignment/<int:assignment_id>', methods=['GET'])
@login_required
def student_cumulative_grade(student_id, assignment_id):
    grade = CumulativeGrade.query.filter_by(student_id=student_id, assignment_id=assignment_id).first()
    if grade is None:
        abort(404, description="Cumulative grade not found")
    return jsonify(grade.to_dict())


@bp.route('/cumulative-grades/<int:grade_id>', methods=['GET'])
@login_required
def get_cumulative_grade(grade_id):
    return jsonify(get_or_404(CumulativeGrade, grade_id, "Cumulative grade not found").to_dict())


@bp.route('/cumulative-grades', methods=['POST'])
@role_required(*EDITOR_ROLES)
def create_cumulative_grade():
    form = validate_json(CumulativeGradeForm)
    assignment = get_or_404(Assignment, form.assignment_id.data, "Assignment not found")
    get_or_404(User, form.student_id.data, "Student not found")
    check_score(assignment, form.score.data)
    if CumulativeGrade.query.filter_by(assignment_id=assignment.id, student_id=form.student_id.data).first():
        abort(400, description="The student already has a score for this assignment")

    grade = CumulativeGrade(assignment_id=assignment.id, student_id=form.student_id.data,
                            score=form.score.data, comment=form.comment.data or None)
    db.session.add(grade)
    db.session.commit()
    audit('cumulative_grade_created', f"Scored {grade.score:g} for student {grade.student_id} "
                                      f"on assignment {assignment.id}")
    return jsonify(grade.to_dict()), 201


@bp.route('/cumulative-grades/<int:grade_id>', methods=['PATCH'])
@role_required(*EDITOR_ROLES)
def update_cumulative_grade(grade_id):
    grade = get_or_404(CumulativeGrade, grade_id, "Cumulative grade not found")
    form = validate_json(CumulativeGradeForm, partial=True)
    data = submitted_data(form)
    data.pop('assignment_id', None)
    data.pop('student_id', None)
    if 'score' in data:
        check_score(db.session.get(Assignment, grade.assignment_id), data['score'])
        grade.score = data['score']
    if 'comment' in data:
        grade.comment = data['comment'] or None
    db.session.commit()
    audit('cumulative_grade_updated', f"Updated cumulative grade {grade.id}")
    return jsonify(grade.to_dict())


@bp.route('/cumulative-grades/<int:grade_id>', methods=['DELETE'])
@role_required(*EDITOR_ROLES)
def delete_cumulative_grade(grade_id):
    grade = get_or_404(CumulativeGrade, grade_id, "Cumulative grade not found")
    data = grade.to_dict()
    db.session.delete(grade)
    db.session.commit()
    audit('cumulative_grade_deleted', f"Deleted cumulative grade {grade_id}")
    return jsonify({'message': 'Cumulative grade deleted successfully', 'grade': data})


@bp.route('/class/<int:class_id>/average-scores', methods=['GET'])
@login_required
def class_average_scores(class_id):
    return jsonify(class_assignment_averages(class_id))
