"""
Homework assignments and student submissions.
"""

from datetime import date, timedelta

from flask import Blueprint, jsonify, abort, current_app
from flask_login import login_required, current_user

from decorators import role_required
from extensions import db
from forms import (HomeworkForm, HomeworkSubmissionForm, SubmissionGradeForm, validate_json,
                   submitted_data)
from models import Homework, HomeworkSubmission, Schedule, Class, Subject, UserRoleEnum
from services.notifications import create_notification, notify_class_students
from services.roles import student_class_ids, parent_child_ids
from .utils import get_or_404, audit, to_dicts, acting_role, arg_int

bp = Blueprint('homework', __name__)


def default_due_date(schedule):
    start = schedule.schedule_date if schedule and schedule.schedule_date else date.today()
    return start + timedelta(days=current_app.config['HOMEWORK_DUE_DAYS'])


def own_homework(homework_id, action):
    homework = get_or_404(Homework, homework_id, "Homework not found")
    if homework.teacher_id != current_user.id:
        abort(403, description=f"You can only {action} your own homework assignments")
    return homework


@bp.route('/homework', methods=['GET'])
@login_required
def list_homework():
    class_id = arg_int('classId')
    role = acting_role()
    query = Homework.query
    if class_id:
        query = query.filter_by(class_id=class_id)
    elif role in (UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER):
        query = query.filter_by(teacher_id=current_user.id)
    elif role == UserRoleEnum.STUDENT:
        query = query.filter(Homework.class_id.in_(student_class_ids(current_user)))
    elif role == UserRoleEnum.PARENT:
        class_ids = set()
        for child_id in parent_child_ids(current_user):
            class_ids.update(student_class_ids(child_id))
        query = query.filter(Homework.class_id.in_(class_ids))
    else:
        return jsonify([])
    return jsonify(to_dicts(query.order_by(Homework.due_date, Homework.id).all()))


@bp.route('/homework', methods=['POST'])
@role_required(UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER)
def create_homework():
    form = validate_json(HomeworkForm)
    get_or_404(Class, form.class_id.data, "Class not found")
    get_or_404(Subject, form.subject_id.data, "Subject not found")
    schedule = None
    if form.schedule_id.data:
        schedule = db.session.get(Schedule, form.schedule_id.data)
        if schedule is None:
            abort(400, description="Lesson not found")

    homework = Homework(
        title=form.title.data,
        description=form.description.data,
        subject_id=form.subject_id.data,
        class_id=form.class_id.data,
        teacher_id=current_user.id,
        schedule_id=schedule.id if schedule else None,
        due_date=default_due_date(schedule),
    )
    db.session.add(homework)
    db.session.commit()

    notify_class_students(homework.class_id, "New homework",
                          f"A new assignment was added: {homework.title}")
    audit('homework_created', f"Created homework: {homework.title}")
    return jsonify(homework.to_dict()), 201


@bp.route('/homework/<int:homework_id>', methods=['PATCH'])
@role_required(UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER)
def update_homework(homework_id):
    homework = own_homework(homework_id, 'update')
    form = validate_json(HomeworkForm, partial=True)
    data = submitted_data(form)
    if 'schedule_id' in data:
        homework.schedule_id = data.pop('schedule_id') or None
    for field, value in data.items():
        if value is not None:
            setattr(homework, field, value)
    db.session.commit()
    audit('homework_updated', f"Updated homework: {homework.title}")
    return jsonify(homework.to_dict())


@bp.route('/homework/<int:homework_id>', methods=['DELETE'])
@role_required(UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER)
def delete_homework(homework_id):
    homework = own_homework(homework_id, 'delete')
    data = homework.to_dict()
    HomeworkSubmission.query.filter_by(homework_id=homework.id).delete()
    db.session.delete(homework)
    db.session.commit()
    audit('homework_deleted', f"Deleted homework: {data['title']}")
    return jsonify(data)


@bp.route('/homework-submissions', methods=['GET'])
@login_required
def list_submissions():
    homework_id = arg_int('homeworkId')
    role = acting_role()
    query = HomeworkSubmission.query

    if role == UserRoleEnum.STUDENT:
        query = query.filter_by(student_id=current_user.id)
        if homework_id:
            query = query.filter_by(homework_id=homework_id)
    elif role in (UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER):
        query = query.join(Homework, Homework.id == HomeworkSubmission.homework_id) \
            .filter(Homework.teacher_id == current_user.id)
        if homework_id:
            query = query.filter(HomeworkSubmission.homework_id == homework_id)
    else:
        return jsonify([])
    return jsonify(to_dicts(query.order_by(HomeworkSubmission.submitted_at).all()))


@bp.route('/homework-submissions', methods=['POST'])
@role_required(UserRoleEnum.STUDENT)
def submit_homework():
    form = validate_json(HomeworkSubmissionForm)
    homework = get_or_404(Homework, form.homework_id.data, "Homework not found")
    if homework.class_id not in student_class_ids(current_user):
        abort(403, description="You can only submit homework of your own class")

    submission = HomeworkSubmission(
        homework_id=homework.id,
        student_id=current_user.id,
        submission_text=form.submission_text.data or None,
        file_url=form.file_url.data or None,
    )
    db.session.add(submission)
    db.session.commit()

    create_notification(homework.teacher_id, "New homework submission",
                        f"A student submitted: {homework.title}")
    audit('homework_submitted', f"Submitted homework {homework.id}")
    return jsonify(submission.to_dict()), 201


@bp.route('/homework-submissions/<int:submission_id>/grade', methods=['POST'])
@role_required(UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER)
def grade_submission(submission_id):
    submission = get_or_404(HomeworkSubmission, submission_id, "Submission not found")
    homework = submission.homework
    if homework is None or homework.teacher_id != current_user.id:
        abort(403, description="You can only grade submissions for your assignments")

    form = validate_json(SubmissionGradeForm)
    submission.grade = form.grade.data
    submission.feedback = form.feedback.data or None
    db.session.commit()

    create_notification(submission.student_id, "Homework graded",
                        f'Your work "{homework.title}" was graded {submission.grade}')
    audit('homework_graded', f"Graded homework submission with {submission.grade}")
    return jsonify(submission.to_dict())
