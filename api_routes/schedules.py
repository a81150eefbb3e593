"""
Lesson schedule: listing, editing and the conducted / not conducted status.
"""

from flask import Blueprint, jsonify, abort, current_app
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError

from decorators import admin_required, role_required, ADMIN_ROLES, TEACHING_ROLES
from extensions import db
from forms import ScheduleForm, ScheduleStatusForm, validate_json, submitted_data
from models import Schedule, Class, Subject, Subgroup, User, UserRoleEnum
from services.roles import (class_teacher_class_id, parent_child_ids, student_class_ids,
                            student_subgroup_ids)
from services.schedule_utils import sort_schedules, visible_to_student, lesson_has_ended, time_to_minutes
from .subjects import assign_teacher_to_subject
from .utils import get_or_404, audit, acting_role, is_school_admin, admin_school_id, arg_int, arg_date

bp = Blueprint('schedules', __name__)

OPTIONAL_FIELDS = ('room', 'subgroup_id', 'schedule_date')


def schedules_for_classes(class_ids):
    if not class_ids:
        return []
    return Schedule.query.filter(Schedule.class_id.in_(class_ids)).all()


def scoped_schedules():
    """Lessons the acting role sees when no class or teacher filter is given."""
    role = acting_role()
    if role == UserRoleEnum.SUPER_ADMIN:
        return Schedule.query.all()
    if role in (UserRoleEnum.SCHOOL_ADMIN, UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL):
        school_id = admin_school_id()
        if not school_id:
            return []
        return Schedule.query.join(Class, Class.id == Schedule.class_id) \
            .filter(Class.school_id == school_id).all()
    if role == UserRoleEnum.TEACHER:
        return Schedule.query.filter_by(teacher_id=current_user.id).all()
    if role == UserRoleEnum.CLASS_TEACHER:
        class_id = class_teacher_class_id(current_user)
        return schedules_for_classes([class_id] if class_id else [])
    if role == UserRoleEnum.STUDENT:
        return visible_to_student(schedules_for_classes(student_class_ids(current_user)),
                                  student_subgroup_ids(current_user.id))
    if role == UserRoleEnum.PARENT:
        class_ids = set()
        for child_id in parent_child_ids(current_user):
            class_ids.update(student_class_ids(child_id))
        return schedules_for_classes(list(class_ids))
    return []


def serialize(schedules):
    return [s.to_dict(include_assignments=True) for s in sort_schedules(schedules)]


def check_subgroup(subgroup_id, class_id):
    if subgroup_id:
        subgroup = get_or_404(Subgroup, subgroup_id, "Subgroup not found")
        if subgroup.class_id != class_id:
            abort(400, description="Subgroup does not belong to the lesson's class")


@bp.route('/schedules', methods=['GET'])
@login_required
def list_schedules():
    class_id = arg_int('classId')
    teacher_id = arg_int('teacherId')
    schedule_date = arg_date('scheduleDate')

    if class_id:
        schedules = Schedule.query.filter_by(class_id=class_id).all()
    elif teacher_id:
        schedules = Schedule.query.filter_by(teacher_id=teacher_id).all()
    else:
        schedules = scoped_schedules()

    if schedule_date:
        schedules = [s for s in schedules if s.schedule_date == schedule_date]
    return jsonify(serialize(schedules))


@bp.route('/schedules', methods=['POST'])
@admin_required
def create_schedule():
    form = validate_json(ScheduleForm)
    class_obj = get_or_404(Class, form.class_id.data, "Class not found")
    if is_school_admin() and class_obj.school_id != admin_school_id():
        abort(403, description="You can only create schedules for your school")
    get_or_404(Subject, form.subject_id.data, "Subject not found")
    get_or_404(User, form.teacher_id.data, "Teacher not found")
    check_subgroup(form.subgroup_id.data, class_obj.id)

    schedule = Schedule(
        class_id=class_obj.id,
        subject_id=form.subject_id.data,
        teacher_id=form.teacher_id.data,
        day_of_week=form.day_of_week.data,
        schedule_date=form.schedule_date.data,
        start_time=form.start_time.data,
        end_time=form.end_time.data,
        room=form.room.data or None,
        status=form.status.data or 'not_conducted',
        subgroup_id=form.subgroup_id.data,
    )
    db.session.add(schedule)
    if assign_teacher_to_subject(schedule.teacher_id, schedule.subject_id):
        current_app.logger.info(f"Teacher {schedule.teacher_id} assigned to subject {schedule.subject_id}")
    db.session.commit()

    audit('schedule_created', f"Created schedule entry for {schedule.schedule_date or 'unspecified date'}")
    return jsonify(schedule.to_dict(include_assignments=True)), 201


@bp.route('/schedules/<int:schedule_id>', methods=['PATCH'])
@admin_required
def update_schedule(schedule_id):
    schedule = get_or_404(Schedule, schedule_id, "Schedule not found")
    if is_school_admin():
        class_obj = db.session.get(Class, schedule.class_id)
        if class_obj is None or class_obj.school_id != admin_school_id():
            abort(403, description="You can only update schedules from your school")

    form = validate_json(ScheduleForm, partial=True)
    data = submitted_data(form)
    if 'class_id' in data and data['class_id'] != schedule.class_id:
        target = get_or_404(Class, data['class_id'], "Class not found")
        if is_school_admin() and target.school_id != admin_school_id():
            abort(403, description="You can only update schedules from your school")

    start = data.get('start_time') or schedule.start_time
    end = data.get('end_time') or schedule.end_time
    if time_to_minutes(end) <= time_to_minutes(start):
        abort(400, description="End time must be after start time")
    check_subgroup(data.get('subgroup_id'), data.get('class_id', schedule.class_id))

    for field, value in data.items():
        if field in OPTIONAL_FIELDS:
            value = value or None
        setattr(schedule, field, value)
    db.session.commit()

    audit('schedule_updated', f"Updated schedule entry ID {schedule.id}")
    return jsonify(schedule.to_dict(include_assignments=True))


@bp.route('/schedules/<int:schedule_id>', methods=['DELETE'])
@admin_required
def delete_schedule(schedule_id):
    schedule = get_or_404(Schedule, schedule_id, "Schedule not found")
    if is_school_admin():
        class_obj = db.session.get(Class, schedule.class_id)
        if class_obj is None or class_obj.school_id != admin_school_id():
            abort(403, description="You can only delete schedules for your school")

    data = schedule.to_dict()
    for assignment in list(schedule.assignments):
        db.session.delete(assignment)
    db.session.delete(schedule)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description="Lesson still has grades, homework or attendance records")

    audit('schedule_deleted',
          f"Deleted schedule entry for {data['scheduleDate'] or 'unspecified date'}, class ID: {data['classId']}")
    return jsonify(data)


@bp.route('/schedules/<int:schedule_id>/status', methods=['PATCH'])
@role_required(*(ADMIN_ROLES + TEACHING_ROLES))
def update_schedule_status(schedule_id):
    schedule = get_or_404(Schedule, schedule_id, "Schedule not found")
    role = acting_role()
    if role == UserRoleEnum.TEACHER and schedule.teacher_id != current_user.id:
        abort(403, description="You can only update schedules where you are the teacher")
    if role == UserRoleEnum.SCHOOL_ADMIN:
        class_obj = db.session.get(Class, schedule.class_id)
        if class_obj is None or class_obj.school_id != admin_school_id():
            abort(403, description="You can only update schedules from your school")

    form = validate_json(ScheduleStatusForm)
    status = form.status.data
    if status == 'conducted' and not lesson_has_ended(schedule):
        return jsonify({'message': "Cannot mark lesson as conducted before it ends",
                        'endTime': schedule.end_time}), 400

    schedule.status = status
    db.session.commit()
    audit('schedule_status_updated', f"Updated schedule {schedule.id} status to {status}")
    return jsonify(schedule.to_dict(include_assignments=True))


@bp.route('/student-schedules/<int:student_id>', methods=['GET'])
@login_required
def student_schedules(student_id):
    role = acting_role()
    if role == UserRoleEnum.CLASS_TEACHER:
        class_id = class_teacher_class_id(current_user)
        if not class_id:
            abort(403, description="You need to be assigned to a class as a class teacher")
        if class_id not in student_class_ids(student_id):
            abort(403, description="You can only view schedules of students in your assigned class")
    elif role == UserRoleEnum.PARENT:
        if student_id not in parent_child_ids(current_user):
            abort(403, description="You can only view schedules of your children")
    elif role == UserRoleEnum.STUDENT:
        if student_id != current_user.id:
            abort(403, description="You can only view your own schedule")
    elif role not in (UserRoleEnum.SUPER_ADMIN, UserRoleEnum.SCHOOL_ADMIN,
                      UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL):
        abort(403, description="You don't have permission to view student schedules")

    schedules = visible_to_student(schedules_for_classes(student_class_ids(student_id)),
                                   student_subgroup_ids(student_id))
    return jsonify(serialize(schedules))
