"""
Lesson attendance.

Attendance is recorded only for conducted lessons and is kept as one row
per (lesson, student); posting again for the same student updates that row.
"""

from datetime import date

from flask import Blueprint, jsonify, abort, request, current_app
from flask_login import login_required, current_user

from decorators import role_required
from extensions import db
from forms import AttendanceForm, validate_json
from models import Attendance, Schedule, User, StudentClass, StudentSubgroup, UserRoleEnum
from services.notifications import notify_parents_about_absence
from services.roles import parent_child_ids
from .utils import get_or_404, audit, to_dicts, acting_role, arg_int

bp = Blueprint('attendance', __name__)

ROSTER_ROLES = (UserRoleEnum.SUPER_ADMIN, UserRoleEnum.TEACHER, UserRoleEnum.SCHOOL_ADMIN,
                UserRoleEnum.PRINCIPAL, UserRoleEnum.VICE_PRINCIPAL, UserRoleEnum.CLASS_TEACHER)
REQUIRED_KEYS = ('studentId', 'scheduleId', 'classId')


def lesson_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description="scheduleId must be an integer")


def check_student_access(student_id):
    role = acting_role()
    if role == UserRoleEnum.STUDENT and current_user.id != student_id:
        abort(403, description="You can only view your own attendance")
    if role == UserRoleEnum.PARENT and student_id not in parent_child_ids(current_user):
        abort(403, description="You can only view your children's attendance")


def lesson_roster(schedule):
    """Students expected on a lesson: the class, narrowed to the subgroup if any."""
    query = User.query.join(StudentClass, StudentClass.student_id == User.id) \
        .filter(StudentClass.class_id == schedule.class_id)
    if schedule.subgroup_id:
        query = query.join(StudentSubgroup, StudentSubgroup.student_id == User.id) \
            .filter(StudentSubgroup.subgroup_id == schedule.subgroup_id)
    return query.order_by(User.last_name, User.first_name).all()


def save_record(schedule, form):
    """
    Insert or update the attendance row of one student on `schedule`.
    Returns (record, created, previous_status).
    """
    record = Attendance.query.filter_by(schedule_id=schedule.id, student_id=form.student_id.data).first()
    record_date = form.date.data or schedule.schedule_date or date.today()
    if record is None:
        record = Attendance(student_id=form.student_id.data, schedule_id=schedule.id,
                            class_id=form.class_id.data, status=form.status.data,
                            date=record_date, comment=form.comment.data or None)
        db.session.add(record)
        return record, True, None

    previous = record.status
    record.status = form.status.data
    record.comment = form.comment.data or None
    record.date = record_date
    return record, False, previous


def should_notify(record, created, previous):
    if record.status == 'present':
        return False
    return created or record.status != previous


@bp.route('/attendance', methods=['GET'])
@login_required
def list_attendance():
    schedule_id = arg_int('scheduleId')
    student_id = arg_int('studentId')
    class_id = arg_int('classId')
    role = acting_role()

    if schedule_id:
        schedule = get_or_404(Schedule, schedule_id, "Schedule not found")
        if student_id and role in (UserRoleEnum.STUDENT, UserRoleEnum.PARENT):
            check_student_access(student_id)
            records = Attendance.query.filter_by(schedule_id=schedule.id, student_id=student_id).all()
            return jsonify(to_dicts(records))
        if role not in ROSTER_ROLES:
            abort(403, description="Forbidden")

        records = {r.student_id: r for r in Attendance.query.filter_by(schedule_id=schedule.id).all()}
        return jsonify([{
            'studentId': student.id,
            'studentName': f"{student.last_name} {student.first_name}",
            'attendance': records[student.id].to_dict() if student.id in records else None,
        } for student in lesson_roster(schedule)])

    query = Attendance.query
    if student_id:
        check_student_access(student_id)
        query = query.filter_by(student_id=student_id)
    elif class_id:
        if role not in ROSTER_ROLES:
            abort(403, description="Forbidden")
        query = query.filter_by(class_id=class_id)
    elif role == UserRoleEnum.STUDENT:
        query = query.filter_by(student_id=current_user.id)
    else:
        return jsonify([])
    return jsonify(to_dicts(query.order_by(Attendance.date, Attendance.id).all()))


@bp.route('/attendance', methods=['POST'])
@role_required(UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER, UserRoleEnum.SCHOOL_ADMIN)
def record_attendance():
    payload = request.get_json(silent=True)
    bulk = isinstance(payload, list)
    if bulk:
        if not payload:
            abort(400, description="Empty attendance list provided")
        first = payload[0] if isinstance(payload[0], dict) else {}
        schedule_id = first.get('scheduleId')
    elif isinstance(payload, dict):
        schedule_id = payload.get('scheduleId')
    else:
        abort(400, description="Expected a JSON object or list")

    if not schedule_id:
        abort(400, description="scheduleId is required")
    schedule = get_or_404(Schedule, lesson_id(schedule_id), "Schedule not found")
    if schedule.status != 'conducted':
        abort(400, description="Cannot record attendance for non-conducted lessons")

    if not bulk:
        if not payload.get('studentId') or not payload.get('classId'):
            abort(400, description="Invalid request data. studentId, scheduleId, and classId are required")
        form = validate_json(AttendanceForm, data=payload)
        record, created, previous = save_record(schedule, form)
        db.session.commit()
        if created:
            audit('attendance_created', f"Recorded attendance for student {record.student_id}: {record.status}")
        else:
            audit('attendance_updated', f"Updated attendance for student {record.student_id}: {record.status}")
        if should_notify(record, created, previous):
            notify_parents_about_absence(record.student_id, record.status)
        return jsonify(record.to_dict())

    saved = []
    for item in payload:
        if not isinstance(item, dict) or not all(item.get(key) for key in REQUIRED_KEYS):
            continue
        if lesson_id(item['scheduleId']) != schedule.id:
            current_app.logger.warning(f"Skipping attendance item for lesson {item['scheduleId']} "
                                       f"in a batch for lesson {schedule.id}")
            continue
        form = validate_json(AttendanceForm, data=item)
        saved.append(save_record(schedule, form))
    db.session.commit()

    audit('attendance_bulk_updated',
          f"Updated attendance for {len(saved)} students in schedule {schedule.id}")
    for record, created, previous in saved:
        if should_notify(record, created, previous):
            notify_parents_about_absence(record.student_id, record.status)
    return jsonify([record.to_dict() for record, _, _ in saved])
