from flask import Blueprint, jsonify, abort
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError

from decorators import admin_required
from extensions import db
from forms import SubjectForm, TeacherSubjectForm, validate_json
from models import Subject, TeacherSubject, User, UserRoleEnum
from .utils import get_or_404, audit, to_dicts, acting_role, is_school_admin, admin_school_id

bp = Blueprint('subjects', __name__)


def teacher_subjects(teacher_id):
    return Subject.query.join(TeacherSubject, TeacherSubject.subject_id == Subject.id) \
        .filter(TeacherSubject.teacher_id == teacher_id).order_by(Subject.name).all()


def assign_teacher_to_subject(teacher_id, subject_id):
    """Link a teacher to a subject once. Returns True when a link was created."""
    if TeacherSubject.query.filter_by(teacher_id=teacher_id, subject_id=subject_id).first():
        return False
    db.session.add(TeacherSubject(teacher_id=teacher_id, subject_id=subject_id))
    return True


@bp.route('/subjects', methods=['GET'])
@login_required
def list_subjects():
    role = acting_role()
    school_id = admin_school_id()
    if role == UserRoleEnum.SUPER_ADMIN:
        subjects = Subject.query.order_by(Subject.name).all()
    elif school_id:
        subjects = Subject.query.filter_by(school_id=school_id).order_by(Subject.name).all()
    elif role == UserRoleEnum.TEACHER:
        subjects = teacher_subjects(current_user.id)
    else:
        subjects = []
    return jsonify(to_dicts(subjects))


@bp.route('/subjects/<int:subject_id>', methods=['GET'])
@login_required
def get_subject(subject_id):
    return jsonify(get_or_404(Subject, subject_id, "Subject not found").to_dict())


@bp.route('/subjects', methods=['POST'])
@admin_required
def create_subject():
    form = validate_json(SubjectForm)
    school_id = form.school_id.data
    if is_school_admin():
        own_school = admin_school_id()
        if own_school is None:
            abort(403, description="You don't have access to any school")
        if school_id and school_id != own_school:
            abort(403, description="You can only create subjects for your school")
        school_id = own_school
    if not school_id:
        abort(400, description="School ID is required")

    subject = Subject(name=form.name.data, description=form.description.data or None,
                      school_id=school_id)
    db.session.add(subject)
    db.session.commit()
    audit('subject_created', f"Created subject: {subject.name}")
    return jsonify(subject.to_dict()), 201


@bp.route('/subjects/<int:subject_id>', methods=['DELETE'])
@admin_required
def delete_subject(subject_id):
    subject = get_or_404(Subject, subject_id, "Subject not found")
    if is_school_admin() and subject.school_id != admin_school_id():
        abort(403, description="You can only delete subjects of your school")

    data = subject.to_dict()
    TeacherSubject.query.filter_by(subject_id=subject.id).delete()
    db.session.delete(subject)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description="Subject is still used by lessons, homework or grades")
    audit('subject_deleted', f"Deleted subject: {data['name']}")
    return jsonify(data)


@bp.route('/teacher-subjects/<int:teacher_id>', methods=['GET'])
@login_required
def get_teacher_subjects(teacher_id):
    if acting_role() not in (UserRoleEnum.SUPER_ADMIN, UserRoleEnum.SCHOOL_ADMIN) \
            and current_user.id != teacher_id:
        abort(403, description="You can only view your own subjects or subjects of teachers in your school")
    return jsonify(to_dicts(teacher_subjects(teacher_id)))


@bp.route('/teacher-subjects', methods=['POST'])
@admin_required
def add_teacher_subject():
    form = validate_json(TeacherSubjectForm)
    teacher = db.session.get(User, form.teacher_id.data)
    if teacher is None or teacher.role not in (UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER):
        abort(404, description="Teacher not found")
    subject = get_or_404(Subject, form.subject_id.data, "Subject not found")
    if is_school_admin() and subject.school_id != admin_school_id():
        abort(403, description="You can only assign teachers to subjects in your school")

    assign_teacher_to_subject(teacher.id, subject.id)
    db.session.commit()
    audit('teacher_assigned_to_subject', f"Assigned teacher {teacher.id} to subject {subject.id}")
    return jsonify({'message': 'Teacher assigned to subject'}), 201
