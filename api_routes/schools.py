from flask import Blueprint, jsonify, abort
from flask_login import login_required
from sqlalchemy.exc import IntegrityError

from decorators import super_admin_required
from extensions import db
from forms import SchoolForm, validate_json, submitted_data
from models import School
from .utils import get_or_404, audit, to_dicts

bp = Blueprint('schools', __name__)


@bp.route('/schools', methods=['GET'])
@login_required
def list_schools():
    return jsonify(to_dicts(School.query.order_by(School.name).all()))


@bp.route('/schools', methods=['POST'])
@super_admin_required
def create_school():
    form = validate_json(SchoolForm)
    school = School(name=form.name.data, address=form.address.data, city=form.city.data,
                    status=form.status.data or 'active')
    db.session.add(school)
    db.session.commit()
    audit('school_created', f"Created school: {school.name}")
    return jsonify(school.to_dict()), 201


@bp.route('/schools/<int:school_id>', methods=['GET'])
@login_required
def get_school(school_id):
    return jsonify(get_or_404(School, school_id, "School not found").to_dict())


@bp.route('/schools/<int:school_id>', methods=['PUT'])
@super_admin_required
def update_school(school_id):
    school = get_or_404(School, school_id, "School not found")
    form = validate_json(SchoolForm, partial=True)
    for field, value in submitted_data(form).items():
        if value is not None:
            setattr(school, field, value)
    db.session.commit()
    audit('school_updated', f"Updated school: {school.name}")
    return jsonify(school.to_dict())


@bp.route('/schools/<int:school_id>', methods=['DELETE'])
@super_admin_required
def delete_school(school_id):
    school = get_or_404(School, school_id, "School not found")
    data = school.to_dict()
    db.session.delete(school)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description="School still has classes, subjects or users")
    audit('school_deleted', f"Deleted school: {data['name']}")
    return jsonify({'message': 'School deleted successfully', 'school': data})
