from flask import Blueprint, jsonify, abort
from flask_login import login_required

from decorators import role_required, super_admin_required
from extensions import db
from forms import TimeSlotForm, ClassTimeSlotForm, validate_json, submitted_data
from models import TimeSlot, ClassTimeSlot, Class, UserRoleEnum
from services.schedule_utils import time_to_minutes
from services.time_slots import (initialize_default_time_slots, get_default_time_slots,
                                 get_school_time_slots, get_class_time_slots,
                                 get_effective_time_slot, upsert_class_time_slot,
                                 reset_class_time_slots)
from .utils import get_or_404, audit, to_dicts, require_own_school_class

bp = Blueprint('time_slots', __name__)

school_admin_required = role_required(UserRoleEnum.SCHOOL_ADMIN)


def apply_times(slot, form):
    """Copy submitted start/end times onto `slot`, keeping start before end."""
    data = submitted_data(form)
    start = data.get('start_time') or slot.start_time
    end = data.get('end_time') or slot.end_time
    if time_to_minutes(end) <= time_to_minutes(start):
        abort(400, description="End time must be after start time")
    slot.start_time = start
    slot.end_time = end


@bp.route('/time-slots/defaults', methods=['GET'])
@login_required
def default_time_slots():
    return jsonify(to_dicts(initialize_default_time_slots()))


@bp.route('/time-slots', methods=['GET'])
@login_required
def list_time_slots():
    return jsonify(to_dicts(get_default_time_slots()))


@bp.route('/school/<int:school_id>/time-slots', methods=['GET'])
@login_required
def school_time_slots(school_id):
    return jsonify(to_dicts(get_school_time_slots(school_id)))


@bp.route('/time-slots/<int:slot_id>', methods=['PUT'])
@super_admin_required
def update_time_slot(slot_id):
    slot = get_or_404(TimeSlot, slot_id, "Time slot not found")
    form = validate_json(TimeSlotForm, partial=True)
    apply_times(slot, form)
    db.session.commit()
    audit('time_slot_updated', f"Updated time slot {slot.slot_number}: {slot.start_time}-{slot.end_time}")
    return jsonify(slot.to_dict())


@bp.route('/class/<int:class_id>/time-slots', methods=['GET'])
@login_required
def class_time_slots(class_id):
    return jsonify(to_dicts(get_class_time_slots(class_id)))


@bp.route('/class/<int:class_id>/time-slots', methods=['POST'])
@school_admin_required
def save_class_time_slot(class_id):
    get_or_404(Class, class_id, "Class not found")
    require_own_school_class(class_id)
    form = validate_json(ClassTimeSlotForm)
    slot, created = upsert_class_time_slot(class_id, form.slot_number.data,
                                           form.start_time.data, form.end_time.data)
    audit('class_time_slot_saved',
          f"Class {class_id} slot {slot.slot_number} set to {slot.start_time}-{slot.end_time}")
    return jsonify(slot.to_dict()), 201 if created else 200


@bp.route('/class-time-slots/<int:slot_id>', methods=['PUT'])
@school_admin_required
def update_class_time_slot(slot_id):
    slot = get_or_404(ClassTimeSlot, slot_id, "Class time slot not found")
    require_own_school_class(slot.class_id)
    form = validate_json(TimeSlotForm, partial=True)
    apply_times(slot, form)
    db.session.commit()
    audit('class_time_slot_saved',
          f"Class {slot.class_id} slot {slot.slot_number} set to {slot.start_time}-{slot.end_time}")
    return jsonify(slot.to_dict())


@bp.route('/class-time-slots/<int:slot_id>', methods=['DELETE'])
@school_admin_required
def delete_class_time_slot(slot_id):
    slot = get_or_404(ClassTimeSlot, slot_id, "Class time slot not found")
    require_own_school_class(slot.class_id)
    class_id, slot_number = slot.class_id, slot.slot_number
    db.session.delete(slot)
    db.session.commit()
    audit('class_time_slot_deleted', f"Class {class_id} slot {slot_number} reverted to default")
    return jsonify({'message': 'Class time slot deleted successfully'})


@bp.route('/class/<int:class_id>/time-slots', methods=['DELETE'])
@school_admin_required
def delete_class_time_slots(class_id):
    require_own_school_class(class_id)
    removed = reset_class_time_slots(class_id)
    audit('class_time_slots_deleted', f"Removed {removed} time slots of class {class_id}")
    return jsonify({'message': 'All class time slots deleted successfully'})


@bp.route('/class/<int:class_id>/time-slots/reset', methods=['POST'])
@school_admin_required
def reset_time_slots(class_id):
    require_own_school_class(class_id)
    removed = reset_class_time_slots(class_id)
    audit('class_time_slots_reset', f"Reset {removed} time slots of class {class_id}")
    return jsonify({'message': 'All class time slots reset successfully'})


@bp.route('/class/<int:class_id>/time-slots/<int:slot_number>/effective', methods=['GET'])
@login_required
def effective_time_slot(class_id, slot_number):
    slot = get_effective_time_slot(class_id, slot_number)
    if slot is None:
        abort(404, description="Effective time slot not found")
    return jsonify(slot.to_dict())
