"""
Lesson time slots: system defaults, school-specific slots and per-class overrides.
"""

import logging

from extensions import db
from models import TimeSlot, ClassTimeSlot, Class

logger = logging.getLogger(__name__)

DEFAULT_TIME_SLOTS = [
    (0, '8:00', '8:45'),
    (1, '9:00', '9:45'),
    (2, '9:55', '10:40'),
    (3, '11:00', '11:45'),
    (4, '12:00', '12:45'),
    (5, '12:55', '13:40'),
    (6, '14:00', '14:45'),
    (7, '15:15', '16:00'),
    (8, '16:15', '17:00'),
    (9, '17:15', '18:00'),
]


def get_default_time_slots():
    return TimeSlot.query.filter_by(is_default=True).order_by(TimeSlot.slot_number).all()


def initialize_default_time_slots():
    """Create the system default slots unless they already exist."""
    existing = get_default_time_slots()
    if existing:
        return existing

    slots = []
    for slot_number, start_time, end_time in DEFAULT_TIME_SLOTS:
        slot = TimeSlot(slot_number=slot_number, start_time=start_time,
                        end_time=end_time, is_default=True)
        db.session.add(slot)
        slots.append(slot)
    db.session.commit()
    logger.info(f"Created {len(slots)} default time slots")
    return slots


def get_school_time_slots(school_id):
    return TimeSlot.query.filter_by(school_id=school_id).order_by(TimeSlot.slot_number).all()


def get_time_slot_by_number(slot_number, school_id=None):
    """School slot with this number, else the system default one."""
    if school_id is not None:
        slot = TimeSlot.query.filter_by(slot_number=slot_number, school_id=school_id).first()
        if slot:
            return slot
    return TimeSlot.query.filter_by(slot_number=slot_number, is_default=True).first()


def get_class_time_slots(class_id):
    return ClassTimeSlot.query.filter_by(class_id=class_id).order_by(ClassTimeSlot.slot_number).all()


def get_effective_time_slot(class_id, slot_number):
    """
    The slot a class actually uses: its own override, else the school's
    slot, else the system default. None if the class does not exist or
    no slot with that number is defined anywhere.
    """
    class_slot = ClassTimeSlot.query.filter_by(class_id=class_id, slot_number=slot_number).first()
    if class_slot:
        return class_slot

    class_obj = db.session.get(Class, class_id)
    if not class_obj:
        return None
    return get_time_slot_by_number(slot_number, class_obj.school_id)


def upsert_class_time_slot(class_id, slot_number, start_time, end_time):
    """Update the class slot with this number, or create it. Returns (slot, created)."""
    slot = ClassTimeSlot.query.filter_by(class_id=class_id, slot_number=slot_number).first()
    created = slot is None
    if created:
        slot = ClassTimeSlot(class_id=class_id, slot_number=slot_number)
        db.session.add(slot)
    slot.start_time = start_time
    slot.end_time = end_time
    db.session.commit()
    return slot, created


def reset_class_time_slots(class_id):
    """Remove every override of a class. Returns the number removed."""
    removed = ClassTimeSlot.query.filter_by(class_id=class_id).delete()
    db.session.commit()
    return removed
