"""
Business logic and services. Keeps route modules as glue (validation, access checks, JSON).
"""

from .activity_log import log_activity, get_system_logs
from .notifications import (
    create_notification,
    create_notifications_for_users,
    notify_class_students,
    notify_parents_about_absence,
    unread_count,
)
from .schedule_utils import (
    time_to_minutes,
    sort_schedules,
    schedules_for_day,
    iso_weekday,
    lesson_has_ended,
    visible_to_student,
)
from .time_slots import (
    initialize_default_time_slots,
    get_effective_time_slot,
    upsert_class_time_slot,
    reset_class_time_slots,
)
from .grade_calculation import (
    subject_averages,
    student_subject_average,
    class_assignment_averages,
)
from .roles import effective_role, user_has_any_role, available_roles, switch_active_role

__all__ = [
    'log_activity',
    'get_system_logs',
    'create_notification',
    'create_notifications_for_users',
    'notify_class_students',
    'notify_parents_about_absence',
    'unread_count',
    'time_to_minutes',
    'sort_schedules',
    'schedules_for_day',
    'iso_weekday',
    'lesson_has_ended',
    'visible_to_student',
    'initialize_default_time_slots',
    'get_effective_time_slot',
    'upsert_class_time_slot',
    'reset_class_time_slots',
    'subject_averages',
    'student_subject_average',
    'class_assignment_averages',
    'effective_role',
    'user_has_any_role',
    'available_roles',
    'switch_active_role',
]
