"""
Ordering and filtering of lesson schedules.

Lesson times are stored as "H:MM" / "HH:MM" text, so every ordering here
goes through time_to_minutes() rather than comparing the strings.
"""

from datetime import datetime


def time_to_minutes(value):
    """
    Convert "H:MM" or "HH:MM" to minutes since midnight.

    Raises ValueError for anything else.
    """
    if not isinstance(value, str) or ':' not in value:
        raise ValueError(f"Invalid time value: {value!r}")
    hours_text, minutes_text = value.strip().split(':', 1)
    if not hours_text.isdigit() or not minutes_text.isdigit() or len(minutes_text) != 2:
        raise ValueError(f"Invalid time value: {value!r}")
    hours, minutes = int(hours_text), int(minutes_text)
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time value: {value!r}")
    return hours * 60 + minutes


def _sort_key(schedule):
    return (schedule.day_of_week, time_to_minutes(schedule.start_time))


def sort_schedules(schedules):
    """Stable sort by weekday, then start time."""
    return sorted(schedules, key=_sort_key)


def schedules_for_day(schedules, day_of_week):
    return sort_schedules(s for s in schedules if s.day_of_week == day_of_week)


def iso_weekday(value):
    """Monday is 1, Sunday is 7."""
    return value.isoweekday()


def lesson_has_ended(schedule, now=None):
    """
    True when a lesson may be marked as conducted.

    Only lessons dated today are checked against the clock; lessons on other
    dates, or without a date, count as ended.
    """
    now = now or datetime.now()
    if schedule.schedule_date is None or schedule.schedule_date != now.date():
        return True
    current = now.hour * 60 + now.minute
    return current >= time_to_minutes(schedule.end_time)


def visible_to_student(schedules, subgroup_ids):
    """Whole-class lessons plus the lessons of the student's subgroups."""
    subgroup_ids = set(subgroup_ids)
    return [s for s in schedules if s.subgroup_id is None or s.subgroup_id in subgroup_ids]