from datetime import date, datetime
from types import SimpleNamespace

import pytest

from services.schedule_utils import (time_to_minutes, sort_schedules, schedules_for_day,
                                     lesson_has_ended, visible_to_student, iso_weekday)


def lesson(day, start, end='23:59', schedule_date=None, subgroup_id=None, name=None):
    return SimpleNamespace(day_of_week=day, start_time=start, end_time=end,
                           schedule_date=schedule_date, subgroup_id=subgroup_id, name=name)


@pytest.mark.parametrize('value, expected', [
    ('0:00', 0),
    ('8:00', 480),
    ('08:05', 485),
    ('23:59', 1439),
])
def test_time_to_minutes(value, expected):
    assert time_to_minutes(value) == expected


@pytest.mark.parametrize('value', ['', '8', '8:5', '24:00', '12:60', 'ab:cd', None, 830])
def test_time_to_minutes_rejects_invalid_values(value):
    with pytest.raises(ValueError):
        time_to_minutes(value)


def test_sort_compares_times_numerically():
    # "10:00" < "9:00" as text
    lessons = [lesson(1, '10:00', name='third'), lesson(1, '9:00', name='second'),
               lesson(1, '8:30', name='first')]
    assert [s.name for s in sort_schedules(lessons)] == ['first', 'second', 'third']


def test_sort_orders_by_weekday_first():
    lessons = [lesson(3, '8:00', name='wed'), lesson(1, '14:00', name='mon'), lesson(2, '8:00', name='tue')]
    assert [s.name for s in sort_schedules(lessons)] == ['mon', 'tue', 'wed']


def test_sort_is_stable_for_equal_times():
    lessons = [lesson(1, '9:00', name='a'), lesson(1, '9:00', name='b'), lesson(1, '09:00', name='c')]
    assert [s.name for s in sort_schedules(lessons)] == ['a', 'b', 'c']


def test_sort_empty_list():
    assert sort_schedules([]) == []


def test_schedules_for_day():
    lessons = [lesson(2, '11:00', name='late'), lesson(1, '9:00'), lesson(2, '9:00', name='early')]
    assert [s.name for s in schedules_for_day(lessons, 2)] == ['early', 'late']


def test_iso_weekday():
    assert iso_weekday(date(2024, 9, 2)) == 1
    assert iso_weekday(date(2024, 9, 8)) == 7


def test_lesson_without_date_counts_as_ended():
    assert lesson_has_ended(lesson(1, '9:00', '9:45'), now=datetime(2024, 9, 2, 8, 0))


def test_lesson_on_another_day_counts_as_ended():
    future = lesson(1, '9:00', '9:45', schedule_date=date(2024, 9, 3))
    assert lesson_has_ended(future, now=datetime(2024, 9, 2, 8, 0))


def test_lesson_today_ends_at_end_time():
    today = lesson(1, '9:00', '9:45', schedule_date=date(2024, 9, 2))
    assert not lesson_has_ended(today, now=datetime(2024, 9, 2, 9, 44))
    assert lesson_has_ended(today, now=datetime(2024, 9, 2, 9, 45))


def test_visible_to_student_keeps_whole_class_and_own_subgroups():
    lessons = [lesson(1, '9:00', name='class'), lesson(1, '10:00', subgroup_id=1, name='mine'),
               lesson(1, '11:00', subgroup_id=2, name='other')]
    assert [s.name for s in visible_to_student(lessons, [1])] == ['class', 'mine']
    assert [s.name for s in visible_to_student(lessons, [])] == ['class']
