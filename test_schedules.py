from datetime import date, timedelta

from models import UserRoleEnum


def lesson_payload(school, **extra):
    payload = {'classId': school.class_id, 'subjectId': school.subject_id, 'teacherId': school.teacher,
               'dayOfWeek': 1, 'startTime': '9:00', 'endTime': '9:45', 'room': '101'}
    payload.update(extra)
    return payload


def test_create_schedule_links_teacher_to_subject(client, login, school):
    login('admin')
    response = client.post('/api/schedules', json=lesson_payload(school, scheduleDate='2024-09-02'))
    assert response.status_code == 201
    body = response.get_json()
    assert body['status'] == 'not_conducted'
    assert body['scheduleDate'] == '2024-09-02'
    assert body['assignments'] == []

    subjects = client.get(f'/api/teacher-subjects/{school.teacher}').get_json()
    assert [s['id'] for s in subjects] == [school.subject_id]


def test_create_schedule_rejects_reversed_times(client, login, school):
    login('admin')
    response = client.post('/api/schedules', json=lesson_payload(school, startTime='10:00', endTime='9:00'))
    assert response.status_code == 400
    assert 'endTime' in response.get_json()['errors']


def test_create_schedule_rejects_bad_time_format(client, login, school):
    login('admin')
    response = client.post('/api/schedules', json=lesson_payload(school, startTime='9h00'))
    assert response.status_code == 400
    assert 'startTime' in response.get_json()['errors']


def test_school_admin_cannot_schedule_other_school(client, login, make, school):
    other_class = make.school_class(make.school('Other'))
    login('admin')
    response = client.post('/api/schedules', json=lesson_payload(school, classId=other_class))
    assert response.status_code == 403


def test_teacher_cannot_create_schedule(client, login, school):
    login('teacher')
    assert client.post('/api/schedules', json=lesson_payload(school)).status_code == 403


def test_schedules_sorted_by_day_and_time(client, login, make, school):
    for day, start, end in [(2, '8:00', '8:45'), (1, '10:00', '10:45'), (1, '9:00', '9:45')]:
        make.schedule(school.class_id, school.subject_id, school.teacher, day_of_week=day,
                      start_time=start, end_time=end)
    login('teacher')
    lessons = client.get(f'/api/schedules?classId={school.class_id}').get_json()
    assert [(s['dayOfWeek'], s['startTime']) for s in lessons] == [(1, '9:00'), (1, '10:00'), (2, '8:00')]


def test_schedule_date_filter(client, login, make, school):
    make.schedule(school.class_id, school.subject_id, school.teacher, schedule_date=date(2024, 9, 2))
    make.schedule(school.class_id, school.subject_id, school.teacher, schedule_date=date(2024, 9, 3))
    login('teacher')
    lessons = client.get('/api/schedules?scheduleDate=2024-09-03').get_json()
    assert [s['scheduleDate'] for s in lessons] == ['2024-09-03']
    assert client.get('/api/schedules?scheduleDate=03.09.2024').status_code == 400


def test_student_sees_class_lessons_and_own_subgroup(client, login, make, school):
    mine = make.subgroup(school.class_id, school.school_id, 'Group 1', [school.student])
    other = make.subgroup(school.class_id, school.school_id, 'Group 2', [school.other_student])
    make.schedule(school.class_id, school.subject_id, school.teacher, start_time='8:00', end_time='8:45')
    make.schedule(school.class_id, school.subject_id, school.teacher, subgroup_id=mine)
    make.schedule(school.class_id, school.subject_id, school.teacher, subgroup_id=other,
                  start_time='10:00', end_time='10:45')

    login('student')
    lessons = client.get('/api/schedules').get_json()
    assert [s['subgroupId'] for s in lessons] == [None, mine]
    assert lessons[1]['subgroupName'] == 'Group 1'

    assert client.get(f'/api/student-schedules/{school.other_student}').status_code == 403


def test_parent_sees_child_schedule(client, login, make, school):
    make.schedule(school.class_id, school.subject_id, school.teacher)
    login('parent')
    assert len(client.get(f'/api/student-schedules/{school.student}').get_json()) == 1
    assert client.get(f'/api/student-schedules/{school.other_student}').status_code == 403


def test_update_schedule_checks_times_against_stored_values(client, login, make, school):
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher)
    login('admin')
    response = client.patch(f'/api/schedules/{lesson}', json={'endTime': '8:30'})
    assert response.status_code == 400

    response = client.patch(f'/api/schedules/{lesson}', json={'endTime': '10:30', 'room': ''})
    assert response.status_code == 200
    assert response.get_json()['endTime'] == '10:30'
    assert response.get_json()['room'] is None


def test_delete_schedule_with_attendance_conflicts(client, login, make, school):
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher, status='conducted')
    login('teacher')
    client.post('/api/attendance', json={'studentId': school.student, 'scheduleId': lesson,
                                         'classId': school.class_id, 'status': 'present'})
    login('admin')
    response = client.delete(f'/api/schedules/{lesson}')
    assert response.status_code == 409


def test_delete_schedule(client, login, make, school):
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher)
    make.assignment(lesson, school.class_id, school.subject_id, school.teacher)
    login('admin')
    response = client.delete(f'/api/schedules/{lesson}')
    assert response.status_code == 200
    assert response.get_json()['id'] == lesson
    assert client.get(f'/api/schedules?classId={school.class_id}').get_json() == []


def test_mark_lesson_conducted(client, login, make, school):
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher,
                           schedule_date=date.today() - timedelta(days=1))
    login('teacher')
    response = client.patch(f'/api/schedules/{lesson}/status', json={'status': 'conducted'})
    assert response.status_code == 200
    assert response.get_json()['status'] == 'conducted'


def test_lesson_today_cannot_be_conducted_before_it_ends(client, login, make, school):
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher, schedule_date=date.today(),
                           start_time='23:00', end_time='23:59')
    login('teacher')
    response = client.patch(f'/api/schedules/{lesson}/status', json={'status': 'conducted'})
    # Running the suite in the last minute of the day makes the lesson over
    if response.status_code == 400:
        assert response.get_json() == {'message': 'Cannot mark lesson as conducted before it ends',
                                       'endTime': '23:59'}
    else:
        assert response.status_code == 200


def test_teacher_updates_only_own_lesson_status(client, login, make, school):
    other_teacher = make.user(UserRoleEnum.TEACHER, school.school_id, username='other_teacher')
    lesson = make.schedule(school.class_id, school.subject_id, other_teacher)
    login('teacher')
    response = client.patch(f'/api/schedules/{lesson}/status', json={'status': 'conducted'})
    assert response.status_code == 403


def test_invalid_status_rejected(client, login, make, school):
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher)
    login('teacher')
    response = client.patch(f'/api/schedules/{lesson}/status', json={'status': 'cancelled'})
    assert response.status_code == 400
