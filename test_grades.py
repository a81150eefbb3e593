from models import UserRoleEnum


def grade_payload(school, **extra):
    payload = {'studentId': school.student, 'subjectId': school.subject_id, 'classId': school.class_id,
               'grade': 5, 'gradeType': 'classwork'}
    payload.update(extra)
    return payload


def test_teacher_creates_grade_and_student_is_notified(client, login, school):
    login('teacher')
    response = client.post('/api/grades', json=grade_payload(school, comment='Good'))
    assert response.status_code == 201
    assert response.get_json()['teacherId'] == school.teacher

    login('student')
    assert [n['title'] for n in client.get('/api/notifications').get_json()] == ['New grade']
    assert [g['grade'] for g in client.get('/api/grades').get_json()] == [5]


def test_five_point_grade_out_of_range(client, login, school):
    login('teacher')
    response = client.post('/api/grades', json=grade_payload(school, grade=7))
    assert response.status_code == 400
    assert response.get_json() == {'message': 'Five-point grades must be between 1 and 5'}


def test_cumulative_grade_may_exceed_five(client, login, cumulative_school):
    login('teacher')
    response = client.post('/api/grades', json=grade_payload(cumulative_school, grade=8))
    assert response.status_code == 201


def test_same_assignment_cannot_be_graded_twice(client, login, make, school):
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher)
    assignment = make.assignment(lesson, school.class_id, school.subject_id, school.teacher)
    login('teacher')
    payload = grade_payload(school, scheduleId=lesson, assignmentId=assignment)
    first = client.post('/api/grades', json=payload).get_json()

    response = client.post('/api/grades', json=payload)
    assert response.status_code == 400
    assert response.get_json()['existingGradeId'] == first['id']


def test_only_grading_teacher_edits_grade(client, login, make, school):
    make.user(UserRoleEnum.TEACHER, school.school_id, username='colleague')
    login('teacher')
    grade_id = client.post('/api/grades', json=grade_payload(school)).get_json()['id']

    login('colleague')
    assert client.patch(f'/api/grades/{grade_id}', json={'grade': 3}).status_code == 403

    login('teacher')
    response = client.put(f'/api/grades/{grade_id}', json={'grade': 4})
    assert response.status_code == 200
    assert response.get_json()['grade'] == 4
    assert client.patch(f'/api/grades/{grade_id}', json={'grade': 0}).status_code == 400

    assert client.delete(f'/api/grades/{grade_id}').get_json() == {'success': True}


def test_grade_visibility(client, login, school):
    login('teacher')
    client.post('/api/grades', json=grade_payload(school))
    client.post('/api/grades', json=grade_payload(school, studentId=school.other_student, grade=3))

    login('student')
    assert client.get(f'/api/grades?studentId={school.other_student}').status_code == 403
    assert client.get(f'/api/grades?classId={school.class_id}').status_code == 403

    login('parent')
    assert [g['studentId'] for g in client.get('/api/grades').get_json()] == [school.student]

    login('teacher')
    assert len(client.get(f'/api/grades?classId={school.class_id}').get_json()) == 2


def test_class_subject_averages(client, login, school):
    login('teacher')
    for value in (5, 4):
        client.post('/api/grades', json=grade_payload(school, grade=value))

    response = client.get(f'/api/student-subject-averages?classId={school.class_id}')
    assert response.status_code == 200
    averages = response.get_json()
    assert averages[str(school.student)][str(school.subject_id)] == {'average': '4.5', 'percentage': '-'}
    assert averages[str(school.other_student)] == {'overall': {'average': '-', 'percentage': '-'}}

    only = client.get(f'/api/student-subject-averages?classId={school.class_id}&studentId={school.student}')
    assert list(only.get_json()) == [str(school.student)]


def test_class_subject_averages_require_class(client, login, school):
    login('teacher')
    assert client.get('/api/student-subject-averages').status_code == 400
    login('student')
    assert client.get(f'/api/student-subject-averages?classId={school.class_id}').status_code == 403


def test_class_teacher_defaults_to_own_class(client, login, make, school):
    class_teacher = make.user(UserRoleEnum.CLASS_TEACHER, school.school_id, username='form_tutor')
    make.user_role(class_teacher, UserRoleEnum.CLASS_TEACHER, school.school_id, school.class_id)
    login('form_tutor')
    response = client.get('/api/student-subject-averages')
    assert response.status_code == 200
    assert str(school.student) in response.get_json()


def test_single_student_average(client, login, school):
    login('teacher')
    client.post('/api/grades', json=grade_payload(school, grade=5, gradeType='test'))
    client.post('/api/grades', json=grade_payload(school, grade=2, gradeType='homework'))

    login('student')
    response = client.get(f'/api/student-subject-average?studentId={school.student}'
                          f'&subjectId={school.subject_id}')
    assert response.get_json() == {'average': '4.0', 'percentage': '80.0%'}
    assert client.get(f'/api/student-subject-average?studentId={school.student}').status_code == 400


def test_single_student_average_without_class(client, login, make, school):
    newcomer_id = make.user(UserRoleEnum.STUDENT, school.school_id, username='newcomer')
    login('root')
    response = client.get(f'/api/student-subject-average?studentId={newcomer_id}&subjectId={school.subject_id}')
    assert response.status_code == 404


def test_grade_date_places_grade_in_its_period(client, login, school):
    login('teacher')
    response = client.post('/api/grades', json=grade_payload(school, grade=4, date='2024-09-02'))
    assert response.status_code == 201
    assert response.get_json()['createdAt'].startswith('2024-09-02')

    september = client.get(f'/api/student-subject-averages?classId={school.class_id}'
                           f'&fromDate=2024-09-01&toDate=2024-09-30').get_json()
    assert september[str(school.student)][str(school.subject_id)] == {'average': '4.0', 'percentage': '-'}

    october = client.get(f'/api/student-subject-averages?classId={school.class_id}'
                         f'&fromDate=2024-10-01&toDate=2024-10-31').get_json()
    assert october[str(school.student)] == {'overall': {'average': '-', 'percentage': '-'}}


def test_grade_date_can_be_corrected(client, login, school):
    login('teacher')
    grade_id = client.post('/api/grades', json=grade_payload(school)).get_json()['id']
    response = client.patch(f'/api/grades/{grade_id}', json={'date': '2024-10-15'})
    assert response.status_code == 200
    assert response.get_json()['createdAt'].startswith('2024-10-15')
