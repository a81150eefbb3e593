import pytest


@pytest.fixture
def lesson(make, cumulative_school):
    s = cumulative_school
    return make.schedule(s.class_id, s.subject_id, s.teacher, status='conducted')


def assignment_payload(s, lesson, **extra):
    payload = {'scheduleId': lesson, 'assignmentType': 'test_work', 'maxScore': 20,
               'classId': s.class_id, 'subjectId': s.subject_id}
    payload.update(extra)
    return payload


def test_create_assignment_defaults_teacher(client, login, cumulative_school, lesson):
    s = cumulative_school
    login('teacher')
    response = client.post('/api/assignments', json=assignment_payload(s, lesson, plannedFor=True))
    assert response.status_code == 201
    body = response.get_json()
    assert body['teacherId'] == s.teacher
    assert body['maxScore'] == 20
    assert body['plannedFor'] is True

    lessons = client.get(f'/api/schedules?classId={s.class_id}').get_json()
    assert [a['id'] for a in lessons[0]['assignments']] == [body['id']]


def test_invalid_assignment_type(client, login, cumulative_school, lesson):
    login('teacher')
    response = client.post('/api/assignments',
                           json=assignment_payload(cumulative_school, lesson, assignmentType='essay'))
    assert response.status_code == 400
    assert 'assignmentType' in response.get_json()['errors']


def test_assignment_filters(client, login, cumulative_school, lesson):
    s = cumulative_school
    login('teacher')
    created = client.post('/api/assignments', json=assignment_payload(s, lesson)).get_json()
    assert client.get('/api/assignments').get_json() == []
    assert [a['id'] for a in client.get(f'/api/assignments?classId={s.class_id}').get_json()] == [created['id']]
    assert [a['id'] for a in client.get(f'/api/assignments/schedule/{lesson}').get_json()] == [created['id']]
    assert client.get(f'/api/assignments/teacher/{s.admin}').get_json() == []


def test_cumulative_score_limits(client, login, cumulative_school, lesson):
    s = cumulative_school
    login('teacher')
    assignment = client.post('/api/assignments', json=assignment_payload(s, lesson)).get_json()

    payload = {'assignmentId': assignment['id'], 'studentId': s.student, 'score': 25}
    assert client.post('/api/cumulative-grades', json=payload).status_code == 400

    payload['score'] = 15
    response = client.post('/api/cumulative-grades', json=payload)
    assert response.status_code == 201
    grade_id = response.get_json()['id']
    assert client.post('/api/cumulative-grades', json=payload).status_code == 400

    assert client.patch(f'/api/cumulative-grades/{grade_id}', json={'score': 21}).status_code == 400
    response = client.patch(f'/api/cumulative-grades/{grade_id}', json={'score': 18, 'comment': 'Retake'})
    assert response.get_json()['score'] == 18

    response = client.get(f"/api/cumulative-grades/student/{s.student}/assignment/{assignment['id']}")
    assert response.get_json()['comment'] == 'Retake'


def test_class_average_scores(client, login, cumulative_school, lesson):
    s = cumulative_school
    login('teacher')
    assignment = client.post('/api/assignments', json=assignment_payload(s, lesson)).get_json()
    for student, score in ((s.student, 10), (s.other_student, 16)):
        client.post('/api/cumulative-grades', json={'assignmentId': assignment['id'], 'studentId': student,
                                                    'score': score})
    averages = client.get(f'/api/class/{s.class_id}/average-scores').get_json()
    assert averages == [{'assignmentId': assignment['id'], 'averageScore': 13.0}]


def test_delete_assignment_removes_scores(client, login, cumulative_school, lesson):
    s = cumulative_school
    login('teacher')
    assignment = client.post('/api/assignments', json=assignment_payload(s, lesson)).get_json()
    client.post('/api/cumulative-grades', json={'assignmentId': assignment['id'], 'studentId': s.student,
                                                'score': 5})
    response = client.delete(f"/api/assignments/{assignment['id']}")
    assert response.status_code == 200
    assert client.get(f'/api/cumulative-grades/student/{s.student}').get_json() == []


def test_delete_graded_assignment_conflicts(client, login, cumulative_school, lesson):
    s = cumulative_school
    login('teacher')
    assignment = client.post('/api/assignments', json=assignment_payload(s, lesson)).get_json()
    client.post('/api/grades', json={'studentId': s.student, 'subjectId': s.subject_id, 'classId': s.class_id,
                                     'scheduleId': lesson, 'assignmentId': assignment['id'], 'grade': 12,
                                     'gradeType': 'test_work'})
    assert client.delete(f"/api/assignments/{assignment['id']}").status_code == 409


def test_students_cannot_edit_assignments(client, login, cumulative_school, lesson):
    login('student')
    assert client.post('/api/assignments', json=assignment_payload(cumulative_school, lesson)).status_code == 403
