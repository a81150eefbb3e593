from models import UserRoleEnum


def class_payload(**extra):
    payload = {'name': '7C', 'gradeLevel': 7, 'academicYear': '2024-2025'}
    payload.update(extra)
    return payload


def test_school_admin_creates_class_in_own_school(client, login, make, school):
    other_school = make.school('Other')
    login('admin')
    response = client.post('/api/classes', json=class_payload())
    assert response.status_code == 201
    assert response.get_json()['schoolId'] == school.school_id
    assert response.get_json()['gradingSystem'] == 'five_point'

    response = client.post('/api/classes', json=class_payload(schoolId=other_school))
    assert response.status_code == 403


def test_school_admin_resolves_school_from_role(client, login, make, school):
    admin = make.user(UserRoleEnum.SCHOOL_ADMIN, username='roaming_admin')
    make.user_role(admin, UserRoleEnum.SCHOOL_ADMIN, school.school_id)
    login('roaming_admin')
    response = client.post('/api/classes', json=class_payload(gradingSystem='cumulative'))
    assert response.status_code == 201
    assert response.get_json()['schoolId'] == school.school_id
    assert response.get_json()['gradingSystem'] == 'cumulative'


def test_role_bound_school_admin_reads_own_school(client, login, make, school):
    make.school_class(make.school('Other'), name='9Z')
    subgroup = make.subgroup(school.class_id, school.school_id)
    lesson = make.schedule(school.class_id, school.subject_id, school.teacher)
    admin = make.user(UserRoleEnum.SCHOOL_ADMIN, username='roaming_admin')
    make.user_role(admin, UserRoleEnum.SCHOOL_ADMIN, school.school_id)
    login('roaming_admin')

    assert [c['id'] for c in client.get('/api/classes').get_json()] == [school.class_id]
    assert client.get(f'/api/classes/{school.class_id}').status_code == 200
    assert client.get(f'/api/students-by-class/{school.class_id}').status_code == 200
    assert client.get(f'/api/student-classes?classId={school.class_id}').status_code == 200
    assert [s['id'] for s in client.get('/api/subjects').get_json()] == [school.subject_id]
    assert [s['id'] for s in client.get('/api/subgroups').get_json()] == [subgroup]
    assert [s['id'] for s in client.get('/api/schedules').get_json()] == [lesson]


def test_super_admin_must_name_school(client, login, school):
    login('root')
    assert client.post('/api/classes', json=class_payload()).status_code == 400
    assert client.post('/api/classes', json=class_payload(schoolId=school.school_id)).status_code == 201


def test_class_access_by_role(client, login, make, school):
    other_class = make.school_class(school.school_id, name='9A')
    login('student')
    assert client.get(f'/api/classes/{school.class_id}').status_code == 200
    assert client.get(f'/api/classes/{other_class}').status_code == 403

    login('parent')
    assert client.get(f'/api/classes/{school.class_id}').status_code == 200
    assert client.get(f'/api/classes/{other_class}').status_code == 403

    login('teacher')
    assert client.get(f'/api/classes/{school.class_id}').status_code == 403
    make.schedule(school.class_id, school.subject_id, school.teacher)
    assert client.get(f'/api/classes/{school.class_id}').status_code == 200


def test_enrol_student(client, login, make, school):
    newcomer = make.user(UserRoleEnum.STUDENT, school.school_id, username='newcomer',
                         first_name='Boris', last_name='Abramov')
    login('admin')
    response = client.post('/api/student-classes', json={'studentId': newcomer, 'classId': school.class_id})
    assert response.status_code == 201
    client.post('/api/student-classes', json={'studentId': newcomer, 'classId': school.class_id})

    students = client.get(f'/api/students-by-class/{school.class_id}').get_json()
    assert [s['lastName'] for s in students] == ['Abramov', 'Ivanova', 'Petrov']

    response = client.post('/api/student-classes', json={'studentId': school.teacher, 'classId': school.class_id})
    assert response.status_code == 404


def test_student_classes_requires_filter(client, login, school):
    login('admin')
    assert client.get('/api/student-classes').status_code == 400


def test_subgroup_members_must_be_enrolled(client, login, make, school):
    outsider = make.user(UserRoleEnum.STUDENT, school.school_id, username='outsider')
    login('admin')
    payload = {'name': 'English A', 'classId': school.class_id, 'schoolId': school.school_id,
               'studentIds': [school.student, outsider]}
    assert client.post('/api/subgroups', json=payload).status_code == 400

    payload['studentIds'] = [school.student]
    response = client.post('/api/subgroups', json=payload)
    assert response.status_code == 201
    subgroup_id = response.get_json()['id']

    members = client.get(f'/api/students-by-subgroup?subgroupId={subgroup_id}').get_json()
    assert [m['id'] for m in members] == [school.student]

    response = client.post('/api/student-subgroups', json={'studentId': outsider, 'subgroupId': subgroup_id})
    assert response.status_code == 400
    response = client.post('/api/student-subgroups',
                           json={'studentId': school.other_student, 'subgroupId': subgroup_id})
    assert response.status_code == 201

    response = client.delete(f'/api/student-subgroups?studentId={school.student}&subgroupId={subgroup_id}')
    assert response.status_code == 200
    members = client.get(f'/api/students-by-subgroup?subgroupId={subgroup_id}').get_json()
    assert [m['id'] for m in members] == [school.other_student]


def test_student_lists_own_subgroups(client, login, make, school):
    make.subgroup(school.class_id, school.school_id, 'Group 1', [school.student])
    make.subgroup(school.class_id, school.school_id, 'Group 2', [school.other_student])
    login('student')
    assert [s['name'] for s in client.get('/api/subgroups').get_json()] == ['Group 1']


def test_delete_subgroup_used_by_lesson_conflicts(client, login, make, school):
    subgroup_id = make.subgroup(school.class_id, school.school_id, student_ids=[school.student])
    make.schedule(school.class_id, school.subject_id, school.teacher, subgroup_id=subgroup_id)
    login('admin')
    assert client.delete(f'/api/subgroups/{subgroup_id}').status_code == 409


def test_connect_parent(client, login, make, school):
    parent = make.user(UserRoleEnum.PARENT, school.school_id, username='mother')
    login('admin')
    response = client.post('/api/parent-students', json={'parentId': parent, 'studentId': school.other_student})
    assert response.status_code == 201
    again = client.post('/api/parent-students', json={'parentId': parent, 'studentId': school.other_student})
    assert again.get_json()['id'] == response.get_json()['id']

    response = client.post('/api/parent-students', json={'parentId': school.teacher, 'studentId': school.student})
    assert response.status_code == 404

    login('mother')
    links = client.get('/api/parent-students').get_json()
    assert [link['studentId'] for link in links] == [school.other_student]
    assert client.get(f'/api/parent-students?parentId={school.parent}').status_code == 403


def test_schools_managed_by_super_admin(client, login, school):
    payload = {'name': 'Lyceum No. 2', 'address': '5 Park Lane', 'city': 'Springfield'}
    login('admin')
    assert client.post('/api/schools', json=payload).status_code == 403

    login('root')
    response = client.post('/api/schools', json=payload)
    assert response.status_code == 201
    assert response.get_json()['status'] == 'active'
    assert client.delete(f'/api/schools/{school.school_id}').status_code == 409
