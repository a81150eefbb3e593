from models import UserRoleEnum


def test_my_roles_lists_primary_role_first(client, login, make, school):
    make.user_role(school.teacher, UserRoleEnum.CLASS_TEACHER, school.school_id, school.class_id)
    login('teacher')
    roles = client.get('/api/my-roles').get_json()
    assert [r['role'] for r in roles] == [UserRoleEnum.TEACHER, UserRoleEnum.CLASS_TEACHER]
    assert roles[0]['id'] == -1
    assert [r['isActive'] for r in roles] == [True, False]


def test_switch_role(client, login, make, school):
    make.user_role(school.teacher, UserRoleEnum.CLASS_TEACHER, school.school_id, school.class_id)
    login('teacher')

    response = client.post('/api/switch-role', json={'role': UserRoleEnum.CLASS_TEACHER})
    assert response.status_code == 200
    assert response.get_json()['activeRole'] == UserRoleEnum.CLASS_TEACHER

    roles = client.get('/api/my-roles').get_json()
    active = [r['role'] for r in roles if r['isActive']]
    assert active == [UserRoleEnum.CLASS_TEACHER]


def test_switch_to_role_not_held(client, login, school):
    login('teacher')
    response = client.post('/api/switch-role', json={'role': UserRoleEnum.SCHOOL_ADMIN})
    assert response.status_code == 403


def test_active_role_only_for_self(client, login, school):
    login('teacher')
    response = client.put(f'/api/users/{school.admin}/active-role', json={'activeRole': 'teacher'})
    assert response.status_code == 403
    response = client.put(f'/api/users/{school.teacher}/active-role', json={'activeRole': 'student'})
    assert response.status_code == 400


def test_additional_role_grants_access(client, login, make, school):
    login('teacher')
    assert client.get('/api/system-logs').status_code == 403
    assert client.post('/api/subjects', json={'name': 'Physics'}).status_code == 403

    make.user_role(school.teacher, UserRoleEnum.SCHOOL_ADMIN, school.school_id)
    response = client.post('/api/subjects', json={'name': 'Physics', 'schoolId': school.school_id})
    assert response.status_code == 201


def test_class_teacher_role_requires_class_of_school(client, login, make, school):
    other_school = make.school('Other')
    login('root')
    response = client.post('/api/user-roles', json={'userId': school.teacher, 'role': 'class_teacher',
                                                    'schoolId': school.school_id})
    assert response.status_code == 400

    response = client.post('/api/user-roles', json={'userId': school.teacher, 'role': 'class_teacher',
                                                    'schoolId': other_school, 'classId': school.class_id})
    assert response.status_code == 400

    response = client.post('/api/user-roles', json={'userId': school.teacher, 'role': 'class_teacher',
                                                    'schoolId': school.school_id, 'classId': school.class_id})
    assert response.status_code == 201
    role_id = response.get_json()['id']

    response = client.post('/api/user-roles', json={'userId': school.teacher, 'role': 'class_teacher',
                                                    'schoolId': school.school_id, 'classId': school.class_id})
    assert response.status_code == 400

    assert client.delete(f'/api/user-roles/{role_id}').status_code == 200
    assert client.get(f'/api/user-roles/{school.teacher}').get_json() == []


def test_removing_active_role_resets_it(client, login, make, school):
    role_id = make.user_role(school.teacher, UserRoleEnum.PRINCIPAL, school.school_id)
    login('teacher')
    client.post('/api/switch-role', json={'role': UserRoleEnum.PRINCIPAL})

    login('root')
    client.delete(f'/api/user-roles/{role_id}')

    login('teacher')
    assert client.get('/api/user').get_json()['activeRole'] is None
