"""
Pytest fixtures shared by the test modules.

Every test gets a fresh app on an in-memory SQLite database. Requests run
without an outer app context so each one loads the logged-in user anew;
`Factory` opens its own context for every row it creates and hands back ids.
"""

from datetime import date

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from config import TestingConfig
from extensions import db
from models import (User, School, Class, Subject, Subgroup, StudentClass, StudentSubgroup, Schedule,
                    ParentStudent, UserRole, Assignment, UserRoleEnum, GradingSystemEnum)

PASSWORD = 'password123'
PASSWORD_HASH = generate_password_hash(PASSWORD, method='pbkdf2:sha256:1000')


class Factory:
    """Creates rows in committed transactions and returns their ids."""

    def __init__(self, app):
        self.app = app
        self._count = 0

    def _save(self, obj):
        with self.app.app_context():
            db.session.add(obj)
            db.session.commit()
            return obj.id

    def school(self, name='School No. 1'):
        return self._save(School(name=name, address='1 Main Street', city='Springfield'))

    def user(self, role, school_id=None, username=None, **fields):
        self._count += 1
        username = username or f"{role}{self._count}"
        return self._save(User(
            username=username,
            password_hash=PASSWORD_HASH,
            first_name=fields.pop('first_name', username.title()),
            last_name=fields.pop('last_name', 'Tester'),
            email=fields.pop('email', f"{username}@example.com"),
            role=role,
            school_id=school_id,
            **fields,
        ))

    def school_class(self, school_id, name='5A', grading_system=GradingSystemEnum.FIVE_POINT):
        return self._save(Class(name=name, school_id=school_id, grade_level=5,
                                academic_year='2024-2025', grading_system=grading_system))

    def subject(self, school_id, name='Mathematics'):
        return self._save(Subject(name=name, school_id=school_id))

    def enroll(self, student_id, class_id):
        return self._save(StudentClass(student_id=student_id, class_id=class_id))

    def subgroup(self, class_id, school_id, name='Group 1', student_ids=()):
        subgroup_id = self._save(Subgroup(name=name, class_id=class_id, school_id=school_id))
        for student_id in student_ids:
            self._save(StudentSubgroup(student_id=student_id, subgroup_id=subgroup_id))
        return subgroup_id

    def parent_of(self, parent_id, student_id):
        return self._save(ParentStudent(parent_id=parent_id, student_id=student_id))

    def user_role(self, user_id, role, school_id=None, class_id=None):
        return self._save(UserRole(user_id=user_id, role=role, school_id=school_id, class_id=class_id))

    def schedule(self, class_id, subject_id, teacher_id, day_of_week=1, start_time='9:00',
                 end_time='9:45', schedule_date=None, status='not_conducted', subgroup_id=None):
        return self._save(Schedule(class_id=class_id, subject_id=subject_id, teacher_id=teacher_id,
                                   day_of_week=day_of_week, start_time=start_time, end_time=end_time,
                                   schedule_date=schedule_date, status=status, subgroup_id=subgroup_id))

    def assignment(self, schedule_id, class_id, subject_id, teacher_id, max_score=10,
                   assignment_type='classwork', planned_for=False):
        return self._save(Assignment(schedule_id=schedule_id, class_id=class_id, subject_id=subject_id,
                                     teacher_id=teacher_id, max_score=max_score,
                                     assignment_type=assignment_type, planned_for=planned_for))


class SchoolSetup:
    """Ids of a small school: admin, teacher, two students, a parent, one class and subject."""

    def __init__(self, make, grading_system=GradingSystemEnum.FIVE_POINT):
        self.school_id = make.school()
        self.super_admin = make.user(UserRoleEnum.SUPER_ADMIN, username='root')
        self.admin = make.user(UserRoleEnum.SCHOOL_ADMIN, self.school_id, username='admin')
        self.teacher = make.user(UserRoleEnum.TEACHER, self.school_id, username='teacher')
        self.student = make.user(UserRoleEnum.STUDENT, self.school_id, username='student',
                                 first_name='Ivan', last_name='Petrov')
        self.other_student = make.user(UserRoleEnum.STUDENT, self.school_id, username='student2',
                                       first_name='Anna', last_name='Ivanova')
        self.parent = make.user(UserRoleEnum.PARENT, self.school_id, username='parent')
        self.class_id = make.school_class(self.school_id, grading_system=grading_system)
        self.subject_id = make.subject(self.school_id)
        make.enroll(self.student, self.class_id)
        make.enroll(self.other_student, self.class_id)
        make.parent_of(self.parent, self.student)


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def make(app):
    return Factory(app)


@pytest.fixture
def school(make):
    return SchoolSetup(make)


@pytest.fixture
def cumulative_school(make):
    return SchoolSetup(make, grading_system=GradingSystemEnum.CUMULATIVE)


@pytest.fixture
def login(client):
    def do_login(username):
        response = client.post('/api/login', json={'username': username, 'password': PASSWORD})
        assert response.status_code == 200, response.get_json()
        return response.get_json()
    return do_login


@pytest.fixture
def today():
    return date.today()
