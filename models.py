from flask_login import UserMixin
from datetime import datetime
from extensions import db


class UserRoleEnum:
    SUPER_ADMIN = 'super_admin'
    SCHOOL_ADMIN = 'school_admin'
    TEACHER = 'teacher'
    STUDENT = 'student'
    PARENT = 'parent'
    PRINCIPAL = 'principal'
    VICE_PRINCIPAL = 'vice_principal'
    CLASS_TEACHER = 'class_teacher'

    ALL = [SUPER_ADMIN, SCHOOL_ADMIN, TEACHER, STUDENT, PARENT, PRINCIPAL, VICE_PRINCIPAL, CLASS_TEACHER]


class GradingSystemEnum:
    FIVE_POINT = 'five_point'
    CUMULATIVE = 'cumulative'

    ALL = [FIVE_POINT, CUMULATIVE]


class AssignmentTypeEnum:
    CONTROL_WORK = 'control_work'
    TEST_WORK = 'test_work'
    CURRENT_WORK = 'current_work'
    HOMEWORK = 'homework'
    CLASSWORK = 'classwork'
    PROJECT_WORK = 'project_work'
    CLASS_ASSIGNMENT = 'class_assignment'

    ALL = [CONTROL_WORK, TEST_WORK, CURRENT_WORK, HOMEWORK, CLASSWORK, PROJECT_WORK, CLASS_ASSIGNMENT]


SCHEDULE_STATUSES = ['conducted', 'not_conducted']
ATTENDANCE_STATUSES = ['present', 'absent', 'late']


def _iso(value):
    return value.isoformat() if value is not None else None


class User(db.Model, UserMixin):
    """
    User model for authentication and roles. Students, parents, teachers
    and administrators are all rows of this table; the primary role lives
    in `role`, extra roles in `user_roles`.
    """
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(30), nullable=True)
    role = db.Column(db.String(30), nullable=False)
    # Role currently selected in the role switcher
    active_role = db.Column(db.String(30), nullable=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def full_name(self):
        return f"{self.last_name} {self.first_name}"

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'activeRole': self.active_role,
            'schoolId': self.school_id,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f"User('{self.username}', '{self.role}')"


class School(db.Model):
    __tablename__ = 'schools'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    address = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='active')
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    classes = db.relationship('Class', backref='school', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'city': self.city,
            'status': self.status,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f"School('{self.name}')"


class Class(db.Model):
    """A school class (form), e.g. "5A"."""
    __tablename__ = 'classes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False)
    grade_level = db.Column(db.Integer, nullable=False)
    academic_year = db.Column(db.String(20), nullable=False)
    grading_system = db.Column(db.String(20), nullable=False, default=GradingSystemEnum.FIVE_POINT)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'schoolId': self.school_id,
            'gradeLevel': self.grade_level,
            'academicYear': self.academic_year,
            'gradingSystem': self.grading_system,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f"Class('{self.name}', school={self.school_id})"


class StudentClass(db.Model):
    __tablename__ = 'student_classes'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)

    def to_dict(self):
        return {'id': self.id, 'studentId': self.student_id, 'classId': self.class_id}


class Subject(db.Model):
    __tablename__ = 'subjects'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'schoolId': self.school_id,
        }


class TeacherSubject(db.Model):
    __tablename__ = 'teacher_subjects'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)

    def to_dict(self):
        return {'id': self.id, 'teacherId': self.teacher_id, 'subjectId': self.subject_id}


class Subgroup(db.Model):
    """A named subset of a class used for split lessons."""
    __tablename__ = 'subgroups'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'classId': self.class_id,
            'schoolId': self.school_id,
            'createdAt': _iso(self.created_at),
        }


class StudentSubgroup(db.Model):
    __tablename__ = 'student_subgroups'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    subgroup_id = db.Column(db.Integer, db.ForeignKey('subgroups.id'), nullable=False)

    def to_dict(self):
        return {'id': self.id, 'studentId': self.student_id, 'subgroupId': self.subgroup_id}


class Schedule(db.Model):
    """
    One lesson: weekday, time range, subject (optionally a subgroup) and room.
    Times are stored as "H:MM" text exactly as entered.
    """
    __tablename__ = 'schedules'

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    day_of_week = db.Column(db.Integer, nullable=False)  # 1-7, Monday is 1
    schedule_date = db.Column(db.Date, nullable=True)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    room = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), default='not_conducted')
    subgroup_id = db.Column(db.Integer, db.ForeignKey('subgroups.id'), nullable=True)

    subgroup = db.relationship('Subgroup', lazy=True)
    assignments = db.relationship('Assignment', backref='schedule', lazy=True,
                                  order_by='Assignment.display_order')

    def to_dict(self, include_assignments=False):
        data = {
            'id': self.id,
            'classId': self.class_id,
            'subjectId': self.subject_id,
            'teacherId': self.teacher_id,
            'dayOfWeek': self.day_of_week,
            'scheduleDate': _iso(self.schedule_date),
            'startTime': self.start_time,
            'endTime': self.end_time,
            'room': self.room,
            'status': self.status,
            'subgroupId': self.subgroup_id,
        }
        if include_assignments:
            data['subgroupName'] = self.subgroup.name if self.subgroup else None
            data['assignments'] = [a.to_dict() for a in self.assignments]
        return data

    def __repr__(self):
        return f"Schedule(class={self.class_id}, day={self.day_of_week}, {self.start_time}-{self.end_time})"


class Homework(db.Model):
    __tablename__ = 'homework'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    schedule_id = db.Column(db.Integer, db.ForeignKey('schedules.id'), nullable=True)
    due_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'subjectId': self.subject_id,
            'classId': self.class_id,
            'teacherId': self.teacher_id,
            'scheduleId': self.schedule_id,
            'dueDate': _iso(self.due_date),
            'createdAt': _iso(self.created_at),
        }


class HomeworkSubmission(db.Model):
    __tablename__ = 'homework_submissions'

    id = db.Column(db.Integer, primary_key=True)
    homework_id = db.Column(db.Integer, db.ForeignKey('homework.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    submission_text = db.Column(db.Text, nullable=True)
    file_url = db.Column(db.String(500), nullable=True)
    submitted_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    grade = db.Column(db.Integer, nullable=True)
    feedback = db.Column(db.Text, nullable=True)

    homework = db.relationship('Homework', backref=db.backref('submissions', lazy=True))

    def to_dict(self):
        return {
            'id': self.id,
            'homeworkId': self.homework_id,
            'studentId': self.student_id,
            'submissionText': self.submission_text,
            'fileUrl': self.file_url,
            'submittedAt': _iso(self.submitted_at),
            'grade': self.grade,
            'feedback': self.feedback,
        }


class Grade(db.Model):
    __tablename__ = 'grades'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    schedule_id = db.Column(db.Integer, db.ForeignKey('schedules.id'), nullable=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id'), nullable=True)
    subgroup_id = db.Column(db.Integer, db.ForeignKey('subgroups.id'), nullable=True)
    grade = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text, nullable=True)
    grade_type = db.Column(db.String(50), nullable=False)  # e.g. homework, test, exam
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'studentId': self.student_id,
            'subjectId': self.subject_id,
            'classId': self.class_id,
            'teacherId': self.teacher_id,
            'scheduleId': self.schedule_id,
            'assignmentId': self.assignment_id,
            'subgroupId': self.subgroup_id,
            'grade': self.grade,
            'comment': self.comment,
            'gradeType': self.grade_type,
            'createdAt': _iso(self.created_at),
        }

    def __repr__(self):
        return f"Grade(student={self.student_id}, subject={self.subject_id}, grade={self.grade})"


class Attendance(db.Model):
    __tablename__ = 'attendance'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    schedule_id = db.Column(db.Integer, db.ForeignKey('schedules.id'), nullable=False)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False)  # present, absent, late
    comment = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'studentId': self.student_id,
            'classId': self.class_id,
            'scheduleId': self.schedule_id,
            'date': _iso(self.date),
            'status': self.status,
            'comment': self.comment,
        }


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'content': self.content,
            'isRead': self.is_read,
            'createdAt': _iso(self.created_at),
        }


class ParentStudent(db.Model):
    __tablename__ = 'parent_students'

    id = db.Column(db.Integer, primary_key=True)
    parent_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    def to_dict(self):
        return {'id': self.id, 'parentId': self.parent_id, 'studentId': self.student_id}


class UserRole(db.Model):
    """Additional role held by a user, optionally bound to a school or class."""
    __tablename__ = 'user_roles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    role = db.Column(db.String(30), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=True)
    # Set for class teachers
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'role': self.role,
            'schoolId': self.school_id,
            'classId': self.class_id,
        }


class SystemLog(db.Model):
    __tablename__ = 'system_logs'

    id = db.Column(db.Integer, primary_key=True)
    # No foreign key: log entries outlive deleted users
    user_id = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(100), nullable=False)
    details = db.Column(db.Text, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'action': self.action,
            'details': self.details,
            'ipAddress': self.ip_address,
            'createdAt': _iso(self.created_at),
        }


class Assignment(db.Model):
    """A scored piece of work attached to a lesson (cumulative grading)."""
    __tablename__ = 'assignments'

    id = db.Column(db.Integer, primary_key=True)
    schedule_id = db.Column(db.Integer, db.ForeignKey('schedules.id'), nullable=False)
    assignment_type = db.Column(db.String(30), nullable=False)
    max_score = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    subgroup_id = db.Column(db.Integer, db.ForeignKey('subgroups.id'), nullable=True)
    description = db.Column(db.Text, nullable=True)
    display_order = db.Column(db.Integer, default=0, nullable=False)
    # Planned for a future lesson; counts only once the lesson is conducted
    planned_for = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'scheduleId': self.schedule_id,
            'assignmentType': self.assignment_type,
            'maxScore': self.max_score,
            'teacherId': self.teacher_id,
            'classId': self.class_id,
            'subjectId': self.subject_id,
            'subgroupId': self.subgroup_id,
            'description': self.description,
            'displayOrder': self.display_order,
            'plannedFor': bool(self.planned_for),
            'createdAt': _iso(self.created_at),
        }


class CumulativeGrade(db.Model):
    __tablename__ = 'cumulative_grades'

    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    score = db.Column(db.Numeric(10, 2, asdecimal=False), nullable=False)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'assignmentId': self.assignment_id,
            'studentId': self.student_id,
            'score': self.score,
            'comment': self.comment,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


class TimeSlot(db.Model):
    """Lesson time slot: system default (is_default) or school-specific."""
    __tablename__ = 'time_slots'

    id = db.Column(db.Integer, primary_key=True)
    slot_number = db.Column(db.Integer, nullable=False)  # 0-9
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    school_id = db.Column(db.Integer, db.ForeignKey('schools.id'), nullable=True)
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'slotNumber': self.slot_number,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'schoolId': self.school_id,
            'isDefault': self.is_default,
            'createdAt': _iso(self.created_at),
        }


class ClassTimeSlot(db.Model):
    """Per-class override of a time slot."""
    __tablename__ = 'class_time_slots'

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
    slot_number = db.Column(db.Integer, nullable=False)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'classId': self.class_id,
            'slotNumber': self.slot_number,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }
