"""
Validation forms for the JSON API.

Each payload has a Flask-WTF form. `validate_json()` feeds the request body
(camelCase keys) into the form as snake_case form data and aborts with a 400
JSON payload when validation fails.
"""

import re
from flask import request, jsonify, make_response, abort
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import (StringField, PasswordField, IntegerField, FloatField, BooleanField,
                     TextAreaField, DateField, FieldList)
from wtforms.validators import (DataRequired, InputRequired, Optional, Length, NumberRange,
                                AnyOf, Regexp, ValidationError)

from models import (UserRoleEnum, GradingSystemEnum, AssignmentTypeEnum,
                    SCHEDULE_STATUSES, ATTENDANCE_STATUSES)

TIME_PATTERN = r'^([01]?\d|2[0-3]):[0-5]\d$'
EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'

_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def to_snake(name):
    return _CAMEL_RE.sub('_', name).lower()


def to_camel(name):
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def _minutes(value):
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


class IsoDateField(DateField):
    """Date field that also accepts full ISO timestamps ("2024-09-02T00:00:00Z")."""

    def process_formdata(self, valuelist):
        if valuelist and valuelist[0]:
            valuelist = [valuelist[0][:10]]
        super().process_formdata(valuelist)


class JsonForm(FlaskForm):
    class Meta:
        csrf = False


# --- Auth and users ---

class LoginForm(JsonForm):
    username = StringField('Username', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])


class UserForm(JsonForm):
    username = StringField('Username', validators=[DataRequired(), Length(min=3, max=100)])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=6)])
    first_name = StringField('First name', validators=[DataRequired(), Length(max=100)])
    last_name = StringField('Last name', validators=[DataRequired(), Length(max=100)])
    email = StringField('Email', validators=[DataRequired(), Regexp(EMAIL_PATTERN, message='Invalid email address.')])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    role = StringField('Role', validators=[DataRequired(), AnyOf(UserRoleEnum.ALL)])
    school_id = IntegerField('School', validators=[Optional()])
    class_ids = FieldList(IntegerField('Class'), min_entries=0)


class SwitchRoleForm(JsonForm):
    role = StringField('Role', validators=[DataRequired(), AnyOf(UserRoleEnum.ALL)])


class ActiveRoleForm(JsonForm):
    active_role = StringField('Active role', validators=[DataRequired(), AnyOf(UserRoleEnum.ALL)])


class UserRoleForm(JsonForm):
    user_id = IntegerField('User', validators=[InputRequired()])
    role = StringField('Role', validators=[DataRequired(), AnyOf(UserRoleEnum.ALL)])
    school_id = IntegerField('School', validators=[Optional()])
    class_id = IntegerField('Class', validators=[Optional()])


class ParentStudentForm(JsonForm):
    parent_id = IntegerField('Parent', validators=[InputRequired()])
    student_id = IntegerField('Student', validators=[InputRequired()])


# --- Schools, classes, subjects ---

class SchoolForm(JsonForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=200)])
    address = StringField('Address', validators=[DataRequired(), Length(max=255)])
    city = StringField('City', validators=[DataRequired(), Length(max=100)])
    status = StringField('Status', validators=[Optional(), AnyOf(['active', 'inactive'])])


class ClassForm(JsonForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    school_id = IntegerField('School', validators=[Optional()])
    grade_level = IntegerField('Grade level', validators=[InputRequired(), NumberRange(min=1, max=12)])
    academic_year = StringField('Academic year', validators=[DataRequired(), Length(max=20)])
    grading_system = StringField('Grading system', validators=[Optional(), AnyOf(GradingSystemEnum.ALL)])


class StudentClassForm(JsonForm):
    student_id = IntegerField('Student', validators=[InputRequired()])
    class_id = IntegerField('Class', validators=[InputRequired()])


class SubjectForm(JsonForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    school_id = IntegerField('School', validators=[Optional()])


class TeacherSubjectForm(JsonForm):
    teacher_id = IntegerField('Teacher', validators=[InputRequired()])
    subject_id = IntegerField('Subject', validators=[InputRequired()])


class SubgroupForm(JsonForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=100)])
    description = TextAreaField('Description', validators=[Optional()])
    class_id = IntegerField('Class', validators=[InputRequired()])
    school_id = IntegerField('School', validators=[InputRequired()])
    student_ids = FieldList(IntegerField('Student'), min_entries=0)


class StudentSubgroupForm(JsonForm):
    student_id = IntegerField('Student', validators=[InputRequired()])
    subgroup_id = IntegerField('Subgroup', validators=[InputRequired()])


# --- Schedules ---

class ScheduleForm(JsonForm):
    class_id = IntegerField('Class', validators=[InputRequired()])
    subject_id = IntegerField('Subject', validators=[InputRequired()])
    teacher_id = IntegerField('Teacher', validators=[InputRequired()])
    day_of_week = IntegerField('Day of week', validators=[InputRequired(), NumberRange(min=1, max=7)])
    schedule_date = IsoDateField('Date', validators=[Optional()])
    start_time = StringField('Start time', validators=[DataRequired(), Regexp(TIME_PATTERN, message='Use H:MM.')])
    end_time = StringField('End time', validators=[DataRequired(), Regexp(TIME_PATTERN, message='Use H:MM.')])
    room = StringField('Room', validators=[Optional(), Length(max=50)])
    status = StringField('Status', validators=[Optional(), AnyOf(SCHEDULE_STATUSES)])
    subgroup_id = IntegerField('Subgroup', validators=[Optional()])

    def validate_end_time(self, field):
        start = self.start_time.data if 'start_time' in self else None
        if start and field.data and re.match(TIME_PATTERN, start) and re.match(TIME_PATTERN, field.data):
            if _minutes(field.data) <= _minutes(start):
                raise ValidationError('End time must be after start time.')


class ScheduleStatusForm(JsonForm):
    status = StringField('Status', validators=[DataRequired(), AnyOf(SCHEDULE_STATUSES)])


# --- Homework ---

class HomeworkForm(JsonForm):
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    description = TextAreaField('Description', validators=[DataRequired()])
    subject_id = IntegerField('Subject', validators=[InputRequired()])
    class_id = IntegerField('Class', validators=[InputRequired()])
    schedule_id = IntegerField('Lesson', validators=[Optional()])
    due_date = IsoDateField('Due date', validators=[Optional()])


class HomeworkSubmissionForm(JsonForm):
    homework_id = IntegerField('Homework', validators=[InputRequired()])
    submission_text = TextAreaField('Answer', validators=[Optional()])
    file_url = StringField('File', validators=[Optional(), Length(max=500)])


class SubmissionGradeForm(JsonForm):
    grade = IntegerField('Grade', validators=[InputRequired(), NumberRange(min=1, max=5)])
    feedback = TextAreaField('Feedback', validators=[Optional()])


# --- Grades and attendance ---

class GradeForm(JsonForm):
    student_id = IntegerField('Student', validators=[InputRequired()])
    subject_id = IntegerField('Subject', validators=[InputRequired()])
    class_id = IntegerField('Class', validators=[InputRequired()])
    schedule_id = IntegerField('Lesson', validators=[Optional()])
    assignment_id = IntegerField('Assignment', validators=[Optional()])
    subgroup_id = IntegerField('Subgroup', validators=[Optional()])
    grade = IntegerField('Grade', validators=[InputRequired(), NumberRange(min=0)])
    comment = TextAreaField('Comment', validators=[Optional()])
    grade_type = StringField('Grade type', validators=[DataRequired(), Length(max=50)])
    date = IsoDateField('Date', validators=[Optional()])


class AttendanceForm(JsonForm):
    student_id = IntegerField('Student', validators=[InputRequired()])
    class_id = IntegerField('Class', validators=[InputRequired()])
    schedule_id = IntegerField('Lesson', validators=[InputRequired()])
    date = IsoDateField('Date', validators=[Optional()])
    status = StringField('Status', validators=[DataRequired(), AnyOf(ATTENDANCE_STATUSES)])
    comment = TextAreaField('Comment', validators=[Optional()])


# --- Cumulative grading ---

class AssignmentForm(JsonForm):
    schedule_id = IntegerField('Lesson', validators=[InputRequired()])
    assignment_type = StringField('Type', validators=[DataRequired(), AnyOf(AssignmentTypeEnum.ALL)])
    max_score = FloatField('Max score', validators=[InputRequired(), NumberRange(min=0.01)])
    teacher_id = IntegerField('Teacher', validators=[Optional()])
    class_id = IntegerField('Class', validators=[InputRequired()])
    subject_id = IntegerField('Subject', validators=[InputRequired()])
    subgroup_id = IntegerField('Subgroup', validators=[Optional()])
    description = TextAreaField('Description', validators=[Optional()])
    display_order = IntegerField('Order', validators=[Optional()])
    planned_for = BooleanField('Planned')


class CumulativeGradeForm(JsonForm):
    assignment_id = IntegerField('Assignment', validators=[InputRequired()])
    student_id = IntegerField('Student', validators=[InputRequired()])
    score = FloatField('Score', validators=[InputRequired(), NumberRange(min=0)])
    comment = TextAreaField('Comment', validators=[Optional()])


# --- Time slots ---

class TimeSlotForm(JsonForm):
    start_time = StringField('Start time', validators=[DataRequired(), Regexp(TIME_PATTERN, message='Use H:MM.')])
    end_time = StringField('End time', validators=[DataRequired(), Regexp(TIME_PATTERN, message='Use H:MM.')])

    def validate_end_time(self, field):
        start = self.start_time.data if 'start_time' in self else None
        if start and field.data and re.match(TIME_PATTERN, start) and re.match(TIME_PATTERN, field.data):
            if _minutes(field.data) <= _minutes(start):
                raise ValidationError('End time must be after start time.')


class ClassTimeSlotForm(TimeSlotForm):
    slot_number = IntegerField('Slot', validators=[InputRequired(), NumberRange(min=0, max=9)])


def _formdata(payload):
    """Flatten a JSON object into WTForms form data with snake_case keys."""
    formdata = MultiDict()
    for key, value in payload.items():
        if value is None:
            continue
        name = to_snake(key)
        if isinstance(value, list):
            for index, item in enumerate(value):
                if item is not None:
                    formdata.add(f'{name}-{index}', str(item))
        elif isinstance(value, bool):
            formdata.add(name, 'true' if value else 'false')
        else:
            formdata.add(name, str(value))
    return formdata


def validation_failed(errors):
    response = make_response(jsonify({
        'message': 'Validation failed',
        'errors': {to_camel(name): messages for name, messages in errors.items()},
    }), 400)
    abort(response)


def validate_json(form_class, partial=False, data=None):
    """
    Build and validate `form_class` from a JSON payload.

    `data` defaults to the request body. With `partial=True` only the fields
    present in the payload are kept on the form (PATCH semantics).
    Aborts with 400 on invalid input, otherwise returns the form.
    """
    if data is None:
        data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description='Expected a JSON object')

    formdata = _formdata(data)
    form = form_class(formdata=formdata)
    submitted = {to_snake(key) for key in data}
    form.submitted_fields = submitted

    if partial:
        for name in list(form._fields):
            if name not in submitted:
                del form[name]

    if not form.validate():
        validation_failed(form.errors)
    return form


def submitted_data(form):
    """Field data for the fields the client actually sent."""
    return {name: field.data for name, field in form._fields.items()
            if name in form.submitted_fields}
