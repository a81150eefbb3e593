"""
Grade averages for the journal.

Two grading systems exist. Five-point classes use the plain mean of the
grades. Cumulative classes add up earned points against the max score of
each lesson's assignment and report the share as a percentage.
"""

import logging
from collections import defaultdict

from flask import current_app
from models import Assignment, CumulativeGrade, Grade, Schedule, StudentSubgroup, GradingSystemEnum

logger = logging.getLogger(__name__)

# Weights of the five-point average of a single student and subject
GRADE_TYPE_WEIGHTS = {
    'test': 2,
    'exam': 3,
    'homework': 1,
    'project': 2,
    'classwork': 1,
    'practical': 1.5,
}

EMPTY_RESULT = {'average': '-', 'percentage': '-'}


def _default_max_score():
    return float(current_app.config.get('DEFAULT_MAX_SCORE', 10.0))


def _subgroup_ids(student_id):
    return {link.subgroup_id for link in StudentSubgroup.query.filter_by(student_id=student_id).all()}


def _within(grade, from_date, to_date):
    if grade.created_at is None:
        return True
    created = grade.created_at.date()
    if from_date and created < from_date:
        return False
    if to_date and created > to_date:
        return False
    return True


class LessonScores:
    """Looks up the max score a lesson grade is measured against."""

    def __init__(self, schedule_ids):
        schedule_ids = {sid for sid in schedule_ids if sid}
        self.assignments = defaultdict(list)
        self.statuses = {}
        if schedule_ids:
            for assignment in Assignment.query.filter(Assignment.schedule_id.in_(schedule_ids)) \
                    .order_by(Assignment.id).all():
                self.assignments[assignment.schedule_id].append(assignment)
            for schedule in Schedule.query.filter(Schedule.id.in_(schedule_ids)).all():
                self.statuses[schedule.id] = schedule.status
        self.default_max = _default_max_score()

    def max_score(self, grade):
        """
        Max score for `grade`, or None when the grade must not count yet
        (its assignment is planned and the lesson has not been conducted).
        """
        related = self.assignments.get(grade.schedule_id) if grade.schedule_id else None
        if not related:
            return self.default_max

        assignment = None
        if grade.assignment_id:
            assignment = next((a for a in related if a.id == grade.assignment_id), None)
        if assignment is None:
            assignment = related[0]

        if assignment.planned_for and self.statuses.get(grade.schedule_id) != 'conducted':
            return None
        return float(assignment.max_score)


def five_point_result(grades):
    if not grades:
        return dict(EMPTY_RESULT)
    average = sum(g.grade for g in grades) / len(grades)
    return {'average': f"{average:.1f}", 'percentage': '-'}


def cumulative_result(grades, lesson_scores, include_max=False):
    earned = 0.0
    total_max = 0.0
    for grade in grades:
        max_score = lesson_scores.max_score(grade)
        if max_score is None:
            continue
        earned += grade.grade
        total_max += max_score

    if total_max == 0:
        result = {'average': '0', 'percentage': '0%'}
    else:
        percentage = min(earned / total_max * 100, 100.0)
        result = {'average': f"{earned:.1f}", 'percentage': f"{percentage:.1f}%"}
    if include_max:
        result['maxScore'] = f"{total_max:.1f}"
    return result


def subject_averages(class_obj, students, grades, from_date=None, to_date=None):
    """
    Per-student, per-subject averages for one class.

    Returns {student_id: {subject_id: result, 'overall': result}} where each
    result is {"average": str, "percentage": str}. Grades bound to a subgroup
    only count for members of that subgroup.
    """
    cumulative = class_obj.grading_system == GradingSystemEnum.CUMULATIVE
    grades = [g for g in grades if _within(g, from_date, to_date)]
    lesson_scores = LessonScores(g.schedule_id for g in grades) if cumulative else None

    by_student = defaultdict(list)
    for grade in grades:
        by_student[grade.student_id].append(grade)

    results = {}
    for student in students:
        student_grades = by_student.get(student.id, [])
        subgroup_ids = _subgroup_ids(student.id)
        visible = [g for g in student_grades if not g.subgroup_id or g.subgroup_id in subgroup_ids]

        by_subject = defaultdict(list)
        for grade in visible:
            by_subject[grade.subject_id].append(grade)

        student_result = {}
        for subject_id, subject_grades in by_subject.items():
            if cumulative:
                student_result[subject_id] = cumulative_result(subject_grades, lesson_scores)
            else:
                student_result[subject_id] = five_point_result(subject_grades)

        if not visible:
            student_result['overall'] = dict(EMPTY_RESULT)
        elif cumulative:
            student_result['overall'] = cumulative_result(visible, lesson_scores)
        else:
            student_result['overall'] = five_point_result(visible)
        results[student.id] = student_result

    logger.debug(f"Calculated averages for {len(results)} students of class {class_obj.id}")
    return results


def student_subject_average(student_id, subject_id, class_obj, subgroup_id=None):
    """
    Average of one student in one subject, as shown in the teacher's journal.

    With `subgroup_id` only that subgroup's grades count. Five-point classes
    use a weighted mean by grade type.
    """
    query = Grade.query.filter_by(student_id=student_id, subject_id=subject_id)
    if subgroup_id:
        query = query.filter_by(subgroup_id=subgroup_id)
    grades = query.all()

    if class_obj.grading_system == GradingSystemEnum.CUMULATIVE:
        if not subgroup_id:
            member_of = _subgroup_ids(student_id)
            grades = [g for g in grades if not g.subgroup_id or g.subgroup_id in member_of]
        lesson_scores = LessonScores(g.schedule_id for g in grades)
        return cumulative_result(grades, lesson_scores, include_max=True)

    weighted_sum = 0.0
    total_weight = 0.0
    for grade in grades:
        weight = GRADE_TYPE_WEIGHTS.get(grade.grade_type, 1)
        weighted_sum += grade.grade * weight
        total_weight += weight
    if total_weight == 0:
        return dict(EMPTY_RESULT)
    average = weighted_sum / total_weight
    percentage = min(average / 5 * 100, 100.0)
    return {'average': f"{average:.1f}", 'percentage': f"{percentage:.1f}%"}


def class_assignment_averages(class_id):
    """Mean cumulative score of every assignment in a class that has scores."""
    results = []
    for assignment in Assignment.query.filter_by(class_id=class_id).order_by(Assignment.id).all():
        scores = [float(g.score) for g in CumulativeGrade.query.filter_by(assignment_id=assignment.id).all()]
        if scores:
            results.append({
                'assignmentId': assignment.id,
                'averageScore': sum(scores) / len(scores),
            })
    return results
