"""
API Routes Package

All JSON endpoints of the journal, one module per functional area. The
package blueprint is mounted under /api by create_app().
"""

from flask import Blueprint

# Create the main API blueprint
api_blueprint = Blueprint('api', __name__)

# Import all route modules to register their routes
from . import (
    auth,
    roles,
    schools,
    users,
    classes,
    subjects,
    subgroups,
    schedules,
    homework,
    grades,
    attendance,
    assignments,
    time_slots,
    notifications,
    parent_students,
    system_logs,
)

# Register sub-blueprints with the main API blueprint
api_blueprint.register_blueprint(auth.bp, url_prefix='')
api_blueprint.register_blueprint(roles.bp, url_prefix='')
api_blueprint.register_blueprint(schools.bp, url_prefix='')
api_blueprint.register_blueprint(users.bp, url_prefix='')
api_blueprint.register_blueprint(classes.bp, url_prefix='')
api_blueprint.register_blueprint(subjects.bp, url_prefix='')
api_blueprint.register_blueprint(subgroups.bp, url_prefix='')
api_blueprint.register_blueprint(schedules.bp, url_prefix='')
api_blueprint.register_blueprint(homework.bp, url_prefix='')
api_blueprint.register_blueprint(grades.bp, url_prefix='')
api_blueprint.register_blueprint(attendance.bp, url_prefix='')
api_blueprint.register_blueprint(assignments.bp, url_prefix='')
api_blueprint.register_blueprint(time_slots.bp, url_prefix='')
api_blueprint.register_blueprint(notifications.bp, url_prefix='')
api_blueprint.register_blueprint(parent_students.bp, url_prefix='')
api_blueprint.register_blueprint(system_logs.bp, url_prefix='')
