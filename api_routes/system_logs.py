from flask import Blueprint, jsonify, request

from decorators import super_admin_required
from services.activity_log import get_system_logs
from .utils import to_dicts

bp = Blueprint('system_logs', __name__)


@bp.route('/system-logs', methods=['GET'])
@super_admin_required
def list_system_logs():
    limit = request.args.get('limit', 100, type=int)
    return jsonify(to_dicts(get_system_logs(limit=max(1, min(limit, 1000)))))
