# walksense/location/routes.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from walksense.decorators import guardian_required
from walksense.location.views import (
    get_all_linked_locations, get_current_location, get_history, parse_history_hours, record_sample,
)


location_bp = Blueprint('location', __name__)


@location_bp.route('', methods=['POST'])
@login_required
def store_location():
    location = record_sample(current_user.id, request.get_json(silent=True))
    return jsonify({
        'message': 'Location updated successfully.',
        'location': location.to_dict(),
    }), 201


@location_bp.route('/pwd/<int:pwd_user_id>', methods=['GET'])
@login_required
@guardian_required
def current_location(pwd_user_id):
    current, pwd = get_current_location(current_user.id, pwd_user_id)
    return jsonify({
        'location': current.to_dict(),
        'pwd': {'id': pwd.user_id, 'name': pwd.display_name},
    }), 200


@location_bp.route('/pwd/<int:pwd_user_id>/history', methods=['GET'])
@login_required
@guardian_required
def location_history(pwd_user_id):
    hours = parse_history_hours(request.args.get('hours'))
    locations = get_history(current_user.id, pwd_user_id, hours)
    return jsonify({
        'locations': [location.to_dict() for location in locations],
        'count': len(locations),
    }), 200


@location_bp.route('/all-pwds', methods=['GET'])
@login_required
@guardian_required
def all_pwd_locations():
    return jsonify({'pwd_locations': get_all_linked_locations(current_user.id)}), 200
