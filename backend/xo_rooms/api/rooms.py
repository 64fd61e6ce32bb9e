from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


def _engine():
    return current_app.extensions['xo_rooms']


@rooms.route('', methods=['GET'])
def list_rooms():
    """Active rooms with their status and how many seats are taken."""
    return jsonify({'rooms': _engine().summaries()})


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    # Same snapshot the players receive, plus the derived status
    payload = _engine().describe(room_id)
    if payload is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(payload)
