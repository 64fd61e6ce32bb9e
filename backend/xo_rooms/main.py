from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the tic-tac-toe room server!'})


@main.route('/health')
def health():
    engine = current_app.extensions['xo_rooms']
    return jsonify({'status': 'ok', 'rooms': len(engine.registry)})
