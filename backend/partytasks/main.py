from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the party tasks game server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok'})


@main.route('/api/state', methods=['GET'])
def get_game_state():
    """Public view of the session: roster, whose turn it is and turn flags."""
    manager = current_app.extensions['game_manager']
    return jsonify(manager.state_payload())
