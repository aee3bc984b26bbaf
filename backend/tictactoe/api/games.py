from flask import Blueprint, jsonify
from tictactoe import lobby


games = Blueprint('games', __name__)


@games.route('/', methods=['GET'])
def list_sessions():
    sessions = sorted(lobby.registry.sessions(), key=lambda s: s.created_at)
    return jsonify({'sessions': [s.to_dict() for s in sessions]})


@games.route('/<string:session_id>/state', methods=['GET'])
def get_session_state(session_id):
    session = lobby.registry.get(session_id)
    if session is None:
        return jsonify({'error': 'Session not found', 'code': 'SessionNotFound'}), 404
    return jsonify(session.to_dict())
