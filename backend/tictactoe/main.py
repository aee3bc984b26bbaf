from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from tictactoe import lobby
from tictactoe.services import accounts
from tictactoe.services.games import leaderboard
from tictactoe.services.games.errors import BadRequest, InvalidCredentials, UsernameTaken

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the tic-tac-toe game server!'})


@main.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    try:
        user = accounts.register(data.get('username'), data.get('password'), data.get('email'))
    except (BadRequest, UsernameTaken) as exc:
        return jsonify({'error': exc.message, 'code': exc.code}), 400

    login_user(user)
    current_app.logger.info(f"[register] user={user.username}")
    lobby.publish_leaderboard()
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    try:
        user = accounts.authenticate(data.get('username'), data.get('password'))
    except InvalidCredentials as exc:
        return jsonify({'error': exc.message, 'code': exc.code}), 401
    login_user(user, remember=True)
    return jsonify({'success': True, 'user': user.to_dict()})


@main.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@main.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@main.route('/stats', methods=['GET'])
def stats():
    return jsonify(lobby.stats())


@main.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    return jsonify({'leaderboard': leaderboard.recompute()})
