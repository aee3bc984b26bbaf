from tictactoe import db
from tictactoe.models import User
from tictactoe.services.games.errors import BadRequest, InvalidCredentials, UsernameTaken


def register(username: str, password: str, email: str = None) -> User:
    username = (username or '').strip()
    if not username or not password:
        raise BadRequest('Missing username or password')
    if User.query.filter_by(username=username).first():
        raise UsernameTaken()
    if email and User.query.filter_by(email=email).first():
        raise UsernameTaken('Email already registered')

    user = User(username=username, email=email or None)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User:
    user = User.query.filter_by(username=username).first()
    if not user or not password or not user.check_password(password):
        raise InvalidCredentials()
    return user
