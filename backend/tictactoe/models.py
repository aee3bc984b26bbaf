from datetime import datetime

from tictactoe import db, bcrypt
from flask_login import UserMixin


class User(UserMixin, db.Model):
    """Registered player and their cumulative stats."""
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    games_played = db.Column(db.Integer, default=0, nullable=False)
    wins = db.Column(db.Integer, default=0, nullable=False)
    total_score = db.Column(db.Integer, default=0, nullable=False)
    level = db.Column(db.Integer, default=1, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def apply_win(self, points: int, level_step: int) -> None:
        self.games_played = (self.games_played or 0) + 1
        self.wins = (self.wins or 0) + 1
        self.total_score = (self.total_score or 0) + points
        self.level = 1 + self.total_score // max(1, level_step)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'games_played': self.games_played,
            'wins': self.wins,
            'total_score': self.total_score,
            'level': self.level,
        }

    def to_leaderboard_entry(self, rank: int):
        return {
            'rank': rank,
            'username': self.username,
            'gamesPlayed': self.games_played,
            'wins': self.wins,
            'totalScore': self.total_score,
            'level': self.level,
        }
