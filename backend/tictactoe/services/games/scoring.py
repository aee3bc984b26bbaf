from typing import Optional

from flask import current_app

from tictactoe import db
from tictactoe.models import User


def record_win(display_name: str) -> Optional[User]:
    """Credit a finished game to its winner.

    +1 games played, +1 win and WIN_SCORE points to the winner only; the
    loser's record is left alone. Guests without a registered account are
    skipped and None is returned.
    """
    user = User.query.filter_by(username=display_name).first()
    if not user:
        current_app.logger.info(f"[win-skip] player={display_name!r} has no account")
        return None
    points = int(current_app.config.get('WIN_SCORE', 10))
    level_step = int(current_app.config.get('LEVEL_STEP', 50))
    try:
        user.apply_win(points, level_step)
        db.session.add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(
        f"[win-recorded] player={user.username} wins={user.wins} score={user.total_score} level={user.level}"
    )
    return user
