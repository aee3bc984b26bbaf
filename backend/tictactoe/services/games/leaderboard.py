from flask import current_app

from tictactoe.models import User


def recompute(limit: int = None):
    """Top players by total score; ties keep registration order."""
    if limit is None:
        limit = int(current_app.config.get('LEADERBOARD_SIZE', 10))
    users = (
        User.query
        .order_by(User.total_score.desc(), User.id.asc())
        .limit(limit)
        .all()
    )
    return [u.to_leaderboard_entry(rank) for rank, u in enumerate(users, start=1)]


def publish(router):
    entries = recompute()
    router.to_all('leaderboard-update', {'leaderboard': entries})
    current_app.logger.info(f"[leaderboard] published entries={len(entries)}")
    return entries


def start_refresh_loop(app, socketio, router) -> None:
    """Republish the leaderboard every LEADERBOARD_REFRESH_SEC seconds."""
    interval = int(app.config.get('LEADERBOARD_REFRESH_SEC', 0))
    if interval <= 0:
        return

    def _loop():
        while True:
            socketio.sleep(interval)
            with app.app_context():
                try:
                    publish(router)
                except Exception:
                    app.logger.exception("[leaderboard] periodic refresh failed")

    socketio.start_background_task(_loop)
