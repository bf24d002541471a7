from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def _allowed_origins(raw):
    if not raw or raw == '*':
        return '*'
    return [o.strip() for o in raw.split(',') if o.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ORIGINS', '*'))
    testing = flask_app.config.get('TESTING', False)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from partytasks.main import main
    flask_app.register_blueprint(main)

    # Tables must exist before the snapshot is read
    from partytasks import models  # noqa: F401
    with flask_app.app_context():
        db.create_all()

    from partytasks.services.game.manager import GameManager
    from partytasks.services.game.persistence import PersistenceGateway
    from partytasks.services.game.scheduler import Scheduler
    from partytasks.socketio_events import SocketIOBroadcaster, register_socketio_handlers

    cfg = flask_app.config
    manager = GameManager(
        broadcaster=SocketIOBroadcaster(socketio),
        persistence=PersistenceGateway(flask_app, spawn=None if testing else socketio.start_background_task),
        scheduler=Scheduler(socketio, inline=testing),
        max_players=int(cfg.get('MAX_PLAYERS', 8)),
        admin_secret=cfg.get('ADMIN_PWD', ''),
        game_timeout=int(cfg.get('GAME_TIMEOUT_SEC', 3600)),
        disconnect_timeout=int(cfg.get('DISCONNECT_TIMEOUT_SEC', 30)),
        alarm_delay=int(cfg.get('ALARM_DELAY_SEC', 120)),
    )
    if manager.restore():
        flask_app.logger.info(f"[startup] restored session players={len(manager.session.players)}")
    flask_app.extensions['game_manager'] = manager

    register_socketio_handlers(socketio)

    # Periodic sweeps are runtime-only; tests drive them directly
    if not testing:
        manager.start_background_jobs(
            presence_interval=int(cfg.get('PRESENCE_INTERVAL_SEC', 60)),
            autosave_interval=int(cfg.get('AUTOSAVE_INTERVAL_SEC', 300)),
            reset_check_interval=int(cfg.get('RESET_CHECK_INTERVAL_SEC', 60)),
        )

    @click.command('game-reset')
    def game_reset_command():
        """Discards the current session and persists a fresh one."""
        manager.reset()
        print('Game has been reset!')

    flask_app.cli.add_command(game_reset_command)

    return flask_app
