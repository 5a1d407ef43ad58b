from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def build_store(flask_app):
    """Construct the storage engine named by SCORE_STORE."""
    from scoreboard.services.scores import MemoryScoreStore, SqlScoreStore

    kind = (flask_app.config.get('SCORE_STORE') or 'sql').lower()
    if kind == 'memory':
        return MemoryScoreStore(logger=flask_app.logger)
    if kind == 'sql':
        return SqlScoreStore(db, logger=flask_app.logger)
    raise ValueError(f"Unknown SCORE_STORE '{kind}'")


def get_services(app=None) -> dict:
    """Return the store, ledger and leaderboard bound to the app."""
    return (app or current_app).extensions['scoreboard']


def create_app(config_class=Config, store=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Storage handle is explicit and per-app; tests may pass their own
    from scoreboard.services.scores import ScoreLedger, LeaderboardView
    if store is None:
        store = build_store(flask_app)
    store.open()
    flask_app.extensions['scoreboard'] = {
        'store': store,
        'ledger': ScoreLedger(
            store,
            max_retries=int(flask_app.config.get('SCORE_CAS_MAX_RETRIES', 16)),
            max_score=flask_app.config.get('MAX_SCORE_PER_SUBMISSION'),
            retry_backoff=int(flask_app.config.get('SCORE_RETRY_BACKOFF_MS', 5)) / 1000.0,
            logger=flask_app.logger,
        ),
        'leaderboard': LeaderboardView(
            store,
            default_size=int(flask_app.config.get('LEADERBOARD_DEFAULT_SIZE', 3)),
            max_size=flask_app.config.get('LEADERBOARD_MAX_SIZE'),
            logger=flask_app.logger,
        ),
    }

    from scoreboard.routes import main
    flask_app.register_blueprint(main)

    from scoreboard.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    from scoreboard.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the score tables."""
        import scoreboard.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('show-leaderboard')
    @click.option('--size', type=int, default=None, help='Number of entries to show.')
    def show_leaderboard_command(size):
        """Prints the current leaderboard."""
        with flask_app.app_context():
            entries = get_services(flask_app)['leaderboard'].top_scores(size)
            if not entries:
                print('No scores recorded yet.')
            for rank, entry in enumerate(entries, start=1):
                print(f'{rank:>3}. {entry.identity}  {entry.accumulated_score}')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(show_leaderboard_command)

    return flask_app


def close_app(flask_app) -> None:
    """Release the app's storage handle. Call once at shutdown."""
    with flask_app.app_context():
        get_services(flask_app)['store'].close()
