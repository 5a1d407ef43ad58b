from flask import Blueprint, jsonify, request, current_app
from scoreboard import socketio, get_services
from scoreboard.services.scores import ScoreboardError, InvalidInput, StorageUnavailable


scores = Blueprint('scores', __name__)

LEADERBOARD_ROOM = 'leaderboard'


def leaderboard_payload(entries) -> dict:
    return {
        'leaderboard': [entry.to_dict(rank=rank) for rank, entry in enumerate(entries, start=1)],
    }


def _broadcast_after_submit(record) -> None:
    """Push the new record and the refreshed ranking to subscribed sockets.

    The submission is already committed here, so a failing ranking read
    only skips the push.
    """
    socketio.emit('score_update', record.to_dict(), to=LEADERBOARD_ROOM, namespace='/ws')
    try:
        entries = get_services()['leaderboard'].top_scores()
    except StorageUnavailable as exc:
        current_app.logger.warning(f"[broadcast-skip] identity={record.identity} error={exc.message}")
        return
    socketio.emit('leaderboard_update', leaderboard_payload(entries), to=LEADERBOARD_ROOM, namespace='/ws')


@scores.errorhandler(ScoreboardError)
def handle_scoreboard_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@scores.route('/scores', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput('Request body must be a JSON object')
    identity = data.get('identity')
    score = data.get('score')
    if identity is None or score is None:
        raise InvalidInput('identity and score are required')

    record = get_services()['ledger'].submit(identity, score)
    _broadcast_after_submit(record)
    return jsonify(record.to_dict())


@scores.route('/scores/<string:identity>', methods=['GET'])
def get_score(identity):
    record = get_services()['ledger'].get_score(identity)
    return jsonify(record.to_dict())


@scores.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    raw = request.args.get('n')
    n = None
    if raw is not None:
        try:
            n = int(raw)
        except ValueError:
            raise InvalidInput('n must be an integer')
    view = get_services()['leaderboard']
    entries = view.top_scores(n)
    payload = leaderboard_payload(entries)
    payload['size'] = n if n is not None else view.default_size
    return jsonify(payload)
