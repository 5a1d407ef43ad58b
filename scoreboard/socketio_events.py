from flask_socketio import join_room, leave_room, emit
from flask import current_app
from scoreboard import get_services
from scoreboard.api.scores import LEADERBOARD_ROOM, leaderboard_payload
from scoreboard.services.scores import StorageUnavailable


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_subscribe_leaderboard(data=None):
    join_room(LEADERBOARD_ROOM)
    emit('subscribed', {'room': LEADERBOARD_ROOM})
    # Send a snapshot so the subscriber does not wait for the next submission
    try:
        entries = get_services()['leaderboard'].top_scores()
    except StorageUnavailable as exc:
        current_app.logger.warning(f"[subscribe-snapshot-skip] error={exc.message}")
        emit('error', {'message': exc.message})
        return
    emit('leaderboard_update', leaderboard_payload(entries))


def handle_unsubscribe_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('unsubscribed', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from scoreboard import socketio

    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('subscribe_leaderboard', handle_subscribe_leaderboard, namespace='/ws')
    socketio.on_event('unsubscribe_leaderboard', handle_unsubscribe_leaderboard, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('subscribe_leaderboard', handle_subscribe_leaderboard, namespace='/')
        socketio.on_event('unsubscribe_leaderboard', handle_unsubscribe_leaderboard, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
