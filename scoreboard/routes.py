from flask import Blueprint, jsonify
from scoreboard import get_services
from scoreboard.services.scores import StorageUnavailable

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the scoreboard server!'})

@main.route('/health')
def health():
    try:
        records = get_services()['store'].count()
    except StorageUnavailable as exc:
        return jsonify({'status': 'unavailable', 'error': exc.message}), 503
    return jsonify({'status': 'ok', 'records': records})
