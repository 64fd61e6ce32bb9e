from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
from xo_rooms.config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ALLOWED_ORIGINS', '*')
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        path=flask_app.config.get('SOCKETIO_PATH', 'socket.io'),
    )

    from xo_rooms.main import main
    flask_app.register_blueprint(main)

    from xo_rooms.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # One engine (and registry) per application; handlers look it up through
    # current_app so test apps never share rooms.
    from xo_rooms.services.games import RoomRegistry, SessionEngine
    from xo_rooms.socketio_events import SocketIOTransport, register_socketio_handlers
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    transport = SocketIOTransport(namespace)
    flask_app.extensions['xo_rooms'] = SessionEngine(
        RoomRegistry(),
        deliver=transport.deliver,
        is_connected=transport.is_connected,
    )
    register_socketio_handlers(namespace)

    @flask_app.errorhandler(404)
    def not_found(_exc):
        return jsonify({'error': 'Not found'}), 404

    return flask_app
