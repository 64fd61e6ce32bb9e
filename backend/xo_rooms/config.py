import os


def _split_origins(value):
    if value.strip() == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list, or "*" for any origin
    CORS_ALLOWED_ORIGINS = _split_origins(os.environ.get('CORS_ALLOWED_ORIGINS', '*'))
    # Mount point of the Socket.IO endpoint; the browser client connects to /api/socket
    SOCKETIO_PATH = os.environ.get('SOCKETIO_PATH', 'api/socket')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
