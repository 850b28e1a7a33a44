# raid/app.py
import logging
import os

from flask import Flask
from flask_socketio import SocketIO

from . import init_raid


def create_app(config=None):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "raid-dev")
    app.config.update(config or {})
    socketio = SocketIO(app, cors_allowed_origins="*")
    init_raid(app, socketio)
    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    app.extensions["socketio"].run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "5000")))
