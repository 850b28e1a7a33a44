# raid/__init__.py
from .routes import raid_bp
from .sockets import register_raid_socket_handlers


def init_raid(app, socketio):
    app.register_blueprint(raid_bp)
    register_raid_socket_handlers(
        socketio,
        settings=app.config.get("RAID_SETTINGS"),
        tick_interval=app.config.get("RAID_TICK_INTERVAL", 1.0),
    )
