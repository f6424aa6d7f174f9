"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask

from examprep.config import get_config
from examprep.errors import register_error_handlers
from examprep.extensions import db, socketio
from examprep.utils import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Application factory pattern
    Creates and configures Flask app
    """
    app = Flask(__name__)

    # Load configuration
    if config_name:
        from examprep.config import config
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    configure_logging(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config['SOCKETIO_CORS_ALLOWED_ORIGINS'],
        async_mode=app.config['SOCKETIO_ASYNC_MODE']
    )

    register_error_handlers(app)

    # Register blueprints
    from examprep.routes import auth_bp, student_bp, instructor_bp

    # Auth routes (no prefix)
    app.register_blueprint(auth_bp)

    # Test taking, results and student dashboards
    app.register_blueprint(student_bp, url_prefix='/api')

    # Instructor routes (prefixed with /instructor)
    app.register_blueprint(instructor_bp, url_prefix='/instructor')

    # Register Socket.IO events
    from examprep.sockets import register_socket_events
    with app.app_context():
        register_socket_events()

    # Create database tables
    with app.app_context():
        db.create_all()
        logger.info('Database tables created/verified')

    return app
