"""
Flask Extensions
Centralized extension initialization
"""
from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO

# Initialize extensions (without app binding)
db = SQLAlchemy()
socketio = SocketIO()

# Live proctoring monitors keyed by Socket.IO sid
proctor_monitors = {}
