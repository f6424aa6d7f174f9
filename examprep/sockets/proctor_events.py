"""
Socket.IO Event Handlers
Proctoring events forwarded by the kiosk shell during an exam attempt
"""
import logging

from flask import current_app, request
from flask_socketio import emit

from examprep.extensions import socketio, proctor_monitors
from examprep.proctoring import (
    ViolationMonitor, navigation_redirect, resolve_app_mode, start_path, thread_timer
)

logger = logging.getLogger(__name__)

# Debounce scheduler for blur checks
schedule_violation_check = thread_timer


def build_monitor(sid, mode):
    """Fresh monitor for one attempt on one connection"""
    config = current_app.config

    def on_warning(count, maximum):
        socketio.emit('violation_warning', {'count': count, 'max': maximum}, to=sid)

    def on_terminate(count):
        socketio.emit('exam_terminated', {'count': count}, to=sid)

    return ViolationMonitor(
        max_violations=config['MAX_VIOLATIONS'],
        debounce_seconds=config['VIOLATION_DEBOUNCE_SECONDS'],
        grace_seconds=config['DIALOG_GRACE_SECONDS'],
        on_warning=on_warning,
        on_terminate=on_terminate,
        scheduler=schedule_violation_check,
        enabled=(mode == 'student'),
    )


def dispose_monitor(sid):
    monitor = proctor_monitors.pop(sid, None)
    if monitor:
        monitor.stop()
    return monitor


def _mode_from(data):
    """Server APP_MODE; a client-sent mode may only confirm it"""
    mode = resolve_app_mode(current_app.config['APP_MODE'])
    requested = (data or {}).get('mode')
    if requested and resolve_app_mode(requested) != mode:
        raise ValueError(f"Mode '{requested}' does not match APP_MODE '{mode}'")
    return mode


def register_socket_events():
    """Register all Socket.IO event handlers"""

    @socketio.on('proctor_start')
    def proctor_start(data=None):
        """Kiosk starts an attempt; the violation count starts at zero"""
        try:
            mode = _mode_from(data)
        except ValueError as e:
            emit('proctor_error', {'error': str(e)})
            return

        dispose_monitor(request.sid)
        monitor = build_monitor(request.sid, mode)
        proctor_monitors[request.sid] = monitor

        logger.info("Proctoring %s for %s (%s mode)",
                    'enabled' if monitor.enabled else 'disabled', request.sid, mode)
        emit('proctor_ready', {
            'mode': mode,
            'monitoring': monitor.enabled,
            'maxViolations': monitor.max_violations,
            'startPath': start_path(mode),
        })

    @socketio.on('window_minimize')
    def window_minimize(data=None):
        monitor = proctor_monitors.get(request.sid)
        if monitor:
            monitor.minimize()

    @socketio.on('window_blur')
    def window_blur(data=None):
        monitor = proctor_monitors.get(request.sid)
        if monitor:
            monitor.blur()

    @socketio.on('window_focus')
    def window_focus(data=None):
        monitor = proctor_monitors.get(request.sid)
        if monitor:
            monitor.focus()

    @socketio.on('app_dialog')
    def app_dialog(data=None):
        """The app is about to show a native dialog"""
        monitor = proctor_monitors.get(request.sid)
        if monitor:
            monitor.app_dialog()

    @socketio.on('proctor_navigate')
    def proctor_navigate(data):
        """Ask whether the kiosk may open a URL"""
        data = data or {}
        try:
            mode = _mode_from(data)
        except ValueError as e:
            return {'error': str(e)}
        redirect_to = navigation_redirect(data.get('url', ''), mode)
        return {'allowed': redirect_to is None, 'redirect': redirect_to}

    @socketio.on('proctor_stop')
    def proctor_stop(data=None):
        """Attempt finished normally"""
        dispose_monitor(request.sid)

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        """Handle kiosk disconnect"""
        if dispose_monitor(request.sid):
            logger.info("Proctoring stopped for disconnected %s", request.sid)
