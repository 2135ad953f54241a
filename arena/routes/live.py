import json
import logging
import queue

from flask import Blueprint, Response, current_app, jsonify, request

from ..auth import admin_denied
from ..screens import ADMIN_SCREENS, PUBLIC_SCREENS

logger = logging.getLogger(__name__)

bp = Blueprint('live', __name__)


@bp.route('/api/v1/live/<screen>')
def live_screen(screen: str):
    """SSE stream of a screen's render state, one event per change."""
    if screen in ADMIN_SCREENS:
        denied = admin_denied()
        if denied is not None:
            return denied
    elif screen not in PUBLIC_SCREENS:
        return jsonify({'error': f'Unknown screen: {screen}'}), 404

    params = {}
    tournament_id = request.args.get('tournament_id')
    if screen == 'tournament':
        if not tournament_id:
            return jsonify({'error': 'tournament_id is required'}), 400
        params['tournament_id'] = tournament_id
    elif screen == 'matches' and tournament_id:
        params['tournament_id'] = tournament_id

    app = current_app._get_current_object()
    keepalive = app.config['SSE_KEEPALIVE']
    updates = queue.Queue()
    binding = app.screens.build(screen, on_render=updates.put, **params)

    def generate():
        try:
            binding.mount()
            yield f"data: {json.dumps({'type': 'connected', 'screen': screen})}\n\n"
            while True:
                try:
                    snapshot = updates.get(timeout=keepalive)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {json.dumps(snapshot)}\n\n"
        finally:
            # Client went away
            binding.close()
            logger.debug("Live stream for %s closed", binding.name)

    return Response(generate(), mimetype='text/event-stream', headers={
        'Cache-Control': 'no-cache',
        'X-Accel-Buffering': 'no'
    })
