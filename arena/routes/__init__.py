from typing import Type, TypeVar

from flask import current_app, jsonify, request
from pydantic import BaseModel

from ..services import ActionResult

M = TypeVar('M', bound=BaseModel)


def parse_body(model: Type[M]) -> M:
    """Validate the JSON body; a ValidationError becomes a 400 in the app's handler."""
    return model.model_validate(request.get_json(silent=True) or {})


def action_response(result: ActionResult, key: str, created: bool = False):
    if not result.success:
        return jsonify({'error': result.message}), 400
    body = {'message': result.message, key: result.data}
    if result.warning:
        body['warning'] = result.warning
    return jsonify(body), 201 if created else 200


def screen_response(screen: str, key: str, **params):
    """One-shot render of a live screen as JSON."""
    snapshot = current_app.screens.snapshot(screen, **params)
    if snapshot['error']:
        return jsonify({'error': 'Failed to load data, please reload', 'detail': snapshot['error']}), 503
    return jsonify({key: snapshot['data']})
