"""
Flask web interface for the Block Editor Core.

Hosts a single block workspace: generated code is posted in, the workspace is
rebuilt, and every settled change is pushed to connected clients over
Socket.IO as ``blocks_changed``.
"""

import logging
import os
from typing import Any, Dict

from dotenv import load_dotenv
from flask import Flask, request, jsonify, Response
from flask_cors import CORS
from flask_socketio import SocketIO

from block_editor_core.config import ServerConfig, WorkspaceConfig
from block_editor_core.code_extraction import extract_dart_code
from block_editor_core.exceptions import BlockEditorError
from block_editor_core.workspace import Workspace


logger = logging.getLogger('blockeditor.web')

# BLOCKEDITOR_* settings may come from a .env file at the project root
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

server_config = ServerConfig.from_env()

app = Flask(__name__)
app.config['SECRET_KEY'] = server_config.secret_key
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode='threading')


def _emit_blocks_changed(xml_text: str):
    socketio.emit('blocks_changed', {'xml': xml_text})


# Global instances
workspace = Workspace(WorkspaceConfig.from_env(), on_blocks_change=_emit_blocks_changed)


def _summary() -> Dict[str, Any]:
    return workspace.get_workspace_state()


def _error(message: str, status: int, details: Dict[str, Any] = None):
    body = {'success': False, 'error': message}
    if details:
        body['details'] = details
    return jsonify(body), status


@app.route('/api/workspace/state', methods=['GET'])
def get_workspace_state():
    """Get the current workspace state."""
    return jsonify({'success': True, 'data': _summary()})


@app.route('/api/workspace/code', methods=['POST'])
def load_code():
    """Rebuild the workspace from posted code or from a model reply."""
    payload = request.get_json(silent=True) or {}
    code = payload.get('code')
    if code is None and payload.get('text') is not None:
        code = extract_dart_code(payload['text'])
        if code is None:
            return _error('No code found in text', 422)
    if not isinstance(code, str) or not code.strip():
        return _error('Field "code" must be a non-empty string', 400)

    try:
        rebuilt = workspace.load_code(code)
    except BlockEditorError as e:
        logger.exception("Error converting code to blocks")
        return _error(str(e), 500, e.details)

    return jsonify({
        'success': True,
        'rebuilt': rebuilt,
        'data': _summary(),
        'xml': workspace.export_xml()
    })


@app.route('/api/workspace/xml', methods=['GET'])
def get_workspace_xml():
    """Get the serialized workspace."""
    return jsonify({'success': True, 'xml': workspace.export_xml()})


@app.route('/api/workspace/export', methods=['GET'])
def export_workspace():
    """Download the serialized workspace as an XML document."""
    filename, payload = workspace.export_document()
    return Response(
        payload,
        mimetype='application/xml',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@app.route('/api/workspace/load', methods=['POST'])
def load_workspace_xml():
    """Replace the workspace with the blocks of an XML document."""
    payload = request.get_json(silent=True) or {}
    xml_text = payload.get('xml')
    if not isinstance(xml_text, str) or not xml_text.strip():
        return _error('Field "xml" must be a non-empty string', 400)

    try:
        top_blocks = workspace.load_xml(xml_text)
    except BlockEditorError as e:
        return _error(str(e), 400, e.details)

    return jsonify({
        'success': True,
        'top_blocks': [block.id for block in top_blocks],
        'data': _summary()
    })


@app.route('/api/workspace/clear', methods=['POST'])
def clear_workspace():
    """Remove every block from the workspace."""
    workspace.clear()
    return jsonify({'success': True, 'data': _summary()})


@app.route('/api/blocks/toolbox', methods=['GET'])
def get_toolbox():
    """Get the toolbox and the block definitions."""
    return jsonify({
        'success': True,
        'toolbox': workspace.registry.get_toolbox(),
        'blocks': workspace.registry.to_dict()
    })


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting Block Editor web interface on %s:%s", server_config.host, server_config.port)
    socketio.run(app, host=server_config.host, port=server_config.port,
                 debug=server_config.debug, allow_unsafe_werkzeug=True)
