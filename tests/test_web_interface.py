"""
Tests for the Flask web interface.
"""

import pytest
from web_interface.app import app, socketio, workspace


PERSON_SOURCE = 'class Person {\n  int age = 30;\n  void greet() {\n  }\n}'


@pytest.fixture
def client():
    app.config['TESTING'] = True
    workspace.clear()
    workspace.notifier.cancel()
    with app.test_client() as client:
        yield client
    workspace.notifier.cancel()


class TestWorkspaceEndpoints:
    """Test cases for the workspace REST endpoints."""

    def test_get_state(self, client):
        """Test the state endpoint."""
        response = client.get('/api/workspace/state')
        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['data']['model']['block_count'] == 0

    def test_load_code(self, client):
        """Test posting code rebuilds the workspace."""
        response = client.post('/api/workspace/code', json={'code': PERSON_SOURCE})
        assert response.status_code == 200
        data = response.get_json()
        assert data['rebuilt'] is True
        assert data['data']['model']['block_count'] == 4
        assert 'Person' in data['xml']

    def test_same_code_is_not_rebuilt(self, client):
        """Test posting identical code reports no rebuild."""
        client.post('/api/workspace/code', json={'code': PERSON_SOURCE})
        response = client.post('/api/workspace/code', json={'code': PERSON_SOURCE})
        assert response.get_json()['rebuilt'] is False

    def test_load_code_from_reply_text(self, client):
        """Test code is extracted from a fenced reply."""
        text = f"Here is the class:\n```dart\n{PERSON_SOURCE}\n```"
        response = client.post('/api/workspace/code', json={'text': text})
        assert response.status_code == 200
        assert response.get_json()['data']['model']['top_block_count'] == 1

    def test_reply_without_code(self, client):
        """Test a reply with no code is rejected."""
        response = client.post('/api/workspace/code', json={'text': 'Sure! I can help.'})
        assert response.status_code == 422
        assert response.get_json()['success'] is False

    def test_missing_code(self, client):
        """Test a request without code is rejected."""
        response = client.post('/api/workspace/code', json={})
        assert response.status_code == 400

    def test_get_xml(self, client):
        """Test the XML endpoint."""
        client.post('/api/workspace/code', json={'code': PERSON_SOURCE})
        response = client.get('/api/workspace/xml')
        assert response.get_json()['xml'] == workspace.export_xml()

    def test_export_download(self, client):
        """Test the export endpoint returns an XML attachment."""
        client.post('/api/workspace/code', json={'code': PERSON_SOURCE})
        response = client.get('/api/workspace/export')
        assert response.status_code == 200
        assert response.mimetype == 'application/xml'
        assert 'attachment; filename=dart_blocks.xml' in response.headers['Content-Disposition']
        assert response.data.startswith(b'<xml')

    def test_load_xml(self, client):
        """Test replacing the workspace from XML."""
        xml_text = '<xml><block type="dart_class" id="c1"><field name="CLASS_NAME">Loaded</field></block></xml>'
        response = client.post('/api/workspace/load', json={'xml': xml_text})
        assert response.status_code == 200
        assert response.get_json()['top_blocks'] == ['c1']

    def test_load_malformed_xml(self, client):
        """Test malformed XML is reported as a client error."""
        response = client.post('/api/workspace/load', json={'xml': '<xml><block'})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_clear(self, client):
        """Test clearing the workspace."""
        client.post('/api/workspace/code', json={'code': PERSON_SOURCE})
        response = client.post('/api/workspace/clear')
        assert response.get_json()['data']['model']['block_count'] == 0
        assert response.get_json()['data']['has_code'] is False

    def test_toolbox(self, client):
        """Test the toolbox endpoint."""
        response = client.get('/api/blocks/toolbox')
        data = response.get_json()
        assert data['toolbox']['kind'] == 'categoryToolbox'
        assert data['blocks']['dart_class']['type'] == 'dart_class'


class TestSocketEvents:
    """Test cases for pushed workspace changes."""

    def test_blocks_changed_is_emitted(self, client):
        """Test a settled rebuild is pushed to connected clients."""
        socket_client = socketio.test_client(app)
        socket_client.get_received()

        client.post('/api/workspace/code', json={'code': PERSON_SOURCE})
        workspace.notifier.flush()

        events = [e for e in socket_client.get_received() if e['name'] == 'blocks_changed']
        assert len(events) == 1
        assert events[0]['args'][0]['xml'] == workspace.export_xml()
        socket_client.disconnect()
