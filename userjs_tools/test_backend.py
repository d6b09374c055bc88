import pytest

from userjs_tools.app import app


@pytest.fixture
def client():
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def test_health(client):
    """Test health check endpoint"""
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_strip(client):
    """Test comment stripping"""
    text = '/* header */\nuser_pref("a//b", 1); // trailing\n\n'
    response = client.post('/strip', json={'text': text})
    assert response.status_code == 200
    result = response.get_json()
    assert result['success'] is True
    assert result['text'] == 'user_pref("a//b", 1); \n'


def test_reconcile(client):
    """Test prefs.js reconciliation"""
    response = client.post('/reconcile', json={
        'overrides': 'user_pref("a",1);\n',
        'prefs': 'user_pref("a",1);\nuser_pref("a",2);\nuser_pref("b",3);\n',
    })
    assert response.status_code == 200
    result = response.get_json()
    assert result['kept'] == 'user_pref("b",3);\n'
    assert result['removed_count'] == 2
    assert result['removed'] == ['user_pref("a",1);\n', 'user_pref("a",2);\n']


def test_reconcile_empty_overrides(client):
    prefs = 'user_pref("a",1);\n'
    response = client.post('/reconcile', json={'overrides': None, 'prefs': prefs})
    assert response.status_code == 200
    assert response.get_json()['kept'] == prefs
    assert response.get_json()['removed_count'] == 0


def test_diff(client):
    """Test comment-insensitive diff"""
    response = client.post('/diff', json={
        'old': 'user_pref("a", 1); // old note\n',
        'new': 'user_pref("a",  1); // new note\nuser_pref("b", 2);\n',
    })
    result = response.get_json()
    assert response.status_code == 200
    assert result['identical'] is False
    assert '+user_pref("b", 2);' in result['diff']
    assert '-user_pref("a", 1);' not in result['diff']


def test_diff_identical(client):
    response = client.post('/diff', json={'old': 'a(); /* x */\n', 'new': '// y\na();\n'})
    assert response.get_json() == {'success': True, 'diff': '', 'identical': True}


def test_missing_field(client):
    response = client.post('/reconcile', json={'prefs': ''})
    assert response.status_code == 400
    assert response.get_json()['error'] == "'overrides' is required"


def test_wrong_type(client):
    response = client.post('/strip', json={'text': 42})
    assert response.status_code == 400


def test_body_not_json(client):
    response = client.post('/strip', data='text', content_type='text/plain')
    assert response.status_code == 400


def test_unknown_endpoint(client):
    response = client.get('/session/start')
    assert response.status_code == 404
    assert response.get_json() == {'error': 'Endpoint not found'}
