from datetime import timedelta
from flask_jwt_extended import create_access_token
from repair_tracker.constants.permissions import Role
from tests.test_utils_seed import ensure_account, auth_headers


def test_missing_token(client):
    resp = client.get('/api/repairs')
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'error': 'Authentication required'}


def test_malformed_token(client):
    resp = client.get('/api/auth/validate', headers={'Authorization': 'Bearer not.a.token'})
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'error': 'Invalid token'}


def test_bad_signature(client):
    token = auth_headers(ensure_account('admin2', Role.ADMIN))['Authorization'].split(' ', 1)[1]
    header, payload, _ = token.split('.')
    resp = client.get('/api/auth/validate', headers={'Authorization': f'Bearer {header}.{payload}.invalidsig'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid token'


def test_expired_token(client):
    token = create_access_token(identity='1', additional_claims={'username': 'x', 'role': 'ADMIN'},
                                expires_delta=timedelta(seconds=-30))
    resp = client.get('/api/repairs', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'error': 'Token expired'}


def test_unknown_role_claim_is_forbidden(client):
    token = create_access_token(identity='1', additional_claims={'username': 'x', 'role': 'GHOST'})
    resp = client.get('/api/repairs', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 403
    assert resp.get_json() == {'success': False, 'error': 'Insufficient permissions'}


def test_public_tracking_needs_no_token(client):
    resp = client.get('/api/repairs/RPR000000-000')
    assert resp.status_code == 404
    assert resp.get_json() == {'success': False, 'error': 'Repair not found'}
