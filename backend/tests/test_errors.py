from repair_tracker.constants.permissions import Role
from repair_tracker.errors import (
    ValidationError, InvalidStatus, AuthenticationError, InsufficientPermission, RepairNotFound,
    DuplicateIdentifier, GenerationExhausted, DependencyFailure,
)
from tests.test_utils_seed import headers_for_role


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert body['success'] is False
    assert body['error']


def test_method_not_allowed_shape(client):
    resp = client.delete('/api/repairs/RPR000000-000')
    assert resp.status_code == 405
    assert resp.get_json()['success'] is False


def test_internal_error_shape(client, svc, monkeypatch):
    def boom():
        raise RuntimeError('database exploded: secret dsn')
    monkeypatch.setattr(svc.reports, 'status_counts', boom)
    resp = client.get('/api/repairs/status/counts', headers=headers_for_role(Role.ADMIN))
    assert resp.status_code == 500
    body = resp.get_json()
    assert body == {'success': False, 'error': 'Internal server error'}


def test_taxonomy_status_codes():
    assert ValidationError().status_code == 400
    assert InvalidStatus('x').status_code == 400
    assert AuthenticationError().status_code == 401
    assert InsufficientPermission().status_code == 403
    assert RepairNotFound().status_code == 404
    assert DuplicateIdentifier().status_code == 409
    assert GenerationExhausted().status_code == 503
    assert DependencyFailure().status_code == 502


def test_validation_payload_carries_field_errors():
    err = ValidationError([{'field': 'phone', 'message': 'Invalid phone number format'}])
    assert err.to_payload() == {
        'success': False,
        'error': 'Validation failed',
        'errors': [{'field': 'phone', 'message': 'Invalid phone number format'}],
    }
    assert RepairNotFound().to_payload() == {'success': False, 'error': 'Repair not found'}
