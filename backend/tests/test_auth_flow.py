from repair_tracker.constants.permissions import Role
from tests.test_utils_seed import ensure_account, login, auth_headers


def test_login_and_validate(client):
    ensure_account('frontdesk', Role.USER)
    resp = login(client, 'frontdesk')
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['success'] is True
    assert body['session']['username'] == 'frontdesk'
    assert body['session']['role'] == 'USER'
    assert body['permissions']['canAddRepair'] is True
    assert body['permissions']['defaultPage'] == 'form'
    token = body['session']['token']

    me = client.get('/api/auth/validate', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    session = me.get_json()['session']
    assert session['username'] == 'frontdesk'
    assert session['role'] == 'USER'
    assert session['permissions']['canEditRepair'] is False


def test_login_records_last_login(client, svc):
    acc = ensure_account('tech1', Role.TECH)
    assert acc.last_login is None
    assert login(client, 'tech1').status_code == 200
    assert acc.last_login is not None
    assert acc.login_attempts == 0


def test_unknown_user_and_wrong_password_share_message(client):
    ensure_account('admin1', Role.ADMIN)
    unknown = login(client, 'nobody', 'whatever1')
    wrong = login(client, 'admin1', 'not-the-password')
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_json() == {'success': False, 'error': 'Invalid username or password'}
    assert wrong.get_json()['error'] == 'Invalid username or password'


def test_disabled_account_rejected(client):
    ensure_account('gone1', Role.USER, is_active=False)
    resp = login(client, 'gone1')
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Account is disabled'


def test_login_validation_errors(client):
    resp = client.post('/api/auth/login', json={'username': 'ab', 'password': '123'})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['success'] is False
    assert {e['field'] for e in body['errors']} == {'username', 'password'}


def test_logout_and_check_access(client):
    headers = auth_headers(ensure_account('viewer1', Role.VIEWER))
    out = client.post('/api/auth/logout', headers=headers)
    assert out.status_code == 200
    assert out.get_json() == {'success': True, 'message': 'Logged out successfully'}

    ok = client.get('/api/auth/check-access?page=reports', headers=headers).get_json()
    assert ok == {'success': True, 'hasAccess': True, 'defaultPage': 'reports'}
    denied = client.get('/api/auth/check-access?page=repaircenter', headers=headers).get_json()
    assert denied['hasAccess'] is False
    unknown = client.get('/api/auth/check-access?page=settings', headers=headers).get_json()
    assert unknown['hasAccess'] is False


def test_health(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json() == {'success': True, 'status': 'ok'}
