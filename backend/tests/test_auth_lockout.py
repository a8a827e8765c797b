from datetime import datetime, timedelta
from repair_tracker.constants.permissions import Role
from tests.test_utils_seed import ensure_account, login

T0 = datetime(2025, 6, 1, 8, 0, 0)
WRONG = 'wrong-password'


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def _fail(client, username, times):
    return [login(client, username, WRONG) for _ in range(times)]


def test_five_failures_lock_the_account(client, svc):
    svc.auth.clock = Clock(T0)
    acc = ensure_account('locky', Role.USER)
    first_four = _fail(client, 'locky', 4)
    assert all(r.status_code == 401 for r in first_four)
    assert all(r.get_json()['error'] == 'Invalid username or password' for r in first_four)
    assert acc.login_attempts == 4
    assert acc.locked_until is None

    fifth = login(client, 'locky', WRONG)
    assert fifth.status_code == 401
    assert fifth.get_json()['error'] == 'Too many failed login attempts. Account locked for 15 minutes.'
    assert acc.login_attempts == 5
    assert acc.locked_until == T0 + timedelta(minutes=15)


def test_attempt_while_locked_does_not_increment(client, svc):
    clock = Clock(T0)
    svc.auth.clock = clock
    acc = ensure_account('locky2', Role.USER)
    _fail(client, 'locky2', 5)

    clock.now = T0 + timedelta(minutes=1, seconds=30)
    # even the right password is refused while locked
    resp = login(client, 'locky2')
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Account is locked due to too many failed attempts. Try again in 14 minutes.'
    assert acc.login_attempts == 5
    assert acc.locked_until == T0 + timedelta(minutes=15)


def test_success_after_expiry_resets_counter(client, svc):
    clock = Clock(T0)
    svc.auth.clock = clock
    acc = ensure_account('locky3', Role.USER)
    _fail(client, 'locky3', 5)

    clock.now = T0 + timedelta(minutes=16)
    resp = login(client, 'locky3')
    assert resp.status_code == 200, resp.get_json()
    assert acc.login_attempts == 0
    assert acc.locked_until is None
    assert acc.last_login == clock.now


def test_failure_after_expiry_starts_a_new_count(client, svc):
    clock = Clock(T0)
    svc.auth.clock = clock
    acc = ensure_account('locky4', Role.USER)
    _fail(client, 'locky4', 5)

    clock.now = T0 + timedelta(minutes=15)
    resp = login(client, 'locky4', WRONG)
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid username or password'
    assert acc.login_attempts == 1
    assert acc.locked_until is None


def test_success_resets_partial_count(client, svc):
    svc.auth.clock = Clock(T0)
    acc = ensure_account('locky5', Role.USER)
    _fail(client, 'locky5', 3)
    assert acc.login_attempts == 3
    assert login(client, 'locky5').status_code == 200
    assert acc.login_attempts == 0
