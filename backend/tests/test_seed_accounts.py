from repair_tracker.constants.permissions import Role
from repair_tracker.models.account import Account
from sqlalchemy import select
from scripts.seed_accounts import ensure_accounts, accounts_from_env, DEFAULT_ACCOUNTS


def _accounts(session):
    return {a.username: a for a in session.execute(select(Account)).scalars().all()}


def test_seed_creates_one_account_per_role(svc):
    session = svc.store.session()
    counts = ensure_accounts(session, accounts_from_env({}))
    session.commit()
    assert counts == {'created': 4, 'updated': 0, 'unchanged': 0}
    accounts = _accounts(session)
    assert {a.role for a in accounts.values()} == set(Role)
    assert accounts['admin'].verify_password(DEFAULT_ACCOUNTS['admin'][1])


def test_seed_is_idempotent_and_reset_is_opt_in(svc):
    session = svc.store.session()
    ensure_accounts(session, accounts_from_env({}))
    session.commit()
    again = ensure_accounts(session, accounts_from_env({'SEED_ADMIN_PASSWORD': 'N3w-Secret!'}))
    assert again == {'created': 0, 'updated': 0, 'unchanged': 4}
    assert _accounts(session)['admin'].verify_password(DEFAULT_ACCOUNTS['admin'][1])

    reset = ensure_accounts(session, accounts_from_env({'SEED_ADMIN_PASSWORD': 'N3w-Secret!'}), reset=True)
    session.commit()
    assert reset['updated'] == 4
    assert _accounts(session)['admin'].verify_password('N3w-Secret!')


def test_seeded_account_can_log_in(client, svc):
    session = svc.store.session()
    ensure_accounts(session, accounts_from_env({'SEED_TECH_PASSWORD': 'Bench#2025'}))
    session.commit()
    resp = client.post('/api/auth/login', json={'username': 'tech', 'password': 'Bench#2025'})
    assert resp.status_code == 200
    assert resp.get_json()['permissions']['defaultPage'] == 'repaircenter'
