#!/usr/bin/env python
"""Idempotent seed script for the staff accounts (one per role).

Usage:
    python backend/scripts/seed_accounts.py                    # create missing accounts
    python backend/scripts/seed_accounts.py --reset-passwords  # also reset existing passwords
    python backend/scripts/seed_accounts.py --dry-run          # run logic then rollback (no DB changes)
    python backend/scripts/seed_accounts.py --show             # print accounts after seeding

Passwords come from SEED_<ROLE>_PASSWORD env vars (e.g. SEED_ADMIN_PASSWORD),
falling back to the documented defaults. Change them in production.
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from typing import Dict, Tuple
from sqlalchemy import select

# Allow running from repo root or from backend/
sys.path.append(os.path.abspath('backend'))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from repair_tracker.constants.permissions import Role  # noqa: E402
from repair_tracker.models.account import Account  # noqa: E402

DEFAULT_ACCOUNTS: Dict[str, Tuple[Role, str]] = {
    'admin': (Role.ADMIN, 'Admin@123'),
    'tech': (Role.TECH, 'Tech@123'),
    'user': (Role.USER, 'User@123'),
    'viewer': (Role.VIEWER, 'View@123'),
}


def accounts_from_env(environ=None) -> Dict[str, Tuple[Role, str]]:
    environ = os.environ if environ is None else environ
    out = {}
    for username, (role, default_password) in DEFAULT_ACCOUNTS.items():
        out[username] = (role, environ.get(f'SEED_{role.name}_PASSWORD') or default_password)
    return out


def ensure_accounts(session, accounts: Dict[str, Tuple[Role, str]], reset: bool = False) -> Dict[str, int]:
    """Create missing accounts; with ``reset`` also rewrite password and role of existing ones.

    Returns counts: {'created', 'updated', 'unchanged'}. Does not commit.
    """
    existing = {a.username: a for a in session.execute(select(Account)).scalars().all()}
    counts = {'created': 0, 'updated': 0, 'unchanged': 0}
    for username, (role, password) in accounts.items():
        account = existing.get(username)
        if account is None:
            account = Account(username=username, role=role, is_active=True, login_attempts=0)
            account.set_password(password)
            session.add(account)
            counts['created'] += 1
        elif reset:
            account.set_password(password)
            account.role = role
            account.login_attempts = 0
            account.locked_until = None
            counts['updated'] += 1
        else:
            counts['unchanged'] += 1
    session.flush()
    return counts


def print_accounts(session):
    rows = session.execute(select(Account).order_by(Account.id)).scalars().all()
    if not rows:
        print("[INFO] No accounts present.")
        return
    name_w = max(len(a.username) for a in rows)
    print(f"{'Username'.ljust(name_w)} | Role    | Active | Last login")
    print('-' * (name_w + 40))
    for a in rows:
        print(f"{a.username.ljust(name_w)} | {a.role.name.ljust(7)} | {str(a.is_active).ljust(6)} | {a.last_login or '-'}")


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed staff accounts (admin, tech, user, viewer)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_accounts.py\n  dry run: seed_accounts.py --dry-run\n  reset passwords: seed_accounts.py --reset-passwords\n""")
    )
    p.add_argument('--reset-passwords', action='store_true', help='Reset password, role and lockout of existing accounts')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--show', action='store_true', help='Print accounts after seeding')
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    from repair_tracker import create_app, get_services
    app = create_app({'CREATE_SCHEMA': True})
    with app.app_context():
        session = get_services().store.session()
        try:
            counts = ensure_accounts(session, accounts_from_env(), reset=args.reset_passwords)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Accounts would create: {counts['created']}, update: {counts['updated']}")
            else:
                session.commit()
                print(f"[DONE] Accounts created: {counts['created']}, updated: {counts['updated']}, unchanged: {counts['unchanged']}")
            if args.show:
                print('\nAccounts:')
                print_accounts(session)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
