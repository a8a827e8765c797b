"""Credential check, lockout policy and session token issuance.

Per-account states are ``active`` and ``locked``. Lockout expiry is
evaluated lazily on the next login attempt; no background timer runs.
Logout is a client-side token discard, so nothing is revoked here.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from flask_jwt_extended import create_access_token
from sqlalchemy import select
from repair_tracker.constants.permissions import RolePermissions, ROLE_PERMISSIONS
from repair_tracker.errors import AuthenticationError
from repair_tracker.models.account import Account
from repair_tracker.models.base import utcnow
from repair_tracker.store import Store

logger = logging.getLogger(__name__)

MSG_INVALID = 'Invalid username or password'
MSG_DISABLED = 'Account is disabled'
MSG_LOCKED = 'Account is locked due to too many failed attempts. Try again in {minutes} minutes.'
MSG_JUST_LOCKED = 'Too many failed login attempts. Account locked for {minutes} minutes.'


@dataclass
class LoginResult:
    token: str
    account: Account
    permissions: RolePermissions


class AuthGuard:
    def __init__(self, store: Store, max_attempts: int = 5, lockout_minutes: int = 15,
                 token_ttl: Optional[timedelta] = None, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.max_attempts = max_attempts
        self.lockout = timedelta(minutes=lockout_minutes)
        self.token_ttl = token_ttl
        self.clock = clock

    def login(self, username: str, password: str) -> LoginResult:
        session = self.store.session()
        account = session.execute(select(Account).where(Account.username == username)).scalar_one_or_none()
        if account is None:
            logger.info('Login failed for unknown user %r', username)
            raise AuthenticationError(MSG_INVALID)
        if not account.is_active:
            logger.info('Login refused for disabled account %r', username)
            raise AuthenticationError(MSG_DISABLED)

        now = self.clock()
        if account.is_locked(now):
            remaining = math.ceil((account.locked_until - now).total_seconds() / 60)
            logger.info('Login refused for locked account %r (%d min left)', username, remaining)
            raise AuthenticationError(MSG_LOCKED.format(minutes=remaining))
        if account.locked_until is not None:
            # lockout elapsed
            account.locked_until = None
            account.login_attempts = 0
            session.commit()

        if not account.verify_password(password):
            raise self._record_failure(account, now)
        account.login_attempts = 0
        account.locked_until = None
        account.last_login = now
        session.commit()

        perms = ROLE_PERMISSIONS[account.role]
        token = self.issue_token(account)
        logger.info('Login ok for %r (%s)', username, account.role.name)
        return LoginResult(token=token, account=account, permissions=perms)

    def _record_failure(self, account: Account, now: datetime) -> AuthenticationError:
        session = self.store.session()
        attempts = (account.login_attempts or 0) + 1
        account.login_attempts = attempts
        if attempts >= self.max_attempts:
            account.locked_until = now + self.lockout
            session.commit()
            logger.warning('Account %r locked after %d failed attempts', account.username, attempts)
            return AuthenticationError(MSG_JUST_LOCKED.format(minutes=int(self.lockout.total_seconds() // 60)))
        session.commit()
        logger.info('Login failed for %r (%d/%d)', account.username, attempts, self.max_attempts)
        return AuthenticationError(MSG_INVALID)

    def issue_token(self, account: Account) -> str:
        # JWT identity must be a string (flask-jwt-extended v4 requirement)
        claims = {'username': account.username, 'role': account.role.name}
        kwargs = {}
        if self.token_ttl is not None:
            kwargs['expires_delta'] = self.token_ttl
        return create_access_token(identity=str(account.id), additional_claims=claims, **kwargs)
