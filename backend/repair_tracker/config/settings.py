import logging
import os
import re

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024

DEFAULTS = {
    'DATABASE_URL': 'sqlite:///dev.db',
    'JWT_SECRET_KEY': 'dev-secret',
    'JWT_EXPIRES_HOURS': 24,
    'LOGIN_MAX_ATTEMPTS': 5,
    'LOGIN_LOCKOUT_MINUTES': 15,
    'REPAIR_ID_MAX_ATTEMPTS': 10,
    'QR_CODE_BASE_URL': 'https://quickchart.io/qr',
    'QR_CODE_SIZE': 200,
    'PUBLIC_TRACKING_URL': 'https://fix.nixflow.xyz/track',
    'WEBHOOK_URL': None,
    'WEBHOOK_ENABLED': False,
    'WEBHOOK_TIMEOUT': 10,
    'UPLOAD_DIR': './uploads',
    'MAX_FILE_SIZE': DEFAULT_MAX_FILE_SIZE,
    'ALLOWED_FILE_TYPES': 'image/jpeg,image/png,image/jpg',
    'LOG_LEVEL': 'INFO',
    'LOG_FORMAT': 'text',
    'CREATE_SCHEMA': False,
    'ALLOWED_ORIGINS': '',
    'RATE_LIMIT_ENABLED': True,
    'RATE_LIMIT_WINDOW_MS': 15 * 60 * 1000,
    'RATE_LIMIT_MAX_REQUESTS': 100,
    'RATE_LIMIT_STORAGE_URI': 'memory://',
}

_INT_KEYS = ('JWT_EXPIRES_HOURS', 'LOGIN_MAX_ATTEMPTS', 'LOGIN_LOCKOUT_MINUTES', 'REPAIR_ID_MAX_ATTEMPTS',
             'QR_CODE_SIZE', 'WEBHOOK_TIMEOUT', 'MAX_FILE_SIZE', 'RATE_LIMIT_WINDOW_MS', 'RATE_LIMIT_MAX_REQUESTS')
_BOOL_KEYS = ('WEBHOOK_ENABLED', 'CREATE_SCHEMA', 'RATE_LIMIT_ENABLED')


def _as_int(key, raw):
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning('Invalid integer for %s=%r, using default %s', key, raw, DEFAULTS[key])
        return DEFAULTS[key]


def _as_bool(raw) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings(environ=None):
    """Defaults overlaid with environment values, coerced to their types."""
    environ = os.environ if environ is None else environ
    settings = {}
    for key, default in DEFAULTS.items():
        raw = environ.get(key)
        if raw is None or raw == '':
            settings[key] = default
        elif key in _INT_KEYS:
            settings[key] = _as_int(key, raw)
        elif key in _BOOL_KEYS:
            settings[key] = _as_bool(raw)
        else:
            settings[key] = raw
    return settings


def allowed_file_types(settings) -> set:
    raw = settings.get('ALLOWED_FILE_TYPES') or ''
    if isinstance(raw, (list, tuple, set)):
        return set(raw)
    return {t.strip() for t in raw.split(',') if t.strip()}


# Browser clients served from a local dev server are always allowed
LOCALHOST_ORIGIN = re.compile(r'^https?://localhost(:\d+)?$')


def allowed_origins(settings) -> list:
    raw = settings.get('ALLOWED_ORIGINS') or ''
    if isinstance(raw, (list, tuple, set)):
        origins = list(raw)
    else:
        origins = [o.strip() for o in raw.split(',') if o.strip()]
    return origins + [LOCALHOST_ORIGIN]
