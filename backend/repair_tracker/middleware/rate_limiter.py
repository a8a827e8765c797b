"""
Per-client rate limiting for the /api blueprints (Flask-Limiter).

One limit is shared by every API route: RATE_LIMIT_MAX_REQUESTS per
RATE_LIMIT_WINDOW_MS, keyed by remote address. /health and /uploads are
not limited. RATE_LIMIT_ENABLED=false turns the limiter off.
"""
import logging

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = 'Too many requests from this IP, please try again later.'
API_SCOPE = 'api'


def rate_limit_value(settings) -> str:
    seconds = max(1, int(settings['RATE_LIMIT_WINDOW_MS']) // 1000)
    return f"{int(settings['RATE_LIMIT_MAX_REQUESTS'])} per {seconds} second"


def init_rate_limits(app, blueprints) -> Limiter:
    """Create the app's limiter and apply the shared API limit to ``blueprints``."""
    cfg = app.config
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[],
        storage_uri=cfg['RATE_LIMIT_STORAGE_URI'],
        enabled=bool(cfg['RATE_LIMIT_ENABLED']),
    )
    limiter.init_app(app)
    api_limit = limiter.shared_limit(rate_limit_value(cfg), scope=API_SCOPE, error_message=RATE_LIMIT_MESSAGE)
    for bp in blueprints:
        api_limit(bp)

    if cfg['RATE_LIMIT_ENABLED']:
        logger.info('Rate limiter configured: %s on %s', rate_limit_value(cfg), ', '.join(bp.name for bp in blueprints))
    else:
        logger.info('Rate limiter disabled')
    return limiter
