from dataclasses import dataclass
from datetime import timedelta
from flask import Flask, current_app, send_from_directory
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import os

from repair_tracker.config.settings import load_settings, allowed_origins
from repair_tracker.errors import register_error_handlers
from repair_tracker.logging_config import configure_logging
from repair_tracker.middleware.rate_limiter import init_rate_limits
from repair_tracker.middleware.timing import init_request_logging
from repair_tracker.store import Store
from repair_tracker.services.auth import AuthGuard
from repair_tracker.services.lifecycle import RepairLifecycleManager
from repair_tracker.services.media import ImageProcessor, CodeLinks
from repair_tracker.services.notifications import Notifier
from repair_tracker.services.repair_ids import RepairIdGenerator
from repair_tracker.services.reports import ReportEngine

load_dotenv()

jwt = JWTManager()

EXTENSION_KEY = 'repair_tracker'


@dataclass
class Services:
    store: Store
    lifecycle: RepairLifecycleManager
    reports: ReportEngine
    auth: AuthGuard
    notifier: Notifier
    images: ImageProcessor
    links: CodeLinks


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]


def _unauthenticated(message: str):
    return {'success': False, 'error': message}, 401


@jwt.expired_token_loader
def _expired(jwt_header, jwt_payload):
    return _unauthenticated('Token expired')


@jwt.invalid_token_loader
def _invalid(reason):
    return _unauthenticated('Invalid token')


@jwt.unauthorized_loader
def _missing(reason):
    return _unauthenticated('Authentication required')


def build_services(app: Flask, notifier: Optional[Notifier] = None) -> Services:
    cfg = app.config
    store = Store(cfg['DATABASE_URL'])
    if cfg.get('CREATE_SCHEMA'):
        store.create_all()
    images = ImageProcessor(cfg['UPLOAD_DIR'])
    links = CodeLinks(cfg['QR_CODE_BASE_URL'], cfg['PUBLIC_TRACKING_URL'], cfg['QR_CODE_SIZE'])
    if notifier is None:
        notifier = Notifier(cfg.get('WEBHOOK_URL'), enabled=cfg['WEBHOOK_ENABLED'], timeout=cfg['WEBHOOK_TIMEOUT'])
    lifecycle = RepairLifecycleManager(
        store,
        RepairIdGenerator(max_attempts=cfg['REPAIR_ID_MAX_ATTEMPTS']),
        images,
        links,
        notifier,
    )
    auth = AuthGuard(
        store,
        max_attempts=cfg['LOGIN_MAX_ATTEMPTS'],
        lockout_minutes=cfg['LOGIN_LOCKOUT_MINUTES'],
    )
    return Services(store=store, lifecycle=lifecycle, reports=ReportEngine(store), auth=auth,
                    notifier=notifier, images=images, links=links)


def create_app(config: Optional[Dict[str, Any]] = None, notifier: Optional[Notifier] = None):
    app = Flask(__name__)

    app.config.update(load_settings())
    if config:
        # allow tests or callers to override default config values
        app.config.update(config)
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(hours=int(app.config['JWT_EXPIRES_HOURS']))
    # base64 image payloads in JSON bodies grow by a third
    app.config['MAX_CONTENT_LENGTH'] = int(app.config['MAX_FILE_SIZE']) * 4 // 3 + 1024 * 1024
    app.config['UPLOAD_DIR'] = os.path.abspath(app.config['UPLOAD_DIR'])
    app.json.ensure_ascii = False

    configure_logging(app)

    app.extensions[EXTENSION_KEY] = build_services(app, notifier)
    jwt.init_app(app)
    register_error_handlers(app)
    init_request_logging(app)
    CORS(app, origins=allowed_origins(app.config), supports_credentials=True)

    @app.teardown_appcontext
    def remove_session(exc=None):
        app.extensions[EXTENSION_KEY].store.remove()

    from .routes.auth import auth_bp
    from .routes.repairs import repairs_bp
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(repairs_bp, url_prefix='/api/repairs')
    init_rate_limits(app, [auth_bp, repairs_bp])

    @app.route('/health')
    def health():
        return {'success': True, 'status': 'ok'}

    @app.route('/uploads/<path:filename>')
    def uploads(filename):
        return send_from_directory(app.config['UPLOAD_DIR'], filename)

    app.logger.info('Repair tracker started (db=%s, webhook=%s)',
                    app.config['DATABASE_URL'].split('://', 1)[0], app.extensions[EXTENSION_KEY].notifier.active)
    return app
