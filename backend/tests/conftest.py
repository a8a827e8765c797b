import os, sys, pytest
# Ensure the backend directory is on path so 'repair_tracker' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from repair_tracker import create_app, EXTENSION_KEY
from repair_tracker.services.notifications import Notifier

TEST_SECRET = 'test-secret-key-0123456789abcdef0123456789'


class RecordingNotifier(Notifier):
    """Captures payloads instead of posting them."""

    def __init__(self):
        super().__init__('http://hooks.test/repairs', enabled=True, max_workers=1)
        self.payloads = []

    def dispatch(self, payload):
        self.payloads.append(payload)
        return None


@pytest.fixture()
def notifier():
    n = RecordingNotifier()
    yield n
    n.shutdown()


@pytest.fixture()
def app_instance(tmp_path, notifier):
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'CREATE_SCHEMA': True,
        'RATE_LIMIT_ENABLED': False,
        'JWT_SECRET_KEY': TEST_SECRET,
        'UPLOAD_DIR': str(tmp_path / 'uploads'),
    }, notifier=notifier)
    with app.app_context():
        yield app
    app.extensions[EXTENSION_KEY].store.dispose()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def svc(app_instance):
    return app_instance.extensions[EXTENSION_KEY]
