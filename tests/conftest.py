import os
import shutil
import tempfile

import pytest

from newsletter_api import create_app
from newsletter_api.core.database import SubscriberStore

ADMIN_KEY = "test-admin-key"


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="newsletter-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    """Flask app on throwaway databases with the admin listing enabled."""
    app = create_app({
        "TESTING": True,
        "DB_DIR": tmp_db_dir,
        "NEWSLETTER_DB": os.path.join(tmp_db_dir, "newsletter.db"),
        "LOG_DB": os.path.join(tmp_db_dir, "app_logs.db"),
        "ADMIN_API_KEY": ADMIN_KEY,
        "RATE_LIMIT_MAX": 10,
        "RATE_LIMIT_WINDOW_SECONDS": 15 * 60,
    })
    yield app
    app.extensions["newsletter_api"]["store"].close()


@pytest.fixture
def store(app):
    return app.extensions["newsletter_api"]["store"]


@pytest.fixture
def admin_headers():
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def standalone_store(tmp_db_dir):
    """Standalone store, no Flask app involved."""
    with SubscriberStore(os.path.join(tmp_db_dir, "standalone.db")) as s:
        yield s
