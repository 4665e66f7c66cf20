import os, pytest

# configure before the package reads its settings
os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
os.environ['JWT_SECRET'] = 'test-secret'
os.environ['RATELIMIT_ENABLED'] = 'false'
os.environ['EMAIL_PROVIDER'] = 'smtp'
os.environ.pop('SMTP_HOST', None)
os.environ.pop('RESEND_API_KEY', None)
os.environ.pop('EMAIL_REDIRECT_TO', None)

from fastapi.testclient import TestClient
from cityreport.db.base import Base
from cityreport.db.session import engine, SessionLocal
import cityreport.models.issue_update  # noqa: F401
import cityreport.models.notification  # noqa: F401
from cityreport.main import app
from tests.factories import make_admin, auth_headers


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin(db):
    return make_admin(db)


@pytest.fixture()
def headers(admin):
    return auth_headers(admin)
