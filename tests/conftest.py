"""Shared test fixtures for the MedLead test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: two doctors with pages, pipelines, a referral link and leads
- login: helper that signs the test client in as a doctor
"""

import pytest
from werkzeug.security import generate_password_hash

from medlead import create_app
from medlead.extensions import db as _db
from medlead.models.indication import Indication
from medlead.models.lead import Lead
from medlead.models.page import Block, Page
from medlead.models.pipeline import Pipeline
from medlead.models.user import User

PASSWORD = "password123"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after.

    Requests made through the test client reuse this app context, so
    tests and views share one session.
    """
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


def _doctor(email, slug, full_name, phone=None):
    user = User(
        email=email,
        password_hash=generate_password_hash(PASSWORD),
        full_name=full_name,
        slug=slug,
        phone=phone,
    )
    _db.session.add(user)
    _db.session.flush()
    return user


@pytest.fixture
def seed_data(app, db_session):
    """Seed two doctors.

    Dr. Silva has a page with a FORM and a BUTTON block, a pipeline, a
    referral link and two leads (one assigned to the pipeline). Dr. Costa
    has one pipeline and one lead of their own, and no page.

    Returns a dict with all created objects for easy access in tests.
    """
    # --- Dr. Silva ---
    silva = _doctor("silva@clinica.com", "dr-silva", "Dra. Ana Silva", phone="+55 (11) 98888-7777")

    pipeline = Pipeline(user_id=silva.id, name="Consultas", description="")
    _db.session.add(pipeline)
    _db.session.flush()

    page = Page(user_id=silva.id, title="Dra. Ana Silva", subtitle="Dermatologia")
    page.blocks = [
        Block(type="FORM", content={"title": "Agende sua consulta"}, order=0),
        Block(type="BUTTON", content={"label": "Instagram", "url": "https://instagram.com/drasilva"}, order=1),
    ]
    _db.session.add(page)

    indication = Indication(user_id=silva.id, name="Instagram", slug="insta")
    _db.session.add(indication)

    lead_new = Lead(user_id=silva.id, name="Maria", phone="11911111111",
                    status="Novo", pipeline_id=pipeline.id)
    lead_scheduled = Lead(user_id=silva.id, name="João", phone="11922222222",
                          status="Agendado")
    _db.session.add_all([lead_new, lead_scheduled])

    # --- Dr. Costa ---
    costa = _doctor("costa@clinica.com", "dr-costa", "Dr. Pedro Costa")
    costa_pipeline = Pipeline(user_id=costa.id, name="Retornos", description="")
    _db.session.add(costa_pipeline)
    _db.session.flush()
    costa_lead = Lead(user_id=costa.id, name="Carla", phone="21933333333",
                      status="Novo", pipeline_id=costa_pipeline.id)
    _db.session.add(costa_lead)

    _db.session.commit()

    # Plain IDs stay valid after views roll the session back.
    return {
        "silva": silva,
        "silva_id": silva.id,
        "silva_email": silva.email,
        "page_id": page.id,
        "pipeline_id": pipeline.id,
        "indication_id": indication.id,
        "lead_new_id": lead_new.id,
        "lead_scheduled_id": lead_scheduled.id,
        "costa": costa,
        "costa_id": costa.id,
        "costa_email": costa.email,
        "costa_pipeline_id": costa_pipeline.id,
        "costa_lead_id": costa_lead.id,
    }


@pytest.fixture
def login(client):
    """Return a helper that logs the test client in as `email`."""

    def _login(email, password=PASSWORD):
        response = client.post(
            "/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.get_json()
        return response

    return _login
