import pytest
from sqlmodel import Session

from crm_import.server.database import create_db_engine, init_db
from crm_import.server.models import INACTIVE_STATUS, User, UserRole


@pytest.fixture()
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def users(db_session):
    """An admin, two salespeople named Maria, and an inactive salesperson."""

    people = {
        "admin": User(id="admin-1", name="Admin Geral", email="admin@crm.test", role=UserRole.ADMIN, api_token="admin-token"),
        "carlos": User(id="sales-1", name="Carlos Souza", email="carlos@crm.test", api_token="carlos-token"),
        "maria_o": User(id="sales-2", name="Maria Oliveira", email="maria.o@crm.test"),
        "maria_s": User(id="sales-3", name="Maria Santos", email="maria.s@crm.test"),
        "inactive": User(id="sales-4", name="Pedro Lima", email="pedro@crm.test", status=INACTIVE_STATUS),
    }
    for user in people.values():
        db_session.add(user)
    db_session.commit()
    return people
