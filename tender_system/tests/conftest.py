import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient

# FORCE model registration
import tender_system.models  # noqa

from tender_system.db.base import Base
from tender_system.db.session import build_engine, build_session_factory, get_db
from tender_system.models.bid import Bid
from tender_system.models.employee import Employee
from tender_system.models.enums import AuthorType, OrganizationType, ServiceType, TenderStatus
from tender_system.models.organization import Organization, OrganizationResponsible
from tender_system.models.tender import Tender

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")


@pytest.fixture(scope="function")
def engine():
    eng = build_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    from tender_system.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


class Seeder:
    """
    Inserts fixture rows directly, bypassing service rules. Every call commits.
    """

    def __init__(self, db):
        self.db = db

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def employee(self, username: str) -> Employee:
        return self._save(Employee(username=username, first_name=username.title(), last_name="Test"))

    def organization(self, name: str = "Org") -> Organization:
        return self._save(Organization(name=name, description=f"{name} description", type=OrganizationType.LLC.value))

    def responsible(self, organization: Organization, employee: Employee) -> OrganizationResponsible:
        return self._save(
            OrganizationResponsible(organization_id=organization.id, user_id=employee.id)
        )

    def tender(
        self,
        organization: Organization,
        creator: Employee,
        *,
        name: str = "Tender",
        description: str = "Tender description",
        service_type: ServiceType = ServiceType.construction,
        status: TenderStatus = TenderStatus.created,
    ) -> Tender:
        return self._save(
            Tender(
                name=name,
                description=description,
                service_type=service_type.value,
                status=status.value,
                version=1,
                organization_id=organization.id,
                creator_username=creator.username,
            )
        )

    def bid(
        self,
        tender: Tender,
        author_type: AuthorType,
        author_id: uuid.UUID,
        *,
        name: str = "Bid",
        description: str = "Bid description",
    ) -> Bid:
        return self._save(
            Bid(
                name=name,
                description=description,
                tender_id=tender.id,
                author_type=author_type.value,
                author_id=author_id,
                version=1,
            )
        )


@pytest.fixture(scope="function")
def seed(db):
    return Seeder(db)


@pytest.fixture(scope="function")
def world(seed):
    """
    Two organizations and five employees:

    - alice, anna: represent Acme (the tender owner); alice creates the tender
    - bob: represents Bolt (bids as an organization)
    - carl: no organization (bids as a user)
    - dave: no organization, no relation to anything
    """
    acme = seed.organization("Acme")
    bolt = seed.organization("Bolt")

    alice = seed.employee("alice")
    anna = seed.employee("anna")
    bob = seed.employee("bob")
    carl = seed.employee("carl")
    dave = seed.employee("dave")

    seed.responsible(acme, alice)
    seed.responsible(acme, anna)
    seed.responsible(bolt, bob)

    tender = seed.tender(acme, alice, name="Bridge")

    return {
        "acme": acme,
        "bolt": bolt,
        "alice": alice,
        "anna": anna,
        "bob": bob,
        "carl": carl,
        "dave": dave,
        "tender": tender,
    }
