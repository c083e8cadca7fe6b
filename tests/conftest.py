import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "tests-secret-key")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import Base, get_db
from app.core.auth.service import AuthService
from app.main import app
from app.shared.database.models import (
    Organization, Branch, User, Brand, Model, Color, OrganizationBrand, Client, Supplier, Motorcycle
)

PASSWORD = "secreto123"
PASSWORD_HASH = AuthService.get_password_hash(PASSWORD)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _user(db, email, role, organization=None, branch=None):
    user = User(
        email=email,
        password_hash=PASSWORD_HASH,
        first_name=role.capitalize(),
        last_name="Prueba",
        role=role,
        organization_id=organization.id if organization else None,
        branch_id=branch.id if branch else None,
        is_active=True,
    )
    db.add(user)
    return user


@pytest.fixture
def seed(db_session):
    """Dos organizaciones con sucursales, un usuario por rol y catálogo mínimo"""
    db = db_session
    org = Organization(name="Motos del Sur", slug="motos-del-sur")
    other_org = Organization(name="Motos del Norte", slug="motos-del-norte")
    db.add_all([org, other_org])
    db.flush()

    central = Branch(organization_id=org.id, name="Casa Central", order=0)
    norte = Branch(organization_id=org.id, name="Sucursal Norte", order=1)
    foreign_branch = Branch(organization_id=other_org.id, name="Casa Central", order=0)
    db.add_all([central, norte, foreign_branch])
    db.flush()

    users = SimpleNamespace(
        root=_user(db, "root@apex.test", "root"),
        admin=_user(db, "admin@sur.test", "admin", org, central),
        cashier=_user(db, "caja@sur.test", "cash-manager", org, central),
        seller=_user(db, "vendedor@sur.test", "user", org, central),
        other_admin=_user(db, "admin@norte.test", "admin", other_org, foreign_branch),
    )

    brand = Brand(name="Honda", color="#d32f2f")
    db.add(brand)
    db.flush()
    model = Model(brand_id=brand.id, name="CB 190R")
    db.add(model)
    db.flush()
    db.add(OrganizationBrand(organization_id=org.id, brand_id=brand.id, order=0))

    color = Color(organization_id=org.id, name="Rojo", type="SOLIDO", color_one="#ff0000")
    customer = Client(
        organization_id=org.id, type="Individual", first_name="Juan", last_name="Pérez", tax_id="20111222"
    )
    supplier = Supplier(
        organization_id=org.id, legal_name="Honda Argentina SA", tax_identification="30-11111111-1"
    )
    db.add_all([color, customer, supplier])
    db.commit()

    return SimpleNamespace(
        org=org, other_org=other_org,
        central=central, norte=norte, foreign_branch=foreign_branch,
        users=users, brand=brand, model=model, color=color,
        customer=customer, supplier=supplier,
    )


def auth_headers(user, organization_id=None):
    headers = {"Authorization": f"Bearer {AuthService.create_access_token(AuthService.token_data_for(user))}"}
    if organization_id is not None:
        headers["X-Organization-Id"] = str(organization_id)
    return headers


@pytest.fixture
def admin_headers(seed):
    return auth_headers(seed.users.admin)


@pytest.fixture
def seller_headers(seed):
    return auth_headers(seed.users.seller)


@pytest.fixture
def cashier_headers(seed):
    return auth_headers(seed.users.cashier)


@pytest.fixture
def make_motorcycle(db_session, seed):
    """Crear motos directamente en la base con valores por defecto razonables"""
    counter = {"n": 0}

    def factory(**overrides):
        counter["n"] += 1
        values = dict(
            organization_id=seed.org.id,
            brand_id=seed.brand.id,
            model_id=seed.model.id,
            branch_id=seed.central.id,
            year=2024,
            chassis_number=f"CHS{counter['n']:05d}",
            cost_price=1500000,
            retail_price=2000000,
            currency="ARS",
            state="STOCK",
        )
        values.update(overrides)
        motorcycle = Motorcycle(**values)
        db_session.add(motorcycle)
        db_session.commit()
        db_session.refresh(motorcycle)
        return motorcycle

    return factory


@pytest.fixture
def headers_for():
    return auth_headers
