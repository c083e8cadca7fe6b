"""
Script para crear una organización de prueba con un usuario por rol
"""
from app.config.database import SessionLocal, Base, engine
from app.shared.database.models import Organization, Branch, User
from app.core.auth.service import AuthService

DEMO_ORGANIZATION = {"name": "Apex Motos Demo", "slug": "apex-demo"}
DEMO_BRANCH = "Casa Central"

TEST_USERS = [
    {"email": "root@apexmotos.com", "password": "root123", "first_name": "Plataforma", "last_name": "Root", "role": "root"},
    {"email": "admin@apexmotos.com", "password": "admin123", "first_name": "Ana", "last_name": "Administradora", "role": "admin"},
    {"email": "caja@apexmotos.com", "password": "caja123", "first_name": "Carlos", "last_name": "Cajero", "role": "cash-manager"},
    {"email": "vendedor@apexmotos.com", "password": "vendedor123", "first_name": "Juan", "last_name": "Vendedor", "role": "user"},
]


def create_test_users(db) -> int:
    """Crear organización, sucursal y usuarios que no existan. Devuelve los usuarios creados."""
    organization = db.query(Organization).filter(Organization.slug == DEMO_ORGANIZATION["slug"]).first()
    if not organization:
        organization = Organization(**DEMO_ORGANIZATION)
        db.add(organization)
        db.flush()
        print(f"🏢 Organización creada: {organization.name}")

    branch = db.query(Branch).filter(
        Branch.organization_id == organization.id, Branch.name == DEMO_BRANCH
    ).first()
    if not branch:
        branch = Branch(organization_id=organization.id, name=DEMO_BRANCH, order=0)
        db.add(branch)
        db.flush()
        print(f"📍 Sucursal creada: {branch.name}")

    created = 0
    for user_data in TEST_USERS:
        if db.query(User).filter(User.email == user_data["email"]).first():
            print(f"✅ Ya existe: {user_data['email']}")
            continue

        is_root = user_data["role"] == "root"
        db.add(User(
            email=user_data["email"],
            password_hash=AuthService.get_password_hash(user_data["password"]),
            first_name=user_data["first_name"],
            last_name=user_data["last_name"],
            role=user_data["role"],
            organization_id=None if is_root else organization.id,
            branch_id=None if is_root else branch.id,
            is_active=True
        ))
        created += 1
        print(f"✅ Usuario creado: {user_data['email']} / {user_data['password']} ({user_data['role']})")

    db.commit()
    return created


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = create_test_users(db)
        print(f"\n🎉 {created} usuarios de prueba creados")
        print("\n📋 Credenciales de prueba:")
        for user_data in TEST_USERS:
            print(f"   👤 {user_data['role'].upper()}: {user_data['email']} / {user_data['password']}")
    except Exception as e:
        db.rollback()
        print(f"❌ Error creando usuarios: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
