# app/modules/organizations/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import func, or_
from typing import List, Optional

from app.shared.database.models import Organization, User, Branch


class OrganizationsRepository:
    """Repository de plataforma (root): opera sobre todas las organizaciones"""

    def __init__(self, db: Session):
        self.db = db

    def get_all_organizations(self, search: Optional[str] = None) -> List[Organization]:
        query = self.db.query(Organization)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Organization.name.ilike(pattern), Organization.slug.ilike(pattern)))
        return query.order_by(Organization.name.asc()).all()

    def get_organization_by_id(self, organization_id: int) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.id == organization_id).first()

    def get_organization_by_slug(self, slug: str) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.slug == slug).first()

    def count_users(self, organization_id: int) -> int:
        return self.db.query(func.count(User.id)).filter(User.organization_id == organization_id).scalar() or 0

    def count_branches(self, organization_id: int) -> int:
        return self.db.query(func.count(Branch.id)).filter(Branch.organization_id == organization_id).scalar() or 0

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_users_by_organization(self, organization_id: int) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.organization_id == organization_id)
            .order_by(User.first_name.asc(), User.last_name.asc())
            .all()
        )

    def branch_belongs_to(self, branch_id: int, organization_id: int) -> bool:
        return self.db.query(Branch).filter(
            Branch.id == branch_id,
            Branch.organization_id == organization_id
        ).first() is not None
