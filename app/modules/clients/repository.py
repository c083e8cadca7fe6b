# app/modules/clients/repository.py
from sqlalchemy import or_
from typing import List, Optional

from app.shared.database.models import Client, CurrentAccount
from app.shared.database.tenant import TenantRepository


class ClientsRepository(TenantRepository):
    model = Client

    def get_by_tax_id(self, tax_id: str) -> Optional[Client]:
        return self.query().filter(Client.tax_id == tax_id).first()

    def search(self, search: Optional[str] = None, status: Optional[str] = None) -> List[Client]:
        query = self.query()
        if status:
            query = query.filter(Client.status == status)
        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(
                Client.first_name.ilike(term),
                Client.last_name.ilike(term),
                Client.company_name.ilike(term),
                Client.tax_id.ilike(term),
                Client.email.ilike(term)
            ))
        return query.order_by(Client.last_name.asc(), Client.company_name.asc(), Client.id.asc()).all()

    def count_current_accounts(self, client_id: int) -> int:
        return self.query(CurrentAccount).filter(CurrentAccount.client_id == client_id).count()
