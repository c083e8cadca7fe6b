# app/shared/database/tenant.py
"""
Acceso a datos aislado por organización.

Todos los repositorios de módulos heredan de TenantRepository: las consultas
salen filtradas por organization_id y las altas quedan asignadas al tenant
del request, de modo que los servicios nunca repiten el filtro a mano.
"""
from typing import Any, List, Optional, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

UNIQUE_SQLSTATE = "23505"
FOREIGN_KEY_SQLSTATE = "23503"


class TenantRepository:
    """Repositorio base con scope de organización"""

    model: Optional[Type[Any]] = None

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def query(self, model: Optional[Type[Any]] = None) -> Query:
        """Query filtrada por la organización actual"""
        model = model or self.model
        return self.db.query(model).filter(model.organization_id == self.organization_id)

    def get(self, entity_id: int, model: Optional[Type[Any]] = None) -> Optional[Any]:
        """Obtener entidad por id SOLO si pertenece a la organización"""
        model = model or self.model
        return self.query(model).filter(model.id == entity_id).first()

    def list_all(self, model: Optional[Type[Any]] = None) -> List[Any]:
        return self.query(model).all()

    def add(self, instance: Any) -> Any:
        """Agregar entidad forzando el organization_id del tenant"""
        instance.organization_id = self.organization_id
        self.db.add(instance)
        return instance

    def save(self, instance: Any) -> Any:
        """Agregar + commit + refresh en una sola llamada"""
        self.add(instance)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def delete(self, instance: Any) -> None:
        self.db.delete(instance)
        self.db.commit()


def is_unique_violation(error: IntegrityError) -> bool:
    """Detectar violación de índice único (PostgreSQL o SQLite)"""
    if getattr(error.orig, "sqlstate", None) == UNIQUE_SQLSTATE:
        return True
    message = str(error.orig).lower()
    return "unique" in message or "duplicate key" in message


def is_foreign_key_violation(error: IntegrityError) -> bool:
    """Detectar violación de clave foránea (PostgreSQL o SQLite)"""
    if getattr(error.orig, "sqlstate", None) == FOREIGN_KEY_SQLSTATE:
        return True
    return "foreign key" in str(error.orig).lower()
