"""Service catalog: the treatments patients can book."""

import logging

from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models.generated import Services
from ..schemas.services import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


class ServiceCatalog:

    def __init__(self, db: Session):
        self.db = db

    def get_service(self, service_id: int) -> Services | None:
        return self.db.get(Services, service_id)

    def get_or_raise(self, service_id: int) -> Services:
        service = self.get_service(service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def list_services(self, active_only: bool = True) -> list[Services]:
        query = self.db.query(Services)
        if active_only:
            query = query.filter(Services.is_active == 1)
        return query.order_by(Services.category, Services.name).all()

    def create(self, data: ServiceCreate) -> Services:
        values = data.model_dump()
        values["is_active"] = 1 if values.get("is_active", True) else 0
        service = Services(**values)
        self.db.add(service)
        self.db.commit()
        logger.info(f"Service created: {service.id} {service.name}")
        return service

    def update(self, service_id: int, data: ServiceUpdate) -> Services:
        service = self.get_or_raise(service_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field in ("name", "price", "duration_minutes", "is_active"):
                continue
            if field == "is_active":
                value = 1 if value else 0
            setattr(service, field, value)
        self.db.commit()
        return service
