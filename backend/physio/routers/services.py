# backend/physio/routers/services.py
# PATCH = admin, DELETE = 405 (deactivate via is_active)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..identity import require_admin
from ..schemas.services import (
    ServiceCreate,
    ServiceUpdate,
    ServiceRead,
)
from ..services.catalog import ServiceCatalog

router = APIRouter(prefix="/services", tags=["services"])


@router.get("/", response_model=list[ServiceRead])
def list_services(db: Session = Depends(get_db)):
    return ServiceCatalog(db).list_services(active_only=True)


@router.get("/{id}", response_model=ServiceRead)
def get_service(id: int, db: Session = Depends(get_db)):
    return ServiceCatalog(db).get_or_raise(id)


@router.post(
    "/",
    response_model=ServiceRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_service(data: ServiceCreate, db: Session = Depends(get_db)):
    return ServiceCatalog(db).create(data)


@router.patch("/{id}", response_model=ServiceRead, dependencies=[Depends(require_admin)])
def update_service(id: int, data: ServiceUpdate, db: Session = Depends(get_db)):
    return ServiceCatalog(db).update(id, data)


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
