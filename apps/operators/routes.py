from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from . import schemas, services
from shared.database import get_db
from shared.auth.api_auth import AdminKeyBearer

router = APIRouter(prefix="/api/v1/operators", tags=["operators"])

admin_auth = AdminKeyBearer()


@router.post("/", response_model=schemas.OperatorResponse)
async def create_operator(
    operator: schemas.OperatorCreate,
    db: Session = Depends(get_db),
    api_key: str = Depends(admin_auth)
):
    """Create a new operator and assign their station"""
    service = services.OperatorService(db)
    return await service.create_operator(operator)


@router.get("/", response_model=schemas.PaginatedOperatorResponse)
async def list_operators(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(10, ge=1, le=100, description="Number of records to return"),
    status: Optional[int] = Query(None, description="Filter by status"),
    room: Optional[str] = Query(None, description="Filter by room"),
    user_name: Optional[str] = Query(None, description="Filter by user_name"),
    db: Session = Depends(get_db),
    api_key: str = Depends(admin_auth)
):
    """List operators with pagination and optional filters"""
    service = services.OperatorService(db)
    return await service.list_operators(
        skip=skip,
        limit=limit,
        status=status,
        room=room,
        user_name=user_name
    )


@router.get("/{id}", response_model=schemas.OperatorResponse)
async def get_operator(
    id: int,
    db: Session = Depends(get_db),
    api_key: str = Depends(admin_auth)
):
    """Get an operator by ID"""
    service = services.OperatorService(db)
    return await service.get_operator(id)


@router.put("/{id}", response_model=schemas.OperatorResponse)
async def update_operator(
    id: int,
    operator: schemas.OperatorUpdate,
    db: Session = Depends(get_db),
    api_key: str = Depends(admin_auth)
):
    """Update an operator"""
    service = services.OperatorService(db)
    return await service.update_operator(id, operator)


@router.delete("/{id}")
async def delete_operator(
    id: int,
    db: Session = Depends(get_db),
    api_key: str = Depends(admin_auth)
):
    """Delete an operator"""
    service = services.OperatorService(db)
    await service.delete_operator(id)
    return {"message": "Operator deleted successfully"}
