from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional
import bcrypt
import logging

import config

from apps.tickets.results import Station
from . import models, schemas

logger = logging.getLogger(__name__)


def hash_pin(pin: str) -> str:
    return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=config.PIN_HASH_ROUNDS)).decode("utf-8")


def verify_pin(pin: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(pin.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash
        return False


class OperatorDirectory:
    """Read-only view of operators used by the call dispatcher"""

    def __init__(self, db: Session):
        self.db = db

    def get_active(self, user_id: str) -> Optional[models.Operator]:
        return self.db.query(models.Operator).filter(
            models.Operator.user_id == user_id,
            models.Operator.status == 1
        ).first()

    def lookup_station(self, user_id: str) -> Optional[Station]:
        operator = self.get_active(user_id)
        if operator is None:
            return None
        return Station(room=operator.room, desk=operator.desk)

    def authenticate(self, user_id: str, pin: str) -> Optional[models.Operator]:
        operator = self.get_active(user_id)
        if operator is None or not verify_pin(pin, operator.pin):
            return None
        return operator


class OperatorService:
    def __init__(self, db: Session):
        self.db = db

    def _get_or_404(self, id: int) -> models.Operator:
        operator = self.db.query(models.Operator).filter(models.Operator.id == id).first()
        if not operator:
            raise HTTPException(status_code=404, detail=f"Operator with ID {id} not found")
        return operator

    async def create_operator(self, operator: schemas.OperatorCreate) -> schemas.OperatorResponse:
        """Create a new operator"""
        try:
            existing = self.db.query(models.Operator).filter(
                models.Operator.user_id == operator.user_id
            ).first()

            if existing:
                raise HTTPException(
                    status_code=400,
                    detail=f"Operator with ID {operator.user_id} already exists"
                )

            db_operator = models.Operator(
                user_id=operator.user_id,
                user_name=operator.user_name,
                room=operator.room,
                desk=operator.desk,
                status=operator.status,
                pin=hash_pin(operator.pin)
            )

            self.db.add(db_operator)
            self.db.commit()
            self.db.refresh(db_operator)

            logger.info(f"Created operator {db_operator.user_id} at room {db_operator.room} desk {db_operator.desk}")
            return schemas.OperatorResponse.model_validate(db_operator)

        except HTTPException:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating operator: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to create operator"
            )

    async def get_operator(self, id: int) -> schemas.OperatorResponse:
        """Get an operator by database ID"""
        return schemas.OperatorResponse.model_validate(self._get_or_404(id))

    async def update_operator(self, id: int, operator: schemas.OperatorUpdate) -> schemas.OperatorResponse:
        """Update an operator, including their station"""
        try:
            db_operator = self._get_or_404(id)

            update_data = operator.model_dump(exclude_unset=True)
            for key, value in update_data.items():
                if key == 'pin':
                    setattr(db_operator, 'pin', hash_pin(value))
                else:
                    setattr(db_operator, key, value)

            self.db.commit()
            self.db.refresh(db_operator)

            logger.info(f"Updated operator {db_operator.user_id}")
            return schemas.OperatorResponse.model_validate(db_operator)

        except HTTPException:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating operator: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to update operator"
            )

    async def delete_operator(self, id: int) -> None:
        """Delete an operator by database ID"""
        try:
            db_operator = self._get_or_404(id)
            self.db.delete(db_operator)
            self.db.commit()
            logger.info(f"Deleted operator {db_operator.user_id}")
        except HTTPException:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting operator: {str(e)}")
            raise HTTPException(
                status_code=500,
                detail="Failed to delete operator"
            )

    async def list_operators(
        self,
        skip: int = 0,
        limit: int = 10,
        status: Optional[int] = None,
        room: Optional[str] = None,
        user_name: Optional[str] = None
    ) -> schemas.PaginatedOperatorResponse:
        """List operators with pagination and optional filters"""
        query = self.db.query(models.Operator)

        if status is not None:
            query = query.filter(models.Operator.status == status)
        if room:
            query = query.filter(models.Operator.room == room)
        if user_name:
            query = query.filter(models.Operator.user_name.ilike(f"%{user_name}%"))

        total = query.count()
        operators = query.order_by(models.Operator.id).offset(skip).limit(limit).all()

        return schemas.PaginatedOperatorResponse(
            items=[schemas.OperatorResponse.model_validate(o) for o in operators],
            total=total,
            page=(skip // limit) + 1,
            size=limit,
            pages=(total + limit - 1) // limit
        )
