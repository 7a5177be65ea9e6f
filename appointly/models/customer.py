# appointly/models/customer.py
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func
import uuid
from appointly.models.base import Base


class Customer(Base):
    """Customer identified by email (stored lower-cased)"""
    __tablename__ = "customers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Customer(id={self.id}, email={self.email})>"
