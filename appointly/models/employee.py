# appointly/models/employee.py
from sqlalchemy import Column, String, ForeignKey, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
import uuid
from appointly.models.base import Base


class Employee(Base):
    """Staff member; scopes availability when a business has several providers"""
    __tablename__ = "employees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    role = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.name})>"

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "name": self.name,
            "role": self.role,
            "email": self.email,
            "phone": self.phone,
            "is_active": self.is_active,
        }
