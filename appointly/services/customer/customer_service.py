# appointly/services/customer/customer_service.py
"""Customer store with upsert-by-email semantics"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from appointly.models.customer import Customer

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CustomerService:

    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.email == normalize_email(email)).first()

    @staticmethod
    def insert(db: Session, name: str, email: str, phone: Optional[str] = None) -> Customer:
        """Add a customer to the session; the caller owns the commit"""
        customer = Customer(name=name, email=normalize_email(email), phone=phone)
        db.add(customer)
        db.flush()
        return customer

    @staticmethod
    def get_or_create(db: Session, name: str, email: str, phone: Optional[str] = None) -> Customer:
        """
        Existing customer for the email, or a new one.

        The insert runs in a savepoint: when a concurrent booking created the
        same email first, only the savepoint is rolled back and the existing
        row is returned, leaving the caller's transaction and locks intact.
        """
        customer = CustomerService.find_by_email(db, email)
        if customer is None:
            try:
                with db.begin_nested():
                    customer = CustomerService.insert(db, name, email, phone)
                logger.info(f"Created customer {customer.id}")
                return customer
            except IntegrityError:
                customer = CustomerService.find_by_email(db, email)
                if customer is None:
                    raise
                logger.info(f"Customer {customer.id} was created concurrently, reusing it")

        if phone and not customer.phone:
            customer.phone = phone
        return customer
