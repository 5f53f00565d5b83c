from uuid import UUID

from sqlalchemy.orm import Session

from storefront.data.models.customer import CustomerModel
from storefront.domain.errors import CustomerNotFound
from storefront.domain.schemas import CustomerCreate
from storefront.repos.customer_repo import CustomerRepo


class CustomerService:
    def __init__(self, db: Session):
        self.repo = CustomerRepo(db)

    def create_customer(self, payload: CustomerCreate) -> CustomerModel:
        existing = self.repo.get_by_email(payload.email)
        if existing:
            return existing

        customer = CustomerModel(
            name=payload.name,
            email=payload.email.lower(),
            phone=payload.phone,
            address=payload.address,
        )
        return self.repo.create_customer(customer)

    def get_customer(self, customer_id: UUID) -> CustomerModel:
        customer = self.repo.get_customer(customer_id)
        if not customer:
            raise CustomerNotFound(customer_id)
        return customer
