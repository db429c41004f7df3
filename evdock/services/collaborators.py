"""
Collaborator contracts used by settlement.

Settlement hands finished drafts to these services and only keeps the ids
they return. The default implementations live in quotation_service,
customer_service and installment_service and persist through the same
record store; a host application can pass its own.

Every collaborator must also answer "what did you already create for this
deposit?" so an interrupted settlement can be retried without duplicates.
"""
from abc import ABC, abstractmethod
from typing import Optional

from evdock.schemas.customer import CustomerSnapshot
from evdock.schemas.installment import InstallmentPlan, InstallmentPlanDraft
from evdock.schemas.quotation import QuotationDraft


class QuotationCreator(ABC):
    @abstractmethod
    async def create_quotation(self, draft: QuotationDraft) -> str:
        """Persist a quotation and return its id."""
        pass

    @abstractmethod
    async def find_quotation_id_by_deposit(self, deposit_id: str) -> Optional[str]:
        pass


class CustomerCreator(ABC):
    @abstractmethod
    async def create_customer_from_settlement(self, snapshot: CustomerSnapshot) -> str:
        """Persist a customer and return its id."""
        pass

    @abstractmethod
    async def find_customer_id_by_deposit(self, deposit_id: str) -> Optional[str]:
        pass


class InstallmentCreator(ABC):
    @abstractmethod
    async def create_installment_plan(self, draft: InstallmentPlanDraft) -> str:
        """Persist an installment plan and return its id."""
        pass

    @abstractmethod
    async def find_plan_id_by_deposit(self, deposit_id: str) -> Optional[str]:
        pass

    @abstractmethod
    async def get_plan(self, plan_id: str) -> InstallmentPlan:
        pass
