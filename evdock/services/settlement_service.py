"""
Settlement Service

Collects the remaining balance on a payable deposit and closes it.

Full payment:
    1. Quotation (status paid, pricing breakdown)
    2. Customer linked to the quotation
    3. Deposit -> completed

Installment payment:
    1. Installment plan
    2. Deposit -> completed

The record store has no cross-key transactions, so the created records are
always written before the deposit. Each collaborator returns the record it
already holds for the deposit, which makes an interrupted settlement safe
to retry. The deposit is never marked completed pointing at a record that
was not written.
"""
import logging

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import InvalidArgument, PreconditionFailed, WorkflowError
from evdock.core.identifiers import utcnow
from evdock.core.permissions import Actor, require_role
from evdock.models.deposit import DepositStatus, FinalPaymentType
from evdock.schemas.customer import CustomerSnapshot
from evdock.schemas.deposit import Deposit
from evdock.schemas.installment import InstallmentPlanDraft, InstallmentQuote
from evdock.schemas.quotation import QuotationDraft, QuotationItem, QuotationPricing
from evdock.schemas.settlement import PaymentSummary, SettlementResult
from evdock.services import deposit_state_machine as sm
from evdock.services.collaborators import CustomerCreator, InstallmentCreator, QuotationCreator
from evdock.services.deposit_repository import DepositRepository
from evdock.services.installment_service import calculate_installment

logger = logging.getLogger(__name__)

# Supported installment terms, in months
INSTALLMENT_TERMS = (6, 12, 24, 36)


def validate_installment_months(months: int) -> None:
    if months not in INSTALLMENT_TERMS:
        raise InvalidArgument(
            f"Unsupported installment term: {months} months. "
            f"Choose one of {', '.join(str(m) for m in INSTALLMENT_TERMS)}",
            "months",
            months,
        )


def check_payable(deposit: Deposit) -> None:
    """Raise PreconditionFailed unless the remaining amount can be collected."""
    sm.validate_payable(deposit)


def is_payable(deposit: Deposit) -> bool:
    return sm.is_payable(deposit)


class SettlementService:
    """Final payment on deposits."""

    def __init__(
        self,
        repository: DepositRepository,
        quotations: QuotationCreator,
        customers: CustomerCreator,
        installments: InstallmentCreator,
        config: Settings = None,
    ):
        self.repository = repository
        self.quotations = quotations
        self.customers = customers
        self.installments = installments
        self.config = config or default_settings

    @property
    def interest_rate(self) -> float:
        return self.config.INSTALLMENT_INTEREST_RATE

    async def _load_payable(self, deposit_id: str, operation: str) -> Deposit:
        deposit = await self.repository.get_or_raise(deposit_id)
        try:
            check_payable(deposit)
        except WorkflowError as e:
            logger.warning(f"{operation} rejected for {deposit_id}: {e.message}")
            raise
        return deposit

    # ==================== FULL PAYMENT ====================

    async def settle_full(self, actor: Actor, deposit_id: str) -> SettlementResult:
        """
        Settle the remaining amount in one payment.

        Raises:
            Forbidden: If the actor is not dealer staff
            NotFound: If the deposit does not exist
            PreconditionFailed: If the deposit is not payable
        """
        require_role(actor, "settle_deposit")
        deposit = await self._load_payable(deposit_id, "Full settlement")

        now = utcnow()
        final_amount = deposit.remaining_amount

        quotation_id = await self.quotations.create_quotation(
            QuotationDraft(
                deposit_id=deposit.id,
                customer_id=deposit.customer_id,
                customer_name=deposit.customer_name,
                customer_phone=deposit.customer_phone,
                customer_email=deposit.customer_email,
                vehicle_model=deposit.vehicle_model,
                vehicle_color=deposit.vehicle_color,
                items=[
                    QuotationItem(
                        vehicle_id=deposit.vehicle_id,
                        model=deposit.vehicle_model,
                        color=deposit.vehicle_color,
                        price=deposit.vehicle_price,
                        quantity=1,
                    )
                ],
                pricing=QuotationPricing(
                    base_price=deposit.vehicle_price,
                    total_price=deposit.vehicle_price,
                    deposit_amount=deposit.deposit_amount,
                    final_amount=final_amount,
                ),
                total_amount=deposit.vehicle_price,
                payment_completed_at=now,
                dealer_id=deposit.dealer_id,
                created_by=actor.actor_name,
                notes=f"From deposit {deposit.id}",
            )
        )

        customer_id = await self.customers.create_customer_from_settlement(
            CustomerSnapshot(
                deposit_id=deposit.id,
                quotation_id=quotation_id,
                customer_id=deposit.customer_id,
                name=deposit.customer_name,
                phone=deposit.customer_phone,
                email=deposit.customer_email,
                vehicle_model=deposit.vehicle_model,
                vehicle_color=deposit.vehicle_color,
                order_value=deposit.vehicle_price,
                purchase_date=now,
                dealer_id=deposit.dealer_id,
                staff_name=actor.actor_name,
            )
        )

        completed = await self.repository.save(
            deposit.model_copy(update={
                "status": DepositStatus.COMPLETED,
                "final_payment_type": FinalPaymentType.FULL,
                "final_payment_amount": final_amount,
                "final_payment_date": now,
                "quotation_id": quotation_id,
                "completed_by": actor.actor_name,
            })
        )
        logger.info(
            f"Deposit {deposit_id} settled in full ({final_amount}) by {actor.actor_name}: "
            f"quotation {quotation_id}, customer {customer_id}"
        )
        return SettlementResult(
            deposit=completed,
            final_payment_type=FinalPaymentType.FULL,
            final_amount=final_amount,
            quotation_id=quotation_id,
            customer_id=customer_id,
        )

    # ==================== INSTALLMENTS ====================

    async def settle_installment(
        self, actor: Actor, deposit_id: str, months: int
    ) -> SettlementResult:
        """
        Settle the remaining amount through an installment plan.

        No Customer or Quotation record is produced on this path.

        Raises:
            Forbidden: If the actor is not dealer staff
            InvalidArgument: If months is not a supported term
            NotFound: If the deposit does not exist
            PreconditionFailed: If the deposit is not payable
                or already has a plan with a different term
        """
        require_role(actor, "settle_deposit")
        validate_installment_months(months)
        deposit = await self._load_payable(deposit_id, "Installment settlement")

        now = utcnow()
        quote = calculate_installment(deposit.remaining_amount, months, self.interest_rate)

        installment_id = await self.installments.create_installment_plan(
            InstallmentPlanDraft(
                deposit_id=deposit.id,
                customer_id=deposit.customer_id,
                customer_name=deposit.customer_name,
                customer_phone=deposit.customer_phone,
                vehicle_model=deposit.vehicle_model,
                vehicle_color=deposit.vehicle_color,
                total_amount=deposit.remaining_amount,
                installment_months=months,
                interest_rate=self.interest_rate,
                monthly_payment=quote.monthly_payment,
                start_date=now,
                dealer_id=deposit.dealer_id,
                created_by=actor.actor_name,
            )
        )
        plan = await self.installments.get_plan(installment_id)
        if plan.installment_months != months:
            logger.warning(
                f"Installment settlement rejected for {deposit_id}: plan {installment_id} "
                f"already runs {plan.installment_months} months, requested {months}"
            )
            raise PreconditionFailed(
                f"Deposit {deposit_id} already has a {plan.installment_months}-month "
                f"installment plan ({installment_id})",
                "installmentMonths",
                plan.installment_months,
                months,
            )

        completed = await self.repository.save(
            deposit.model_copy(update={
                "status": DepositStatus.COMPLETED,
                "final_payment_type": FinalPaymentType.INSTALLMENT,
                "installment_months": months,
                "installment_id": installment_id,
                "final_payment_date": now,
                "completed_by": actor.actor_name,
            })
        )
        logger.info(
            f"Deposit {deposit_id} settled by installments: {months} x "
            f"{quote.monthly_payment:.2f}, plan {installment_id}"
        )
        return SettlementResult(
            deposit=completed,
            final_payment_type=FinalPaymentType.INSTALLMENT,
            final_amount=deposit.remaining_amount,
            installment_id=installment_id,
            installment=quote,
        )

    # ==================== READ-ONLY ====================

    async def quote_installment(self, deposit_id: str, months: int) -> InstallmentQuote:
        """Preview an installment plan without creating anything."""
        validate_installment_months(months)
        deposit = await self.repository.get_or_raise(deposit_id)
        return calculate_installment(deposit.remaining_amount, months, self.interest_rate)

    async def get_payment_summary(self, deposit_id: str) -> PaymentSummary:
        deposit = await self.repository.get_or_raise(deposit_id)
        return PaymentSummary(
            deposit_id=deposit.id,
            deposit_amount=deposit.deposit_amount,
            remaining_amount=deposit.remaining_amount,
            total_amount=deposit.vehicle_price,
            status=deposit.status,
            payable=is_payable(deposit),
            final_payment_type=deposit.final_payment_type,
            quotation_id=deposit.quotation_id,
            installment_id=deposit.installment_id,
        )

    async def is_deposit_payable(self, deposit_id: str) -> bool:
        return is_payable(await self.repository.get_or_raise(deposit_id))

    async def find_settlement_records(self, deposit_id: str) -> dict:
        """Ids of any records already created for this deposit by settlement."""
        return {
            "quotation_id": await self.quotations.find_quotation_id_by_deposit(deposit_id),
            "customer_id": await self.customers.find_customer_id_by_deposit(deposit_id),
            "installment_id": await self.installments.find_plan_id_by_deposit(deposit_id),
        }
