"""
Payment Service - QR checkout placeholder

Stands in for the gateway QR checkout used before settlement:
- Create a pending payment request for a payable deposit
- Verify a payment request (always succeeds, no gateway call)

Requests are stored so they can be looked up and verified later.
"""
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import NotFound, PreconditionFailed
from evdock.core.identifiers import generate_record_id, utcnow
from evdock.core.permissions import Actor, require_role
from evdock.models.deposit import FinalPaymentType
from evdock.schemas.settlement import PaymentRequest, PaymentRequestCreate, PaymentVerification
from evdock.services.deposit_repository import DepositRepository
from evdock.services.installment_service import calculate_installment
from evdock.services.record_store import RecordCollection, RecordStore
from evdock.services.settlement_service import check_payable, validate_installment_months

logger = logging.getLogger(__name__)


class PaymentService:
    """Placeholder payment requests for final payments."""

    ENTITY = "payment_request"

    def __init__(self, store: RecordStore, repository: DepositRepository, config: Settings = None):
        self.config = config or default_settings
        self.repository = repository
        self.records = RecordCollection(
            store, self.ENTITY, PaymentRequest, self.config.STORE_NAMESPACE
        )

    def _amount_due(self, remaining_amount: int, data: PaymentRequestCreate) -> int:
        if data.payment_type == FinalPaymentType.FULL:
            return remaining_amount
        # Installments collect the first monthly payment up front
        validate_installment_months(data.installment_months)
        quote = calculate_installment(
            remaining_amount, data.installment_months, self.config.INSTALLMENT_INTEREST_RATE
        )
        return int(Decimal(str(quote.monthly_payment)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    async def create_payment_request(
        self, actor: Actor, deposit_id: str, data: PaymentRequestCreate
    ) -> PaymentRequest:
        """
        Create a pending payment request with a QR payload.

        Raises:
            Forbidden: If the actor is not dealer staff
            NotFound: If the deposit does not exist
            PreconditionFailed: If the deposit is not payable
            InvalidArgument: If an installment term is unsupported
        """
        require_role(actor, "request_payment")
        deposit = await self.repository.get_or_raise(deposit_id)
        check_payable(deposit)

        amount = self._amount_due(deposit.remaining_amount, data)
        now = utcnow()
        request = PaymentRequest(
            payment_id=generate_record_id("PAY", suffix_length=4),
            deposit_id=deposit.id,
            amount=amount,
            payment_type=data.payment_type,
            installment_months=data.installment_months,
            qr_code=f"EVDOCK_QR_{deposit.id}_{amount}",
            transaction_id=generate_record_id("TXN", suffix_length=4),
            created_at=now,
            expires_at=now + timedelta(minutes=self.config.PAYMENT_REQUEST_TTL_MINUTES),
        )
        await self.records.put(request.payment_id, request)
        logger.info(f"Payment request {request.payment_id} created for {deposit_id}: {amount}")
        return request

    async def get_payment_request(self, payment_id: str) -> PaymentRequest:
        request = await self.records.get(payment_id)
        if request is None:
            raise NotFound("PaymentRequest", payment_id)
        return request

    async def verify_payment(self, actor: Actor, payment_id: str) -> PaymentVerification:
        """
        Mark a payment request completed. No gateway is consulted.

        Raises:
            Forbidden: If the actor is not dealer staff
            NotFound: If the payment request does not exist
            PreconditionFailed: If a pending request has expired
        """
        require_role(actor, "request_payment")
        request = await self.get_payment_request(payment_id)
        now = utcnow()
        if request.status == "pending" and now > request.expires_at:
            raise PreconditionFailed(
                f"Payment request {payment_id} expired at {request.expires_at.isoformat()}",
                "expiresAt",
                f"after {now.isoformat()}",
                request.expires_at.isoformat(),
            )

        request.status = "completed"
        await self.records.put(request.payment_id, request)
        logger.info(f"Payment {payment_id} verified for deposit {request.deposit_id}")
        return PaymentVerification(
            payment_id=request.payment_id,
            status=request.status,
            transaction_id=request.transaction_id,
            verified_at=now,
        )
