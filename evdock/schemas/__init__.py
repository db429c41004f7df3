from evdock.schemas.deposit import (
    Deposit,
    DepositCreate,
    ManufacturerOrderRequest,
    VehicleArrivalRequest,
    DepositCancelRequest,
    DepositStatistics,
    DepositActions,
)
from evdock.schemas.preorder_task import PreOrderTask, PreOrderTaskCreate, PreOrderTaskAdvance
from evdock.schemas.quotation import Quotation, QuotationDraft, QuotationItem, QuotationPricing
from evdock.schemas.customer import Customer, CustomerSnapshot
from evdock.schemas.installment import (
    InstallmentQuote,
    InstallmentPlanDraft,
    InstallmentPlan,
    InstallmentScheduleEntry,
    InstallmentPaymentCreate,
    PaymentReminder,
)
from evdock.schemas.settlement import (
    InstallmentSettleRequest,
    PaymentRequestCreate,
    SettlementResult,
    PaymentSummary,
    PaymentRequest,
    PaymentVerification,
)
