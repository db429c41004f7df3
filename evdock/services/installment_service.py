"""
Installment plans for deposits settled by monthly payments.

Monthly payment uses a straight-line interest approximation, not an
amortizing-loan formula:

    monthlyPayment = (P / months) * (1 + (rate / 12 / 100) * months / 2)
    totalPayable   = monthlyPayment * months
    interestAmount = totalPayable - P

The schedule splits principal and interest evenly across the months.
"""
import logging
import math
from datetime import datetime
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from evdock.config import Settings, settings as default_settings
from evdock.core.exceptions import InvalidArgument, NotFound, PreconditionFailed
from evdock.core.identifiers import generate_record_id, utcnow
from evdock.models.installment import InstallmentPlanStatus, ScheduleEntryStatus
from evdock.schemas.installment import (
    InstallmentPaymentCreate,
    InstallmentPlan,
    InstallmentPlanDraft,
    InstallmentQuote,
    InstallmentScheduleEntry,
    PaymentReminder,
)
from evdock.services.collaborators import InstallmentCreator
from evdock.services.record_store import RecordCollection, RecordStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def calculate_installment(principal: int, months: int, interest_rate: float) -> InstallmentQuote:
    """Apply the installment formula to one principal and term."""
    if principal <= 0:
        raise InvalidArgument("Installment principal must be positive", "principal", principal)
    if months <= 0:
        raise InvalidArgument("Installment term must be positive", "months", months)

    monthly_rate = interest_rate / 12 / 100
    monthly_payment = (principal / months) * (1 + monthly_rate * months / 2)
    total_payable = monthly_payment * months
    return InstallmentQuote(
        principal=principal,
        installment_months=months,
        interest_rate=interest_rate,
        monthly_payment=monthly_payment,
        total_payable=total_payable,
        interest_amount=total_payable - principal,
    )


def build_payment_schedule(
    total_amount: int,
    months: int,
    monthly_payment: float,
    interest_amount: float,
    start_date: datetime,
) -> List[InstallmentScheduleEntry]:
    principal_portion = total_amount / months
    interest_portion = interest_amount / months
    return [
        InstallmentScheduleEntry(
            month=month,
            due_date=start_date + relativedelta(months=month),
            amount=monthly_payment,
            principal=principal_portion,
            interest=interest_portion,
            remaining_balance=total_amount - principal_portion * month,
        )
        for month in range(1, months + 1)
    ]


def _days_between(later: datetime, earlier: datetime) -> int:
    return math.ceil((later - earlier).total_seconds() / SECONDS_PER_DAY)


class InstallmentService(InstallmentCreator):
    """Stores installment plans and tracks their monthly payments."""

    ENTITY = "installment"

    def __init__(self, store: RecordStore, config: Settings = None):
        self.config = config or default_settings
        self.records = RecordCollection(
            store, self.ENTITY, InstallmentPlan, self.config.STORE_NAMESPACE
        )

    @staticmethod
    def generate_plan_id() -> str:
        return generate_record_id("INST")

    async def _new_plan_id(self) -> str:
        return self.generate_plan_id()

    async def create_installment_plan(self, draft: InstallmentPlanDraft) -> str:
        plan_id, existing = await self.records.claim(
            "deposit", draft.deposit_id, self._new_plan_id
        )
        if existing is not None:
            logger.info(f"Installment plan {plan_id} already exists for deposit {draft.deposit_id}")
            return plan_id

        quote = calculate_installment(
            draft.total_amount, draft.installment_months, draft.interest_rate
        )
        schedule = build_payment_schedule(
            draft.total_amount,
            draft.installment_months,
            quote.monthly_payment,
            quote.interest_amount,
            draft.start_date,
        )

        now = utcnow()
        plan = InstallmentPlan(
            id=plan_id,
            deposit_id=draft.deposit_id,
            customer_id=draft.customer_id,
            customer_name=draft.customer_name,
            customer_phone=draft.customer_phone,
            vehicle_model=draft.vehicle_model,
            vehicle_color=draft.vehicle_color,
            total_amount=draft.total_amount,
            installment_months=draft.installment_months,
            interest_rate=draft.interest_rate,
            monthly_payment=quote.monthly_payment,
            total_payable=quote.total_payable,
            interest_amount=quote.interest_amount,
            remaining_months=draft.installment_months,
            remaining_amount=draft.total_amount,
            start_date=draft.start_date,
            end_date=schedule[-1].due_date,
            next_payment_date=schedule[0].due_date,
            payment_schedule=schedule,
            dealer_id=draft.dealer_id,
            created_by=draft.created_by,
            created_at=now,
            last_modified=now,
        )
        await self.records.put(plan.id, plan)
        logger.info(
            f"Installment plan {plan.id} created for deposit {draft.deposit_id}: "
            f"{plan.installment_months} x {plan.monthly_payment:.2f}"
        )
        return plan.id

    async def get_plan(self, plan_id: str) -> InstallmentPlan:
        plan = await self.records.get(plan_id)
        if plan is None:
            raise NotFound("InstallmentPlan", plan_id)
        return plan

    async def find_plan_id_by_deposit(self, deposit_id: str) -> Optional[str]:
        record = await self.records.lookup_record("deposit", deposit_id)
        return record.id if record else None

    async def list_active(self) -> List[InstallmentPlan]:
        return [
            p for p in await self.records.all()
            if p.status == InstallmentPlanStatus.ACTIVE
        ]

    async def record_payment(
        self, plan_id: str, payment: InstallmentPaymentCreate
    ) -> InstallmentPlan:
        """
        Mark one month of the schedule as paid.

        Raises:
            NotFound: If the plan does not exist
            InvalidArgument: If the month is outside the schedule
            PreconditionFailed: If the plan is closed or the month is already paid
        """
        plan = await self.get_plan(plan_id)
        if plan.status != InstallmentPlanStatus.ACTIVE:
            raise PreconditionFailed(
                f"Installment plan {plan_id} is {plan.status.value}",
                "status",
                InstallmentPlanStatus.ACTIVE.value,
                plan.status.value,
            )

        entry = next((e for e in plan.payment_schedule if e.month == payment.month), None)
        if entry is None:
            raise InvalidArgument(
                f"Month {payment.month} is not in the schedule of plan {plan_id}",
                "month",
                payment.month,
            )
        if entry.status == ScheduleEntryStatus.PAID:
            raise PreconditionFailed(
                f"Month {payment.month} of plan {plan_id} is already paid",
                "paymentSchedule.status",
                f"not {ScheduleEntryStatus.PAID.value}",
                ScheduleEntryStatus.PAID.value,
            )

        paid_date = payment.paid_date or utcnow()
        entry.status = ScheduleEntryStatus.PAID
        entry.paid_date = paid_date
        entry.paid_amount = payment.paid_amount or entry.amount

        plan.paid_months += 1
        plan.remaining_months = plan.installment_months - plan.paid_months
        plan.remaining_amount = plan.total_amount - entry.principal * plan.paid_months
        plan.last_payment_date = paid_date
        plan.last_modified = utcnow()

        next_due = next(
            (e for e in plan.payment_schedule if e.status != ScheduleEntryStatus.PAID), None
        )
        plan.next_payment_date = next_due.due_date if next_due else None

        if plan.paid_months == plan.installment_months:
            plan.status = InstallmentPlanStatus.COMPLETED
            plan.remaining_amount = 0
            plan.remaining_months = 0

        await self.records.put(plan.id, plan)
        logger.info(f"Payment recorded for installment {plan_id}, month {payment.month}")
        return plan

    async def upcoming_payments(
        self, days_ahead: int = 7, now: Optional[datetime] = None
    ) -> List[PaymentReminder]:
        """Next pending payment of each active plan falling due within `days_ahead` days."""
        now = now or utcnow()
        horizon = now + relativedelta(days=days_ahead)
        reminders = []
        for plan in await self.list_active():
            entry = next(
                (e for e in plan.payment_schedule if e.status == ScheduleEntryStatus.PENDING),
                None,
            )
            if entry is None or not now <= entry.due_date <= horizon:
                continue
            reminders.append(
                PaymentReminder(
                    installment_id=plan.id,
                    customer_id=plan.customer_id,
                    customer_name=plan.customer_name,
                    customer_phone=plan.customer_phone,
                    vehicle_model=plan.vehicle_model,
                    month=entry.month,
                    due_date=entry.due_date,
                    amount=entry.amount,
                    days_until_due=_days_between(entry.due_date, now),
                )
            )
        return sorted(reminders, key=lambda r: r.due_date)

    async def overdue_payments(self, now: Optional[datetime] = None) -> List[PaymentReminder]:
        """
        Unpaid entries past their due date, most overdue first.

        Pending entries found past due are marked overdue and the plan is
        written back.
        """
        now = now or utcnow()
        reminders = []
        for plan in await self.list_active():
            changed = False
            for entry in plan.payment_schedule:
                if entry.status == ScheduleEntryStatus.PAID or entry.due_date >= now:
                    continue
                if entry.status == ScheduleEntryStatus.PENDING:
                    entry.status = ScheduleEntryStatus.OVERDUE
                    changed = True
                reminders.append(
                    PaymentReminder(
                        installment_id=plan.id,
                        customer_id=plan.customer_id,
                        customer_name=plan.customer_name,
                        customer_phone=plan.customer_phone,
                        vehicle_model=plan.vehicle_model,
                        month=entry.month,
                        due_date=entry.due_date,
                        amount=entry.amount,
                        days_overdue=_days_between(now, entry.due_date),
                    )
                )
            if changed:
                plan.last_modified = utcnow()
                await self.records.put(plan.id, plan)
                logger.info(f"Marked overdue entries on installment plan {plan.id}")
        return sorted(reminders, key=lambda r: r.days_overdue, reverse=True)
