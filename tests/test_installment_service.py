from datetime import datetime, timezone

import pytest

from evdock.core.exceptions import InvalidArgument, NotFound, PreconditionFailed
from evdock.models.installment import InstallmentPlanStatus, ScheduleEntryStatus
from evdock.schemas.installment import InstallmentPaymentCreate, InstallmentPlanDraft
from evdock.services.installment_service import build_payment_schedule, calculate_installment


START = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)


def plan_draft(deposit_id: str = "DEP1", months: int = 12) -> InstallmentPlanDraft:
    quote = calculate_installment(1_000_000_000, months, 6.0)
    return InstallmentPlanDraft(
        deposit_id=deposit_id,
        customer_id="CUS1",
        customer_name="Nguyen Van An",
        customer_phone="0901234567",
        vehicle_model="EV Sedan X",
        vehicle_color="Pearl White",
        total_amount=1_000_000_000,
        installment_months=months,
        interest_rate=6.0,
        monthly_payment=quote.monthly_payment,
        start_date=START,
        dealer_id="dealer001",
        created_by="Lan Tran",
    )


def test_schedule_follows_calendar_months():
    schedule = build_payment_schedule(1_200_000, 3, 403_000, 9_000, datetime(2026, 1, 31, tzinfo=timezone.utc))

    assert [e.due_date.date().isoformat() for e in schedule] == ["2026-02-28", "2026-03-31", "2026-04-30"]
    assert [e.remaining_balance for e in schedule] == [800_000, 400_000, 0]
    assert all(e.interest == 3_000 for e in schedule)


async def test_create_plan(installments):
    plan_id = await installments.create_installment_plan(plan_draft())
    plan = await installments.get_plan(plan_id)

    assert plan_id.startswith("INST")
    assert plan.status == InstallmentPlanStatus.ACTIVE
    assert len(plan.payment_schedule) == 12
    assert plan.payment_schedule[0].due_date == datetime(2026, 2, 15, 9, 0, tzinfo=timezone.utc)
    assert plan.end_date == datetime(2027, 1, 15, 9, 0, tzinfo=timezone.utc)
    assert plan.next_payment_date == plan.payment_schedule[0].due_date
    assert plan.remaining_months == 12
    assert plan.remaining_amount == 1_000_000_000
    assert plan.payment_schedule[-1].remaining_balance == pytest.approx(0, abs=0.01)
    assert sum(e.amount for e in plan.payment_schedule) == pytest.approx(plan.total_payable)


async def test_create_plan_is_keyed_by_deposit(installments):
    first = await installments.create_installment_plan(plan_draft("DEP1"))
    again = await installments.create_installment_plan(plan_draft("DEP1"))

    assert again == first
    assert await installments.find_plan_id_by_deposit("DEP1") == first
    assert await installments.find_plan_id_by_deposit("DEP2") is None
    assert len(await installments.list_active()) == 1


async def test_get_unknown_plan(installments):
    with pytest.raises(NotFound) as exc_info:
        await installments.get_plan("INST-MISSING")
    assert exc_info.value.entity == "InstallmentPlan"


async def test_record_payment(installments):
    plan_id = await installments.create_installment_plan(plan_draft())
    paid_on = datetime(2026, 2, 14, tzinfo=timezone.utc)

    plan = await installments.record_payment(
        plan_id, InstallmentPaymentCreate(month=1, paid_date=paid_on)
    )

    entry = plan.payment_schedule[0]
    assert entry.status == ScheduleEntryStatus.PAID
    assert entry.paid_date == paid_on
    assert entry.paid_amount == pytest.approx(plan.monthly_payment)
    assert plan.paid_months == 1
    assert plan.remaining_months == 11
    assert plan.remaining_amount == pytest.approx(1_000_000_000 * 11 / 12)
    assert plan.last_payment_date == paid_on
    assert plan.next_payment_date == plan.payment_schedule[1].due_date
    assert (await installments.get_plan(plan_id)).paid_months == 1


async def test_record_payment_rejections(installments):
    plan_id = await installments.create_installment_plan(plan_draft())
    await installments.record_payment(plan_id, InstallmentPaymentCreate(month=1))

    with pytest.raises(PreconditionFailed):
        await installments.record_payment(plan_id, InstallmentPaymentCreate(month=1))
    with pytest.raises(InvalidArgument) as exc_info:
        await installments.record_payment(plan_id, InstallmentPaymentCreate(month=13))
    assert exc_info.value.argument == "month"
    with pytest.raises(NotFound):
        await installments.record_payment("INST-MISSING", InstallmentPaymentCreate(month=1))


async def test_paying_every_month_completes_plan(installments):
    plan_id = await installments.create_installment_plan(plan_draft(months=6))

    for month in range(1, 7):
        plan = await installments.record_payment(plan_id, InstallmentPaymentCreate(month=month))

    assert plan.status == InstallmentPlanStatus.COMPLETED
    assert plan.remaining_amount == 0
    assert plan.remaining_months == 0
    assert plan.next_payment_date is None
    assert await installments.list_active() == []

    with pytest.raises(PreconditionFailed) as exc_info:
        await installments.record_payment(plan_id, InstallmentPaymentCreate(month=1))
    assert exc_info.value.actual == "completed"


async def test_upcoming_payments(installments):
    plan_id = await installments.create_installment_plan(plan_draft())

    reminders = await installments.upcoming_payments(
        days_ahead=7, now=datetime(2026, 2, 9, 9, 0, tzinfo=timezone.utc)
    )

    assert len(reminders) == 1
    assert reminders[0].installment_id == plan_id
    assert reminders[0].month == 1
    assert reminders[0].days_until_due == 6

    assert await installments.upcoming_payments(
        days_ahead=7, now=datetime(2026, 1, 20, tzinfo=timezone.utc)
    ) == []


async def test_upcoming_skips_paid_months(installments):
    plan_id = await installments.create_installment_plan(plan_draft())
    await installments.record_payment(plan_id, InstallmentPaymentCreate(month=1))

    reminders = await installments.upcoming_payments(
        days_ahead=7, now=datetime(2026, 3, 10, tzinfo=timezone.utc)
    )

    assert [r.month for r in reminders] == [2]


async def test_overdue_payments(installments):
    plan_id = await installments.create_installment_plan(plan_draft())

    overdue = await installments.overdue_payments(now=datetime(2026, 4, 20, 9, 0, tzinfo=timezone.utc))

    assert [r.month for r in overdue] == [1, 2, 3]
    assert [r.days_overdue for r in overdue] == [64, 36, 5]

    plan = await installments.get_plan(plan_id)
    statuses = [e.status for e in plan.payment_schedule[:4]]
    assert statuses == [
        ScheduleEntryStatus.OVERDUE,
        ScheduleEntryStatus.OVERDUE,
        ScheduleEntryStatus.OVERDUE,
        ScheduleEntryStatus.PENDING,
    ]

    # Already-overdue entries are still reported; paying one removes it
    await installments.record_payment(plan_id, InstallmentPaymentCreate(month=1))
    again = await installments.overdue_payments(now=datetime(2026, 4, 20, 9, 0, tzinfo=timezone.utc))
    assert [r.month for r in again] == [2, 3]
