"""
Labor Administration - Bonus Service Tests
"""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from app.models.bonus import BonusCategory, BonusRecurrence
from app.schemas.bonus import (
    BonusAssignmentCreate,
    BonusAssignmentUpdate,
    BonusCreate,
    BonusUpdate,
)
from app.schemas.worker import LaborChangeRequest
from app.services.bonus_service import BonusService, compute_end_date, format_amount
from app.services.labor_change_service import LaborChangeService
from app.utils.error_handling import ErrorCode


@pytest_asyncio.fixture
async def recurring_bonus(db_session):
    """A six-month recurring bonus."""
    bonus, error = await BonusService(db_session).create_bonus(BonusCreate(
        name="Bono de colación",
        amount=Decimal("45000"),
        category=BonusCategory.COMPANY,
        recurrence=BonusRecurrence.RECURRING,
        duration_months=6,
        taxable=False,
    ))
    assert error is None
    return bonus


@pytest_asyncio.fixture
async def one_off_bonus(db_session):
    bonus, error = await BonusService(db_session).create_bonus(BonusCreate(
        name="Aguinaldo fiestas patrias",
        amount=Decimal("80000.5"),
        category=BonusCategory.STATE,
        recurrence=BonusRecurrence.ONE_OFF,
    ))
    assert error is None
    return bonus


class TestHelpers:
    """Test cases for end date and amount helpers."""

    def test_end_date_permanent(self):
        assert compute_end_date(BonusRecurrence.PERMANENT, date(2024, 1, 31)) is None

    def test_end_date_one_off(self):
        assert compute_end_date(BonusRecurrence.ONE_OFF, date(2024, 1, 31)) == date(2024, 1, 31)

    def test_end_date_recurring(self):
        assert compute_end_date(BonusRecurrence.RECURRING, date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert compute_end_date(BonusRecurrence.RECURRING, date(2024, 3, 15), 12) == date(2025, 3, 15)

    def test_end_date_recurring_needs_duration(self):
        with pytest.raises(ValueError):
            compute_end_date(BonusRecurrence.RECURRING, date(2024, 1, 1))

    @pytest.mark.parametrize("amount,expected", [
        (150000, "150000.00"),
        ("1234.5", "1234.50"),
        (Decimal("10.005"), "10.01"),
        (0.1, "0.10"),
    ])
    def test_format_amount(self, amount, expected):
        assert format_amount(amount) == expected


class TestBonusCatalog:
    """Test cases for bonus definitions."""

    @pytest.mark.asyncio
    async def test_create(self, recurring_bonus, one_off_bonus):
        assert recurring_bonus.amount == "45000.00"
        assert recurring_bonus.duration_months == 6
        assert one_off_bonus.amount == "80000.50"
        assert one_off_bonus.duration_months is None

    @pytest.mark.asyncio
    async def test_duplicate_name_case_insensitive(self, db_session, recurring_bonus):
        bonus, error = await BonusService(db_session).create_bonus(BonusCreate(
            name="BONO DE COLACIÓN", amount=Decimal("1000"),
        ))
        assert bonus is None
        assert error.code == ErrorCode.DUPLICATE_ENTRY
        assert error.details["field"] == "name"

    @pytest.mark.asyncio
    async def test_duplicate_signature(self, db_session, recurring_bonus):
        _, error = await BonusService(db_session).create_bonus(BonusCreate(
            name="Bono de movilización",
            amount=Decimal("45000.00"),
            recurrence=BonusRecurrence.RECURRING,
            duration_months=6,
            taxable=False,
        ))
        assert error.code == ErrorCode.DUPLICATE_ENTRY
        assert error.details["field"] == "signature"

    @pytest.mark.asyncio
    async def test_same_amount_different_duration_is_allowed(self, db_session, recurring_bonus):
        _, error = await BonusService(db_session).create_bonus(BonusCreate(
            name="Bono de movilización",
            amount=Decimal("45000"),
            recurrence=BonusRecurrence.RECURRING,
            duration_months=3,
            taxable=False,
        ))
        assert error is None

    def test_recurring_requires_duration(self):
        with pytest.raises(ValueError):
            BonusCreate(name="Bono", amount=Decimal("1000"), recurrence=BonusRecurrence.RECURRING)

    @pytest.mark.asyncio
    async def test_list_filters_and_pagination(self, db_session, recurring_bonus, one_off_bonus):
        service = BonusService(db_session)

        items, total = await service.list_bonuses(limit=1)
        assert total == 2
        assert [b.name for b in items] == ["Aguinaldo fiestas patrias"]

        items, total = await service.list_bonuses(taxable=False)
        assert total == 1
        assert items[0].id == recurring_bonus.id

        items, total = await service.list_bonuses(category=BonusCategory.STATE)
        assert [b.id for b in items] == [one_off_bonus.id]

    @pytest.mark.asyncio
    async def test_update_to_recurring_requires_duration(self, db_session, one_off_bonus):
        _, error = await BonusService(db_session).update_bonus(
            one_off_bonus.id, BonusUpdate(recurrence=BonusRecurrence.RECURRING),
        )
        assert error.field == "duration_months"

    @pytest.mark.asyncio
    async def test_delete_unused(self, db_session, one_off_bonus):
        service = BonusService(db_session)

        deleted, error = await service.delete_bonus(one_off_bonus.id)
        assert error is None
        assert deleted is True

        _, error = await service.get_bonus(one_off_bonus.id)
        assert error.code == ErrorCode.BONUS_NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_refused_while_assigned(self, db_session, test_worker, one_off_bonus):
        service = BonusService(db_session)
        _, error = await service.assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=one_off_bonus.id, assignment_date=date(2024, 9, 18),
        ))
        assert error is None

        deleted, error = await service.delete_bonus(one_off_bonus.id)
        assert deleted is None
        assert error.code == ErrorCode.CANNOT_DELETE


class TestBonusAssignments:
    """Test cases for granting bonuses to workers."""

    @pytest.mark.asyncio
    async def test_assign_recurring(self, db_session, test_worker, recurring_bonus):
        assignment, error = await BonusService(db_session).assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=recurring_bonus.id, assignment_date=date(2024, 8, 31),
        ))

        assert error is None
        assert assignment.is_active is True
        assert assignment.employment_record_id == test_worker.employment_record.id
        assert assignment.end_date == date(2025, 2, 28)
        assert assignment.bonus.name == "Bono de colación"

    @pytest.mark.asyncio
    async def test_assign_one_off(self, db_session, test_worker, one_off_bonus):
        assignment, error = await BonusService(db_session).assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=one_off_bonus.id, assignment_date=date(2024, 9, 18),
        ))
        assert error is None
        assert assignment.end_date == date(2024, 9, 18)

    @pytest.mark.asyncio
    async def test_duplicate_active_assignment(self, db_session, test_worker, recurring_bonus):
        service = BonusService(db_session)
        payload = BonusAssignmentCreate(worker_id=test_worker.id, bonus_id=recurring_bonus.id)

        first, error = await service.assign_bonus(payload)
        assert error is None

        _, error = await service.assign_bonus(payload)
        assert error.code == ErrorCode.DUPLICATE_ENTRY

        # Once deactivated the bonus can be granted again
        _, error = await service.deactivate_assignment(first.id)
        assert error is None
        _, error = await service.assign_bonus(payload)
        assert error is None

    @pytest.mark.asyncio
    async def test_terminated_worker(self, db_session, test_worker, recurring_bonus):
        _, error = await LaborChangeService(db_session).apply_labor_change(
            "termination", test_worker.id,
            LaborChangeRequest(change_type="termination", reason="Renuncia", effective_date=date(2024, 5, 31)),
        )
        assert error is None

        _, error = await BonusService(db_session).assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=recurring_bonus.id,
        ))
        assert error.code == ErrorCode.WORKER_TERMINATED

    @pytest.mark.asyncio
    async def test_update_date_recomputes_end(self, db_session, test_worker, recurring_bonus):
        service = BonusService(db_session)
        assignment, _ = await service.assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=recurring_bonus.id, assignment_date=date(2024, 1, 10),
        ))

        updated, error = await service.update_assignment(
            assignment.id, BonusAssignmentUpdate(assignment_date=date(2024, 2, 1), notes="Ajuste"),
        )
        assert error is None
        assert updated.end_date == date(2024, 8, 1)
        assert updated.notes == "Ajuste"

    @pytest.mark.asyncio
    async def test_inactive_assignment_is_frozen(self, db_session, test_worker, recurring_bonus):
        service = BonusService(db_session)
        assignment, _ = await service.assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=recurring_bonus.id,
        ))

        deactivated, error = await service.deactivate_assignment(assignment.id)
        assert error is None
        assert deactivated.is_active is False

        _, error = await service.deactivate_assignment(assignment.id)
        assert error.code == ErrorCode.BUSINESS_RULE_VIOLATION

        _, error = await service.update_assignment(assignment.id, BonusAssignmentUpdate(notes="x"))
        assert error.code == ErrorCode.BUSINESS_RULE_VIOLATION

    @pytest.mark.asyncio
    async def test_bonus_schedule_change_recomputes_active_assignments(
        self, db_session, test_worker, other_worker, recurring_bonus,
    ):
        service = BonusService(db_session)
        active, _ = await service.assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=recurring_bonus.id, assignment_date=date(2024, 1, 15),
        ))
        inactive, _ = await service.assign_bonus(BonusAssignmentCreate(
            worker_id=other_worker.id, bonus_id=recurring_bonus.id, assignment_date=date(2024, 1, 15),
        ))
        await service.deactivate_assignment(inactive.id)

        _, error = await service.update_bonus(recurring_bonus.id, BonusUpdate(duration_months=12))
        assert error is None

        active, _ = await service.get_assignment(active.id)
        inactive, _ = await service.get_assignment(inactive.id)
        assert active.end_date == date(2025, 1, 15)
        assert inactive.end_date == date(2024, 7, 15)

        _, error = await service.update_bonus(
            recurring_bonus.id, BonusUpdate(recurrence=BonusRecurrence.PERMANENT),
        )
        assert error is None

        active, _ = await service.get_assignment(active.id)
        assert active.end_date is None

    @pytest.mark.asyncio
    async def test_list_assignments_by_worker(self, db_session, test_worker, other_worker, recurring_bonus):
        service = BonusService(db_session)
        mine, _ = await service.assign_bonus(BonusAssignmentCreate(
            worker_id=test_worker.id, bonus_id=recurring_bonus.id,
        ))
        await service.assign_bonus(BonusAssignmentCreate(
            worker_id=other_worker.id, bonus_id=recurring_bonus.id,
        ))

        assignments = await service.list_assignments(worker_id=test_worker.id)
        assert [a.id for a in assignments] == [mine.id]
        assert len(await service.list_assignments(bonus_id=recurring_bonus.id, is_active=True)) == 2
