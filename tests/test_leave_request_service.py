"""
Labor Administration - Leave Request Service Tests

Covers the request workflow (create, review, delete) and the leave expiry sweep.
"""

from datetime import date

import pytest
import pytest_asyncio

from app.models.hr import EmploymentState, LaborChangeType, LeaveRequestStatus, LeaveType
from app.schemas.worker import LaborChangeRequest
from app.services.employment_history_service import EmploymentHistoryService
from app.services.employment_record_service import EmploymentRecordService
from app.services.file_storage_service import FileCategory
from app.services.labor_change_service import LaborChangeService
from app.services.leave_request_service import LeaveRequestService
from app.utils.error_handling import ErrorCode


@pytest.fixture
def leave_service(db_session, storage):
    return LeaveRequestService(db_session, storage=storage)


@pytest_asyncio.fixture
async def medical_request(leave_service, test_worker, pdf_upload):
    """A pending medical leave for 2024-03-01..2024-03-15."""
    leave_request, error = await leave_service.create_request(
        test_worker.id,
        LeaveType.MEDICAL_LEAVE,
        date(2024, 3, 1),
        date(2024, 3, 15),
        "Reposo médico",
        attachment=pdf_upload,
    )
    assert error is None
    return leave_request


async def _record(db_session, worker_id):
    record, error = await EmploymentRecordService(db_session).get_record_by_worker(worker_id)
    assert error is None
    return record


class TestCreateRequest:
    """Test cases for leave request registration."""

    @pytest.mark.asyncio
    async def test_medical_leave_with_certificate(self, medical_request, storage):
        assert medical_request.status == LeaveRequestStatus.PENDING
        assert medical_request.attachment_file.startswith("leave_attachments/")
        assert storage.resolve_path(medical_request.attachment_file, FileCategory.LEAVE_ATTACHMENT) is not None

    @pytest.mark.asyncio
    async def test_medical_leave_requires_attachment(self, leave_service, test_worker):
        leave_request, error = await leave_service.create_request(
            test_worker.id, "medical_leave", date(2024, 3, 1), date(2024, 3, 5), "Gripe",
        )
        assert leave_request is None
        assert error.code == ErrorCode.MISSING_FIELD
        assert error.field == "attachment"

    @pytest.mark.asyncio
    async def test_permit_without_attachment(self, leave_service, test_worker):
        leave_request, error = await leave_service.create_request(
            test_worker.id, "administrative_permit", date(2024, 4, 1), date(2024, 4, 2), "Trámite",
        )
        assert error is None
        assert leave_request.attachment_file is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("end", [date(2024, 3, 1), date(2024, 2, 28)])
    async def test_end_must_follow_start(self, leave_service, test_worker, end):
        _, error = await leave_service.create_request(
            test_worker.id, "administrative_permit", date(2024, 3, 1), end, "Trámite",
        )
        assert error.code == ErrorCode.INVALID_DATE_RANGE

    @pytest.mark.asyncio
    async def test_reason_required(self, leave_service, test_worker):
        _, error = await leave_service.create_request(
            test_worker.id, "administrative_permit", date(2024, 3, 1), date(2024, 3, 2), "  ",
        )
        assert error.field == "reason"

    @pytest.mark.asyncio
    async def test_invalid_attachment(self, leave_service, test_worker, pdf_upload):
        pdf_upload.content = b"not a pdf"
        _, error = await leave_service.create_request(
            test_worker.id, "medical_leave", date(2024, 3, 1), date(2024, 3, 5), "Gripe",
            attachment=pdf_upload,
        )
        assert error.code == ErrorCode.INVALID_FILE

    @pytest.mark.asyncio
    async def test_overlap_rejected(self, leave_service, medical_request, test_worker):
        # Touching the last day counts as overlap
        _, error = await leave_service.create_request(
            test_worker.id, "administrative_permit", date(2024, 3, 15), date(2024, 3, 20), "Trámite",
        )
        assert error.code == ErrorCode.LEAVE_OVERLAP

    @pytest.mark.asyncio
    async def test_rejected_request_does_not_block(self, leave_service, medical_request, test_worker):
        _, error = await leave_service.review_request(medical_request.id, "rejected")
        assert error is None

        _, error = await leave_service.create_request(
            test_worker.id, "administrative_permit", date(2024, 3, 10), date(2024, 3, 12), "Trámite",
        )
        assert error is None

    @pytest.mark.asyncio
    async def test_terminated_worker(self, db_session, leave_service, test_worker):
        _, error = await LaborChangeService(db_session).apply_labor_change(
            "termination", test_worker.id,
            LaborChangeRequest(change_type="termination", reason="Renuncia", effective_date=date(2024, 2, 1)),
        )
        assert error is None

        _, error = await leave_service.create_request(
            test_worker.id, "administrative_permit", date(2024, 3, 1), date(2024, 3, 2), "Trámite",
        )
        assert error.code == ErrorCode.WORKER_TERMINATED


class TestReviewRequest:
    """Test cases for approving and rejecting requests."""

    @pytest.mark.asyncio
    async def test_approve_opens_leave_period(self, db_session, hr_user, leave_service, medical_request, test_worker):
        reviewed, error = await leave_service.review_request(
            medical_request.id, "approved", reviewer_id=hr_user.id, comment="OK",
        )

        assert error is None
        assert reviewed.status == LeaveRequestStatus.APPROVED
        assert reviewed.reviewed_by_id == hr_user.id
        assert reviewed.reviewed_at is not None

        record = await _record(db_session, test_worker.id)
        assert record.state == EmploymentState.MEDICAL_LEAVE
        assert record.leave_start_date == date(2024, 3, 1)
        assert record.leave_end_date == date(2024, 3, 15)
        assert record.leave_reason == "Reposo médico"

        current = await EmploymentHistoryService(db_session).get_open_entry(test_worker.id)
        assert current.change_type == LaborChangeType.LEAVE
        assert current.start_date == date(2024, 3, 1)
        assert current.employment_state == EmploymentState.MEDICAL_LEAVE
        assert current.leave_request_id == medical_request.id

    @pytest.mark.asyncio
    async def test_review_only_once(self, leave_service, medical_request):
        _, error = await leave_service.review_request(medical_request.id, "approved")
        assert error is None

        _, error = await leave_service.review_request(medical_request.id, "rejected")
        assert error.code == ErrorCode.ALREADY_REVIEWED

    @pytest.mark.asyncio
    async def test_reject_leaves_record_untouched(self, db_session, leave_service, medical_request, test_worker):
        reviewed, error = await leave_service.review_request(
            medical_request.id, "rejected", comment="Certificado ilegible",
        )

        assert error is None
        assert reviewed.status == LeaveRequestStatus.REJECTED
        assert reviewed.reviewer_comment == "Certificado ilegible"

        record = await _record(db_session, test_worker.id)
        assert record.state == EmploymentState.ACTIVE
        assert record.leave_end_date is None

        entries, _ = await EmploymentHistoryService(db_session).get_by_worker(test_worker.id)
        assert len(entries) == 1

    @pytest.mark.asyncio
    async def test_pending_is_not_a_decision(self, leave_service, medical_request):
        _, error = await leave_service.review_request(medical_request.id, "pending")
        assert error.field == "status"

    @pytest.mark.asyncio
    async def test_second_approval_while_on_leave(self, leave_service, medical_request, test_worker):
        permit, error = await leave_service.create_request(
            test_worker.id, "administrative_permit", date(2024, 4, 1), date(2024, 4, 2), "Trámite",
        )
        assert error is None

        _, error = await leave_service.review_request(medical_request.id, "approved")
        assert error is None

        _, error = await leave_service.review_request(permit.id, "approved")
        assert error.code == ErrorCode.BUSINESS_RULE_VIOLATION


    @pytest.mark.asyncio
    async def test_failed_approval_rolls_back(self, db_session, leave_service, medical_request, test_worker, monkeypatch):
        worker_id = test_worker.id
        request_id = medical_request.id

        async def failing_open_entry(self, *args, **kwargs):
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(EmploymentHistoryService, "open_entry", failing_open_entry)

        reviewed, error = await leave_service.review_request(request_id, "approved")

        assert reviewed is None
        assert error.code == ErrorCode.DATABASE_ERROR

        leave_request, _ = await leave_service.get_request(request_id)
        assert leave_request.status == LeaveRequestStatus.PENDING
        assert leave_request.reviewed_at is None

        record = await _record(db_session, worker_id)
        assert record.state == EmploymentState.ACTIVE
        assert record.leave_start_date is None

        entries, _ = await EmploymentHistoryService(db_session).get_by_worker(worker_id)
        assert len(entries) == 1
        assert entries[0].end_date is None


class TestDeleteRequest:
    """Test cases for deleting requests."""

    @pytest.mark.asyncio
    async def test_delete_pending(self, leave_service, medical_request, storage):
        stored = medical_request.attachment_file

        deleted, error = await leave_service.delete_request(medical_request.id)

        assert error is None
        assert deleted is True
        assert storage.resolve_path(stored, FileCategory.LEAVE_ATTACHMENT) is None

        _, error = await leave_service.get_request(medical_request.id)
        assert error.code == ErrorCode.LEAVE_REQUEST_NOT_FOUND

    @pytest.mark.asyncio
    async def test_reviewed_cannot_be_deleted(self, leave_service, medical_request):
        await leave_service.review_request(medical_request.id, "rejected")

        deleted, error = await leave_service.delete_request(medical_request.id)
        assert deleted is None
        assert error.code == ErrorCode.CANNOT_DELETE


class TestLeaveExpiry:
    """Test cases for the leave expiry sweep."""

    @pytest.mark.asyncio
    async def test_sweep(self, db_session, leave_service, medical_request, test_worker):
        _, error = await leave_service.review_request(medical_request.id, "approved")
        assert error is None

        # The leave is still running on its last day
        assert await leave_service.expire_leaves(today=date(2024, 3, 15)) == 0
        record = await _record(db_session, test_worker.id)
        assert record.state == EmploymentState.MEDICAL_LEAVE

        assert await leave_service.expire_leaves(today=date(2024, 3, 16)) == 1

        record = await _record(db_session, test_worker.id)
        assert record.state == EmploymentState.ACTIVE
        assert record.leave_start_date is None
        assert record.leave_end_date is None
        assert record.leave_reason is None

        history = EmploymentHistoryService(db_session)
        current = await history.get_open_entry(test_worker.id)
        assert current.change_type == LaborChangeType.LEAVE_END
        assert current.start_date == date(2024, 3, 15)
        assert current.employment_state == EmploymentState.ACTIVE

        entries, _ = await history.get_by_worker(test_worker.id)
        leave_entry = next(e for e in entries if e.change_type == LaborChangeType.LEAVE)
        assert leave_entry.end_date == date(2024, 3, 15)
        assert leave_entry.end_reason == "Leave ended"

        # Nothing left to revert
        assert await leave_service.expire_leaves(today=date(2024, 3, 16)) == 0
