"""
Labor Administration - Employment Record Service Tests
"""

from datetime import date

import pytest

from app.models.hr import EmploymentState, HealthInsurance, PensionFund
from app.schemas.worker import EmploymentRecordUpdate, LaborChangeRequest
from app.services.employment_history_service import EmploymentHistoryService
from app.services.employment_record_service import EmploymentRecordService
from app.services.file_storage_service import FileCategory
from app.services.labor_change_service import LaborChangeService
from app.utils.error_handling import ErrorCode


@pytest.fixture
def record_service(db_session, storage):
    return EmploymentRecordService(db_session, storage=storage)


async def _terminate(db_session, worker_id):
    _, error = await LaborChangeService(db_session).apply_labor_change(
        "termination", worker_id,
        LaborChangeRequest(change_type="termination", reason="Fin de contrato", effective_date=date(2024, 6, 30)),
    )
    assert error is None


class TestReadRecords:
    """Test cases for record queries."""

    @pytest.mark.asyncio
    async def test_list_filters(self, record_service, test_worker, other_worker):
        records = await record_service.list_records()
        assert [r.worker_id for r in records] == [test_worker.id, other_worker.id]

        records = await record_service.list_records(search="soto")
        assert [r.worker_id for r in records] == [other_worker.id]

        records = await record_service.list_records(state=EmploymentState.TERMINATED)
        assert records == []

    @pytest.mark.asyncio
    async def test_get_by_worker(self, record_service, test_worker):
        record, error = await record_service.get_record_by_worker(test_worker.id)

        assert error is None
        assert record.id == test_worker.employment_record.id
        assert record.worker.rut == test_worker.rut


class TestUpdateRecord:
    """Test cases for direct HR edits."""

    @pytest.mark.asyncio
    async def test_update_unprotected_fields(self, record_service, test_worker):
        record, error = await record_service.update_record(
            test_worker.employment_record.id,
            EmploymentRecordUpdate(
                health_insurance=HealthInsurance.FONASA,
                pension_fund=PensionFund.MODELO,
                unemployment_insurance=True,
            ),
        )

        assert error is None
        assert record.health_insurance == HealthInsurance.FONASA
        assert record.pension_fund == PensionFund.MODELO
        assert record.unemployment_insurance is True
        assert record.job_title == "Analista"

    def test_protected_fields_are_rejected(self):
        with pytest.raises(ValueError):
            EmploymentRecordUpdate(base_salary=2000000)

    @pytest.mark.asyncio
    async def test_contract_end_before_start(self, record_service, test_worker):
        _, error = await record_service.update_record(
            test_worker.employment_record.id, EmploymentRecordUpdate(contract_end_date=date(2023, 12, 31)),
        )
        assert error.code == ErrorCode.INVALID_DATE_RANGE

    @pytest.mark.asyncio
    async def test_terminated_record_is_read_only(self, db_session, record_service, test_worker):
        record_id = test_worker.employment_record.id
        await _terminate(db_session, test_worker.id)

        _, error = await record_service.update_record(record_id, EmploymentRecordUpdate(unemployment_insurance=False))
        assert error.code == ErrorCode.WORKER_TERMINATED


class TestContractFile:
    """Test cases for the contract PDF."""

    @pytest.mark.asyncio
    async def test_attach_and_remove(self, db_session, record_service, storage, test_worker, pdf_upload):
        record_id = test_worker.employment_record.id

        record, error = await record_service.attach_contract(record_id, pdf_upload)
        assert error is None
        stored = record.contract_file
        assert stored.startswith("contracts/")

        # The ledger is not rewritten by an attachment
        current = await EmploymentHistoryService(db_session).get_open_entry(test_worker.id)
        assert current.contract_file is None

        path, error = await record_service.get_contract_path(record_id)
        assert error is None
        assert path.read_bytes() == pdf_upload.content

        record, error = await record_service.remove_contract(record_id)
        assert error is None
        assert record.contract_file is None
        assert storage.resolve_path(stored, FileCategory.CONTRACT) is None

        _, error = await record_service.get_contract_path(record_id)
        assert error.code == ErrorCode.FILE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_history_keeps_contract_in_force_when_written(
        self, db_session, record_service, storage, test_worker, pdf_upload,
    ):
        record_id = test_worker.employment_record.id
        first, _ = await record_service.attach_contract(record_id, pdf_upload)
        first_file = first.contract_file

        _, error = await LaborChangeService(db_session).apply_labor_change(
            "role_change", test_worker.id,
            LaborChangeRequest(change_type="role_change", job_title="Contador", effective_date=date(2024, 5, 1)),
        )
        assert error is None

        history = EmploymentHistoryService(db_session)
        role_entry = await history.get_open_entry(test_worker.id)
        assert role_entry.contract_file == first_file

        pdf_upload.filename = "anexo.pdf"
        second, error = await record_service.attach_contract(record_id, pdf_upload)

        assert error is None
        assert second.contract_file != first_file
        assert storage.resolve_path(first_file, FileCategory.CONTRACT) is not None

        role_entry = await history.get_open_entry(test_worker.id)
        assert role_entry.contract_file == first_file

        path, error = await history.get_entry_contract_path(role_entry.id, storage=storage)
        assert error is None
        assert path.read_bytes() == pdf_upload.content

    @pytest.mark.asyncio
    async def test_invalid_upload(self, record_service, test_worker, pdf_upload):
        pdf_upload.content_type = "image/jpeg"
        _, error = await record_service.attach_contract(test_worker.employment_record.id, pdf_upload)
        assert error.code == ErrorCode.INVALID_FILE

    @pytest.mark.asyncio
    async def test_remove_without_contract(self, record_service, test_worker):
        _, error = await record_service.remove_contract(test_worker.employment_record.id)
        assert error.code == ErrorCode.FILE_NOT_FOUND
