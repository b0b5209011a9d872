"""
Labor Administration - Training Service Tests
"""

from datetime import date, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio

from app.schemas.training import TrainingCreate, TrainingUpdate
from app.schemas.worker import LaborChangeRequest
from app.services.file_storage_service import FileCategory
from app.services.labor_change_service import LaborChangeService
from app.services.training_service import TrainingService
from app.utils.calendar_dates import today
from app.utils.error_handling import ErrorCode


@pytest.fixture
def training_service(db_session, storage):
    return TrainingService(db_session, storage=storage)


def _course(**overrides) -> TrainingCreate:
    data = {
        "course_name": "Excel Avanzado",
        "institution": "OTEC Capacita",
        "training_date": date(2024, 4, 12),
        "duration": "24 horas",
    }
    data.update(overrides)
    return TrainingCreate(**data)


@pytest_asyncio.fixture
async def training(training_service, test_worker, pdf_upload):
    """A training of test_worker with a certificate."""
    created, error = await training_service.create_training(test_worker.id, _course(), certificate=pdf_upload)
    assert error is None
    return created


class TestCreateTraining:
    """Test cases for training registration."""

    @pytest.mark.asyncio
    async def test_with_certificate(self, training, storage, test_worker):
        assert training.worker_id == test_worker.id
        assert training.worker.rut == test_worker.rut
        assert training.certificate_file.startswith("training_certificates/")
        assert storage.resolve_path(training.certificate_file, FileCategory.TRAINING_CERTIFICATE) is not None

    @pytest.mark.asyncio
    async def test_without_certificate(self, training_service, test_worker):
        created, error = await training_service.create_training(
            test_worker.id, _course(course_name="  Primeros Auxilios  "),
        )
        assert error is None
        assert created.course_name == "Primeros Auxilios"
        assert created.certificate_file is None

    @pytest.mark.asyncio
    async def test_today_is_allowed(self, training_service, test_worker):
        _, error = await training_service.create_training(test_worker.id, _course(training_date=today()))
        assert error is None

    @pytest.mark.asyncio
    async def test_future_date_rejected(self, training_service, test_worker):
        _, error = await training_service.create_training(
            test_worker.id, _course(training_date=today() + timedelta(days=1)),
        )
        assert error.code == ErrorCode.INVALID_DATE_RANGE
        assert error.field == "training_date"

    @pytest.mark.asyncio
    async def test_blank_institution(self, training_service, test_worker):
        _, error = await training_service.create_training(test_worker.id, _course(institution="   "))
        assert error.field == "institution"

    @pytest.mark.asyncio
    async def test_unknown_worker(self, training_service):
        _, error = await training_service.create_training(uuid4(), _course())
        assert error.code == ErrorCode.WORKER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_worker_out_of_system(self, db_session, training_service, test_worker):
        worker_id = test_worker.id
        _, error = await LaborChangeService(db_session).apply_labor_change(
            "termination", worker_id,
            LaborChangeRequest(change_type="termination", reason="Renuncia", effective_date=date(2024, 6, 30)),
        )
        assert error is None

        _, error = await training_service.create_training(worker_id, _course())
        assert error.code == ErrorCode.WORKER_TERMINATED

    @pytest.mark.asyncio
    async def test_invalid_certificate(self, training_service, storage, test_worker, pdf_upload):
        pdf_upload.content = b"not a pdf"
        _, error = await training_service.create_training(test_worker.id, _course(), certificate=pdf_upload)

        assert error.code == ErrorCode.INVALID_FILE
        folder = storage.base_path / FileCategory.TRAINING_CERTIFICATE.value
        assert not folder.exists() or not any(folder.iterdir())


class TestListTrainings:
    """Test cases for training queries."""

    @pytest.mark.asyncio
    async def test_filters_and_order(self, training_service, test_worker, other_worker):
        await training_service.create_training(test_worker.id, _course(training_date=date(2024, 2, 1)))
        await training_service.create_training(
            test_worker.id, _course(institution="Universidad de Chile", training_date=date(2024, 5, 1)),
        )
        await training_service.create_training(other_worker.id, _course(training_date=date(2024, 3, 1)))

        items, total = await training_service.list_trainings()
        assert total == 3
        assert [t.training_date for t in items] == [date(2024, 5, 1), date(2024, 3, 1), date(2024, 2, 1)]

        items, total = await training_service.list_trainings(worker_id=test_worker.id)
        assert total == 2

        items, total = await training_service.list_trainings(institution="universidad")
        assert [t.institution for t in items] == ["Universidad de Chile"]

        items, total = await training_service.list_trainings(date_from=date(2024, 2, 15), date_to=date(2024, 4, 30))
        assert total == 1
        assert items[0].worker_id == other_worker.id

    @pytest.mark.asyncio
    async def test_pagination(self, training_service, test_worker):
        for month in range(1, 6):
            await training_service.create_training(test_worker.id, _course(training_date=date(2024, month, 1)))

        items, total = await training_service.list_trainings(limit=2, offset=2)

        assert total == 5
        assert [t.training_date for t in items] == [date(2024, 3, 1), date(2024, 2, 1)]

    @pytest.mark.asyncio
    async def test_list_for_unknown_worker(self, training_service):
        _, error = await training_service.list_for_worker(uuid4())
        assert error.code == ErrorCode.WORKER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_get_missing(self, training_service):
        _, error = await training_service.get_training(uuid4())
        assert error.code == ErrorCode.TRAINING_NOT_FOUND


class TestUpdateDeleteTraining:
    """Test cases for editing and removing trainings."""

    @pytest.mark.asyncio
    async def test_update(self, training_service, training):
        updated, error = await training_service.update_training(
            training.id, TrainingUpdate(duration="30 horas", training_date=date(2024, 4, 15)),
        )

        assert error is None
        assert updated.duration == "30 horas"
        assert updated.training_date == date(2024, 4, 15)
        assert updated.course_name == "Excel Avanzado"

    @pytest.mark.asyncio
    async def test_update_to_future_date(self, training_service, training):
        _, error = await training_service.update_training(
            training.id, TrainingUpdate(training_date=today() + timedelta(days=30)),
        )
        assert error.code == ErrorCode.INVALID_DATE_RANGE

    def test_certificate_is_not_editable(self):
        with pytest.raises(ValueError):
            TrainingUpdate(certificate_file="otro.pdf")

    @pytest.mark.asyncio
    async def test_certificate_path(self, training_service, training, pdf_upload):
        path, error = await training_service.get_certificate_path(training.id)
        assert error is None
        assert path.read_bytes() == pdf_upload.content

    @pytest.mark.asyncio
    async def test_delete_removes_certificate(self, training_service, training, storage):
        training_id = training.id
        stored = training.certificate_file

        deleted, error = await training_service.delete_training(training_id)

        assert error is None
        assert deleted is True
        assert storage.resolve_path(stored, FileCategory.TRAINING_CERTIFICATE) is None

        _, error = await training_service.get_training(training_id)
        assert error.code == ErrorCode.TRAINING_NOT_FOUND
