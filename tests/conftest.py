import os
import threading
import time

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from farmlog.database import Base, make_engine, make_session_factory
from farmlog.repository import DocumentRepository
from farmlog.schemas import (
    FarmField, FarmUser, Fertilizer, OwnerContext, Pesticide, ReferenceData, Seed, WorkLogDraft,
)


@pytest.fixture
def session_factory(tmp_path):
    # a file database, so concurrent store calls each get their own connection
    engine = make_engine(f"sqlite:///{tmp_path / 'farmlog.db'}")
    Base.metadata.create_all(bind=engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def repo(session_factory):
    return DocumentRepository(session_factory)


@pytest.fixture
def owner():
    return OwnerContext(uid="owner-1", display_name="Hanako", email="hanako@example.com")


@pytest.fixture
def reference():
    return ReferenceData(
        fields=(FarmField(id="F1", name="North Field", user_id="owner-1"),),
        users=(FarmUser(id="U1", name="Taro"), FarmUser(id="U2", name="Jiro")),
        fertilizers=(
            Fertilizer(id="FZ1", name="NPK-1", nitrogen_content=14, user_id="owner-1"),
        ),
        seeds=(Seed(id="S1", name="Koshihikari", variety="early", user_id="owner-1"),),
        pesticides=(Pesticide(id="P1", name="Guard-X", type="insecticide", user_id="owner-1"),),
    )


@pytest.fixture
def fertilizing_draft():
    return WorkLogDraft(
        date="2024-05-01",
        field_id="F1",
        work_type="施肥",
        workers=["U1"],
        work_hours="2",
        fertilizer_id="FZ1",
        fertilizer_amount="10",
        fertilizer_unit="kg",
        fertilizer_method="全面散布",
    )


@pytest.fixture
def seeding_draft():
    return WorkLogDraft(
        date="2024-05-02",
        field_id="F1",
        work_type="播種",
        workers=["U1", "U2"],
        work_hours="3",
        seed_id="S1",
        seed_method="直播",
    )


@pytest.fixture
def pest_control_draft():
    return WorkLogDraft(
        date="2024-06-10",
        field_id="F1",
        work_type="防除",
        workers=["U2"],
        work_hours="1.5",
        pesticide_id="P1",
        target_pest="ウンカ",
        dilution_rate="1000",
        pesticide_amount="0.5",
        pesticide_unit="L",
        pesticide_method="動力噴霧器",
        weather="晴れ",
        temperature="24.5",
        wind_speed="2",
    )


class FlakyRepository(DocumentRepository):
    """Raises on the (operation, collection) pairs listed in ``failures``."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.failures = set()
        self.writes = []

    def _check(self, op, collection):
        if (op, collection) in self.failures:
            raise RuntimeError(f"{op} on {collection} unavailable")

    async def query(self, collection, field=None, value=None):
        self._check("query", collection)
        return await super().query(collection, field, value)

    async def get(self, collection, doc_id):
        self._check("get", collection)
        return await super().get(collection, doc_id)

    async def insert(self, collection, data):
        self._check("insert", collection)
        self.writes.append(("insert", collection))
        return await super().insert(collection, data)

    async def update(self, collection, doc_id, fields):
        self._check("update", collection)
        self.writes.append(("update", collection))
        return await super().update(collection, doc_id, fields)

    async def delete(self, collection, doc_id):
        self._check("delete", collection)
        self.writes.append(("delete", collection))
        return await super().delete(collection, doc_id)


@pytest.fixture
def flaky_repo(session_factory):
    return FlakyRepository(session_factory)


class SlowRepository(DocumentRepository):
    """Holds every query and get for ``delay`` seconds inside the worker thread."""

    def __init__(self, session_factory, delay=0.2):
        super().__init__(session_factory)
        self.delay = delay
        self.lock = threading.Lock()
        self.in_flight = 0
        self.peak = 0

    def _enter(self):
        with self.lock:
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
        time.sleep(self.delay)

    def _leave(self):
        with self.lock:
            self.in_flight -= 1

    def _query(self, collection, field, value):
        self._enter()
        try:
            return super()._query(collection, field, value)
        finally:
            self._leave()

    def _get(self, collection, doc_id):
        self._enter()
        try:
            return super()._get(collection, doc_id)
        finally:
            self._leave()


@pytest.fixture
def slow_repo(session_factory):
    return SlowRepository(session_factory)
