from __future__ import annotations

import sys
import threading
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from bayorder.application.mappers.cafe_mapper import cafe_to_document
from bayorder.application.mappers.collections import CAFES
from bayorder.application.ports.store import WriteBatch
from bayorder.application.use_cases.service_requests import RaiseServiceRequest
from bayorder.application.live.queries import new_requests_query
from bayorder.domain.cafe.entities import Cafe, default_tables
from bayorder.domain.common.ids import TableId
from bayorder.infrastructure.messaging.redis_change_feed import RedisChangeFeed
from bayorder.infrastructure.store.sql import SqlDocumentStore

pytestmark = pytest.mark.integration


def test_change_from_one_process_reaches_another(redis_available, cafe_id) -> None:
    writer = SqlDocumentStore(feed=RedisChangeFeed())
    reader = SqlDocumentStore(feed=RedisChangeFeed())
    cafe = Cafe(cafe_id=cafe_id, name="Feed Cafe", address="", tables=default_tables(1), table_count=1)
    writer.commit(WriteBatch().create(CAFES, str(cafe_id), cafe_to_document(cafe)))

    snapshots: list[int] = []
    delivered = threading.Event()

    def on_snapshot(documents) -> None:
        snapshots.append(len(documents))
        delivered.set()

    subscription = reader.subscribe(new_requests_query(cafe_id), on_snapshot)
    try:
        assert snapshots == [0]
        # the listener thread subscribes asynchronously; retry until it is live
        for _ in range(5):
            delivered.clear()
            RaiseServiceRequest(writer).execute(cafe_id, TableId("T1"))
            if delivered.wait(1.0) and snapshots[-1] >= 1:
                break
        assert snapshots[-1] >= 1
    finally:
        subscription.unsubscribe()
        writer.close()
        reader.close()
