from __future__ import annotations

import fakeredis
import pytest
import redis

from src.classroom_attendance.classroom_attendance.attendance.session_manager import AttendanceSessionManager
from src.classroom_attendance.classroom_attendance.core.exceptions import NotFoundError, StoreUnavailableError
from src.classroom_attendance.classroom_attendance.ephemeral.redis_store import RedisEphemeralStore
from src.classroom_attendance.classroom_attendance.requests.model import EnrollmentRequest
from src.classroom_attendance.classroom_attendance.requests.queue import RequestQueue


@pytest.fixture
def client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def redis_store(client):
    return RedisEphemeralStore(client)


def test_session_key_layout_and_ttl(redis_store, client):
    sessions = AttendanceSessionManager(redis_store, ttl_seconds=300)

    sessions.start_session("CS101-A", "rao@example.com", {"latitude": 1.5, "longitude": 2.5})

    assert client.hgetall("attendance:CS101-A") == {"rao@example.com": '{"latitude": 1.5, "longitude": 2.5}'}
    assert 0 < client.ttl("attendance:CS101-A") <= 300


def test_stopping_last_actor_removes_key(redis_store, client):
    sessions = AttendanceSessionManager(redis_store)
    sessions.start_session("CS101-A", "rao@example.com", {"latitude": 1, "longitude": 2})

    sessions.stop_session("CS101-A", "rao@example.com")

    assert client.exists("attendance:CS101-A") == 0
    with pytest.raises(NotFoundError):
        sessions.get_active_location("CS101-A")


def test_enrollment_queue_layout(redis_store, client):
    queue = RequestQueue(redis_store)
    queue.stage_enrollment(
        "CS101-A", EnrollmentRequest(email="asha@example.com", name="Asha", scholarID="2112001", timestamp=1)
    )
    queue.stage_enrollment(
        "MA201-B", EnrollmentRequest(email="asha@example.com", name="Asha", scholarID="2112001", timestamp=2)
    )

    assert client.hexists("enrollment_requests:CS101-A", "asha@example.com")
    assert client.ttl("enrollment_requests:CS101-A") == -1
    assert queue.subjects_with_enrollment_from("asha@example.com") == ["CS101-A", "MA201-B"]


def test_string_helpers(redis_store, client):
    redis_store.setex("otp:a@example.com", 300, "hash")
    assert redis_store.get("otp:a@example.com") == "hash"
    assert redis_store.delete("otp:a@example.com") == 1
    assert redis_store.get("otp:a@example.com") is None
    assert redis_store.expire("missing", 10) is False


class _BrokenClient:
    def hgetall(self, key):
        raise redis.ConnectionError("connection refused")


def test_driver_errors_become_store_unavailable():
    store = RedisEphemeralStore(_BrokenClient())

    with pytest.raises(StoreUnavailableError):
        store.hgetall("attendance:CS101-A")


class _FailingPipeline:
    def hset(self, *args):
        return self

    def expire(self, *args):
        return self

    def execute(self):
        raise redis.ConnectionError("connection reset")


class _PipelineClient:
    def pipeline(self, transaction=True):
        return _FailingPipeline()


def test_session_write_is_one_transaction(redis_store, client):
    redis_store.hset_with_ttl("attendance:CS101-A", "rao@example.com", "{}", 300)

    assert client.hget("attendance:CS101-A", "rao@example.com") == "{}"
    assert 0 < client.ttl("attendance:CS101-A") <= 300

    with pytest.raises(StoreUnavailableError):
        RedisEphemeralStore(_PipelineClient()).hset_with_ttl("attendance:CS101-A", "rao@example.com", "{}", 300)
