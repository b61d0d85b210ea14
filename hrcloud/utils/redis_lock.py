# hrcloud/utils/redis_lock.py
import hashlib
import logging
import threading
from contextlib import contextmanager

from redis.exceptions import LockError
from sqlalchemy import text

from hrcloud.errors import JobAlreadyRunning
from hrcloud.extensions import db, get_redis

logger = logging.getLogger(__name__)

DEFAULT_TTL = 900

_local_locks = {}
_local_locks_guard = threading.Lock()


def lock_key(job_name):
    return f"lock:job:{job_name}"


@contextmanager
def redis_lock(client, job_name, ttl=DEFAULT_TTL):
    lock = client.lock(lock_key(job_name), timeout=ttl)
    acquired = lock.acquire(blocking=False)
    if not acquired:
        raise JobAlreadyRunning(job_name)

    try:
        yield
    finally:
        try:
            lock.release()
        except LockError:
            logger.warning(f"Lock for {job_name} expired before release")


def advisory_key(job_name):
    """Stable signed 64-bit key for pg_try_advisory_lock."""
    digest = hashlib.sha1(lock_key(job_name).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=True)


@contextmanager
def advisory_lock(engine, job_name):
    key = advisory_key(job_name)
    # Session-level advisory locks belong to one connection; hold it for the whole run
    with engine.connect() as conn:
        acquired = conn.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": key}).scalar()
        conn.commit()
        if not acquired:
            raise JobAlreadyRunning(job_name)
        try:
            yield
        finally:
            conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": key})
            conn.commit()


@contextmanager
def local_lock(job_name):
    with _local_locks_guard:
        lock = _local_locks.setdefault(job_name, threading.Lock())
    if not lock.acquire(blocking=False):
        raise JobAlreadyRunning(job_name)
    try:
        yield
    finally:
        lock.release()


@contextmanager
def job_lock(job_name, ttl=DEFAULT_TTL):
    """
    At most one concurrent run per job name.

    Redis when configured, otherwise a Postgres advisory lock, otherwise a
    lock local to this process. Raises JobAlreadyRunning when held.
    """
    client = get_redis()
    if client is not None:
        cm = redis_lock(client, job_name, ttl)
    elif db.engine.dialect.name == "postgresql":
        cm = advisory_lock(db.engine, job_name)
    else:
        cm = local_lock(job_name)

    with cm:
        logger.info(f"Acquired job lock {lock_key(job_name)}")
        yield
