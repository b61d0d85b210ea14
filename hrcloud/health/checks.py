import time

from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hrcloud.extensions import db, get_redis


def _check_database():
    start = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        latency = round((time.time() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency}
    except SQLAlchemyError as e:
        db.session.rollback()
        return {"status": "error", "error": str(e)}


def _check_redis():
    client = get_redis()
    if client is None:
        return {"status": "skipped", "reason": "REDIS_URL not set"}

    start = time.time()
    try:
        client.ping()
        latency = round((time.time() - start) * 1000, 2)
        return {"status": "ok", "latency_ms": latency}
    except RedisError as e:
        return {"status": "error", "error": str(e)}


def run_health_checks():
    checks = {
        "database": _check_database(),
        "redis": _check_redis(),
    }
    degraded = any(check["status"] == "error" for check in checks.values())
    return {
        "status": "degraded" if degraded else "ok",
        "checks": checks,
    }
