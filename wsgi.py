import os

from dotenv import load_dotenv

load_dotenv()

from hrcloud import create_app  # noqa: E402
from hrcloud.workers import celery_app  # noqa: E402

config = os.getenv("APP_ENV", "production")

app = create_app(config)
celery = celery_app

print(f"[BOOT] Running in {config} mode")
