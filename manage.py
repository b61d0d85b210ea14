"""Management script for database setup and lifecycle jobs"""

import json

from dotenv import load_dotenv
from flask.cli import FlaskGroup

load_dotenv()

from hrcloud import create_app, services  # noqa: E402
from hrcloud.errors import JobAlreadyRunning  # noqa: E402
from hrcloud.extensions import db  # noqa: E402
from hrcloud.models import Plan  # noqa: E402

app = create_app()
cli = FlaskGroup(create_app=lambda: app)

DEFAULT_PLANS = [
    {"name": "Free", "price_monthly": 0, "price_yearly": 0, "trial_enabled": False},
    {"name": "Starter", "price_monthly": 29, "price_yearly": 290, "trial_enabled": True},
    {"name": "Business", "price_monthly": 79, "price_yearly": 790, "trial_enabled": True},
]


@cli.command("init-db")
def init_db():
    """Initialize the database"""
    with app.app_context():
        db.create_all()
        print("✅ Database initialized successfully!")


@cli.command("seed-plans")
def seed_plans():
    """Seed the plan catalogue"""
    with app.app_context():
        created = 0
        for plan_data in DEFAULT_PLANS:
            if Plan.query.filter_by(name=plan_data["name"]).first():
                print(f"⚠️  Plan '{plan_data['name']}' already exists. Skipping.")
                continue
            db.session.add(Plan(**plan_data))
            created += 1

        db.session.commit()
        print(f"✅ {created} plan(s) created.")


def _run_job(build):
    with app.app_context():
        try:
            result = build().run()
        except JobAlreadyRunning as e:
            print(f"❌ {e}")
            return
        print(json.dumps(result, indent=2, default=str))
        print("✅ Job finished.")


@cli.command("run-health-sweep")
def run_health_sweep():
    """Run the subscription health sweep once"""
    print("🔄 Checking subscription health...")
    _run_job(services.health_sweep)


@cli.command("run-trial-cron")
def run_trial_cron():
    """Run the trial lifecycle job once"""
    print("🔄 Processing trials...")
    _run_job(services.trial_cron)


if __name__ == "__main__":
    cli()
