from hrcloud.health import health_bp
from hrcloud.observability.metrics import metrics_bp

from .admin import admin_bp
from .companies import companies_bp
from .functions import functions_bp


def register_blueprints(app):
    app.register_blueprint(functions_bp)
    app.register_blueprint(companies_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(metrics_bp)
