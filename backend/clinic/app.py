"""
Flask application factory for the clinic JSON API.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import click
from flask import Flask
from flask_login import LoginManager

from clinic.core import config
from clinic.core.api_utils import api_response, register_error_handlers
from clinic.core.auth_decorators import AuthenticatedActor, actor_from_bearer
from clinic.core.limiter_config import limiter, rate_limit_enabled
from clinic.core.logging_config import setup_logging
from clinic.db.session import create_tables, get_sessionmaker
from clinic.domain.entities import Configuration
from clinic.domain.interfaces import IRepositoryGateway
from clinic.repositories.document_gateway import SqlAlchemyGateway
from clinic.services.appointment_service import AppointmentService
from clinic.services.configuration_service import ConfigurationService
from clinic.services.follow_up_service import FollowUpService
from clinic.services.identity_service import IdentityService
from clinic.services.injection_service import InjectionService
from clinic.services.patient_service import PatientService
from clinic.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)


@dataclass
class ClinicServices:
    """Service container stored in ``app.extensions["clinic"]``."""

    gateway: IRepositoryGateway
    configuration: ConfigurationService
    identity: IdentityService
    snapshots: SnapshotService
    patients: PatientService
    injections: InjectionService
    follow_ups: FollowUpService
    appointments: AppointmentService

    @classmethod
    def build(
        cls, gateway: IRepositoryGateway, configuration: Optional[Configuration] = None
    ) -> "ClinicServices":
        return cls(
            gateway=gateway,
            configuration=ConfigurationService(configuration),
            identity=IdentityService(gateway),
            snapshots=SnapshotService(gateway),
            patients=PatientService(gateway),
            injections=InjectionService(gateway),
            follow_ups=FollowUpService(gateway),
            appointments=AppointmentService(gateway),
        )


def _build_gateway(app: Flask) -> IRepositoryGateway:
    gateway = app.config.get("GATEWAY")
    if gateway is not None:
        return gateway
    database_url = app.config["DATABASE_URL"]
    create_tables(database_url)
    return SqlAlchemyGateway(get_sessionmaker(database_url))


def _init_login_manager(app: Flask, services: ClinicServices) -> None:
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return api_response(False, "Authentication required", status_code=401)

    @login_manager.user_loader
    def load_user(user_id):
        user = services.identity.get_user(user_id)
        if user is None or not user.is_active:
            return None
        return AuthenticatedActor(user.to_actor())

    @login_manager.request_loader
    def load_user_from_request(req):
        """Load the actor from an ``Authorization: Bearer`` JWT."""
        return actor_from_bearer(req.headers.get("Authorization"), services.identity)


def _init_limiter(app: Flask) -> None:
    app.config.setdefault("RATELIMIT_ENABLED", rate_limit_enabled(app.testing))
    limiter.init_app(app)
    limiter.enabled = app.config["RATELIMIT_ENABLED"]
    if not limiter.enabled:
        logger.info(
            "Rate limiting disabled", extra={"context": {"testing": app.testing}}
        )


def _init_sentry(app: Flask) -> None:
    sentry_dsn = os.getenv("SENTRY_DSN")
    environment = os.getenv("FLASK_ENV", "development")
    if not sentry_dsn or app.testing:
        logger.info(
            "Sentry not initialized",
            extra={"context": {"environment": environment}},
        )
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=environment,
        release=os.getenv("GIT_SHA", "unknown"),
        integrations=[FlaskIntegration(), SqlalchemyIntegration()],
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logger.info("Sentry initialized", extra={"context": {"environment": environment}})


def _register_blueprints(app: Flask) -> None:
    from clinic.controllers.appointment_controller import appointment_bp
    from clinic.controllers.auth_controller import auth_bp
    from clinic.controllers.dashboard_controller import dashboard_bp
    from clinic.controllers.follow_up_controller import follow_up_bp
    from clinic.controllers.health_controller import health_bp
    from clinic.controllers.injection_controller import injection_bp
    from clinic.controllers.patient_controller import patient_bp
    from clinic.controllers.reports_controller import reports_bp
    from clinic.controllers.settings_controller import settings_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(patient_bp)
    app.register_blueprint(injection_bp)
    app.register_blueprint(follow_up_bp)
    app.register_blueprint(appointment_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(health_bp)


def _register_cli(app: Flask, services: ClinicServices) -> None:
    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--name", required=True)
    @click.password_option()
    def create_admin(email, name, password):
        """Create the first administrator account."""
        user = services.identity.bootstrap_admin(email, name, password)
        if user is None:
            click.echo("Users already exist; nothing created.")
        else:
            click.echo(f"Administrator {user.email} created.")


def create_app(overrides: Optional[Mapping[str, Any]] = None) -> Flask:
    """Build the Flask app.

    ``overrides`` are applied to ``app.config`` before any service is built;
    tests use ``GATEWAY`` to inject a gateway and ``LOG_TO_FILE`` to keep
    logs on the console.
    """
    app = Flask(__name__)
    log_settings = config.get_log_settings()
    app.config.update(
        SECRET_KEY=config.get_secret_key(),
        DATABASE_URL=config.get_database_url(),
        LOG_LEVEL=log_settings["log_level"],
        LOG_JSON=log_settings["use_json_format"],
        LOG_TO_FILE=log_settings["log_to_file"],
        SQL_ECHO=os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes"),
    )
    if overrides:
        app.config.update(overrides)

    setup_logging(
        app,
        log_level=app.config["LOG_LEVEL"],
        enable_sql_echo=app.config["SQL_ECHO"],
        log_to_file=app.config["LOG_TO_FILE"],
        use_json_format=app.config["LOG_JSON"],
    )
    config.log_clinic_config()
    _init_sentry(app)

    services = ClinicServices.build(_build_gateway(app), app.config.get("CONFIGURATION"))
    app.extensions["clinic"] = services

    admin_email = os.getenv("ADMIN_EMAIL")
    admin_password = os.getenv("ADMIN_PASSWORD")
    if admin_email and admin_password:
        services.identity.bootstrap_admin(
            admin_email, os.getenv("ADMIN_NAME", "Administrator"), admin_password
        )

    _init_login_manager(app, services)
    _init_limiter(app)
    register_error_handlers(app)
    _register_blueprints(app)
    _register_cli(app, services)

    logger.info(
        "Clinic API ready",
        extra={"context": {"blueprints": sorted(app.blueprints), "testing": app.testing}},
    )
    return app
