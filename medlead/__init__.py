import os
import logging

import click
from flask import Flask, jsonify, render_template, request
from flask_wtf.csrf import CSRFError
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash

from medlead.config import config_by_name
from medlead.errors import ServiceError
from medlead.extensions import db, migrate, login_manager, csrf, limiter

logger = logging.getLogger(__name__)

# Paths that only ever answer JSON.
_API_PREFIXES = ("/api/", "/auth/")


def _wants_json():
    return request.path.startswith(_API_PREFIXES)


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from medlead import models  # noqa: F401

    # --- Register blueprints ---
    from medlead.blueprints.auth import auth_bp
    from medlead.blueprints.leads import leads_bp
    from medlead.blueprints.pipelines import pipelines_bp
    from medlead.blueprints.pages import pages_bp
    from medlead.blueprints.capture import capture_bp
    from medlead.blueprints.public import public_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(pipelines_bp)
    app.register_blueprint(pages_bp)
    app.register_blueprint(capture_bp)
    # Registered last: its /<user_slug> routes are the catch-all
    app.register_blueprint(public_bp)

    # Public surfaces hit by anonymous visitors carry no CSRF token
    csrf.exempt(capture_bp)
    csrf.exempt(public_bp)

    # --- Error handlers ---
    @app.errorhandler(ServiceError)
    def service_error(e):
        db.session.rollback()
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(CSRFError)
    def csrf_error(e):
        return jsonify({"error": "Token CSRF ausente ou inválido."}), 400

    @app.errorhandler(401)
    def unauthorized(e):
        return jsonify({"error": "Não autorizado"}), 401

    @app.errorhandler(404)
    def not_found(e):
        if _wants_json():
            return jsonify({"error": "Recurso não encontrado"}), 404
        return render_template("errors/404.html"), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Método não permitido"}), 405

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"error": "Muitas requisições. Tente novamente mais tarde."}), 429

    @app.errorhandler(500)
    def server_error(e):
        db.session.rollback()
        original = getattr(e, "original_exception", None)
        if original is not None and not isinstance(original, HTTPException):
            logger.error(f"Unhandled error on {request.method} {request.path}: {original}")
        if _wants_json():
            return jsonify({"error": "Erro interno do servidor"}), 500
        return render_template("errors/500.html"), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Control referrer information
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=(), payment=()"
        )
        # Content Security Policy
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
            "img-src 'self' data: https:; "
            "font-src 'self' https://fonts.gstatic.com; "
            "connect-src 'self'; "
            "base-uri 'self'; "
            "form-action 'self'; "
            "frame-ancestors 'none';"
        )
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-doctor")
    @click.option("--email", default="doutor@medlead.local", help="Doctor email")
    @click.option("--password", default="medlead123", help="Doctor password")
    @click.option("--slug", default="dr-demo", help="Public page slug")
    def seed_doctor(email, password, slug):
        """Create a demo doctor with a page, a pipeline and a referral link.

        Usage:
            flask seed-doctor
            flask seed-doctor --email dr@example.com --password s3cret --slug dr-ana
        """
        from medlead.blocks import dump_block, parse_block
        from medlead.models.indication import Indication
        from medlead.models.page import Block, Page
        from medlead.models.pipeline import Pipeline
        from medlead.models.user import User

        # --- 1. Doctor ---
        doctor = User.query.filter_by(email=email).first()
        if doctor:
            click.echo(f"Doctor already exists: {email}")
            return
        if User.query.filter_by(slug=slug).first():
            raise click.ClickException(f"Slug already taken: {slug}")

        doctor = User(
            email=email,
            password_hash=generate_password_hash(password),
            full_name="Dr. Demo",
            slug=slug,
            phone="5511999999999",
        )
        db.session.add(doctor)
        db.session.flush()

        # --- 2. Default pipeline ---
        pipeline = Pipeline(
            user_id=doctor.id,
            name="Consultas",
            description="Pipeline padrão",
        )
        db.session.add(pipeline)
        db.session.flush()

        # --- 3. Public page ---
        page = Page(
            user_id=doctor.id,
            title="Dr. Demo",
            subtitle="Clínica geral",
        )
        starter_blocks = [
            ("FORM", {"title": "Agende sua consulta", "pipelineId": pipeline.id}),
            ("BUTTON", {"label": "Instagram", "url": "https://instagram.com/"}),
            ("ADDRESS", {"address": "Av. Paulista, 1000", "city": "São Paulo",
                         "state": "SP", "hasButton": True, "buttonLabel": "Como chegar"}),
        ]
        page.blocks = [
            Block(type=block_type, content=dump_block(parse_block(block_type, content)),
                  order=position)
            for position, (block_type, content) in enumerate(starter_blocks)
        ]
        db.session.add(page)

        # --- 4. Referral link ---
        indication = Indication(user_id=doctor.id, name="Instagram", slug="instagram")
        db.session.add(indication)

        db.session.commit()

        base_url = app.config["APP_BASE_URL"]

        click.echo("")
        click.echo("=" * 60)
        click.echo("Seed data created successfully!")
        click.echo("=" * 60)
        click.echo(f"  Doctor:    {email} / {password}")
        click.echo(f"  Page:      {base_url}/{slug}")
        click.echo(f"  Referral:  {base_url}/{slug}/{indication.slug}")
        click.echo(f"  Pipeline:  {pipeline.name} (id: {pipeline.id})")
        click.echo("=" * 60)

    @app.cli.command("import-leads")
    @click.option("--email", required=True, help="Owner's email")
    @click.argument("csv_file", type=click.File("rb"))
    def import_leads(email, csv_file):
        """Bulk-import leads from a CSV file for one doctor.

        Usage:
            flask import-leads --email dr@example.com pacientes.csv
        """
        from medlead.errors import ValidationError
        from medlead.models.user import User
        from medlead.services import import_service

        owner = User.query.filter_by(email=email.lower().strip()).first()
        if owner is None:
            raise click.ClickException(f"No user with email {email}")

        try:
            rows = import_service.read_csv(csv_file)
            result = import_service.import_rows(
                owner.id, rows, app.config["IMPORT_MAX_ROWS"]
            )
        except ValidationError as e:
            db.session.rollback()
            raise click.ClickException(e.message)
        db.session.commit()

        click.echo(f"Imported {result['imported']} of {result['total']} row(s).")
        for error in result["errors"]:
            click.echo(f"  row {error['row']}: {error['error']}")
