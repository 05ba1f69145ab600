# app.py
import logging

import click
from flask import Flask, jsonify
from werkzeug.security import generate_password_hash

from config import Config
from models import db
from models.user_model import Role, User
from routes.auth_routes import auth_bp
from routes.classes_routes import classes_bp
from routes.faculty_routes import faculty_bp
from routes.student_routes import student_bp

# registers the remaining tables with db.metadata
from models import activity_model, session_model  # noqa: F401

logger = logging.getLogger(__name__)


def setup_logging(level="INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    setup_logging(app.config["LOG_LEVEL"])
    db.init_app(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(classes_bp, url_prefix="/classes")
    app.register_blueprint(student_bp, url_prefix="/student")
    app.register_blueprint(faculty_bp, url_prefix="/faculty")

    @app.route("/")
    def root():
        return jsonify({"status": "ok"})

    register_commands(app)

    # create tables on startup, safe to run repeatedly
    with app.app_context():
        db.create_all()

    return app


def register_commands(app):
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables."""
        db.create_all()
        click.echo("Database initialized.")

    @app.cli.command("create-user")
    @click.argument("username")
    @click.argument("name")
    @click.option("--role", type=click.Choice([r.value for r in Role]), default=Role.STUDENT.value)
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--roll-no", default=None)
    def create_user_command(username, name, role, password, roll_no):
        """Add a portal user."""
        if User.query.filter_by(username=username).first():
            raise click.ClickException(f"user {username!r} already exists")
        user = User(username=username, name=name, role=Role(role),
                    password=generate_password_hash(password), roll_no=roll_no)
        db.session.add(user)
        db.session.commit()
        logger.info("Created %s user %s", role, username)
        click.echo(f"Created {role} {username} (id {user.id})")


if __name__ == '__main__':
    create_app().run(debug=True)
