from __future__ import annotations
import logging
import os
from importlib import import_module

from flask import Flask
from sqlalchemy import event, inspect, select

from config import config_map
from extensions import db, migrate, login_manager

log = logging.getLogger(__name__)


def _sqlite_foreign_keys(app: Flask) -> None:
    # SQLite игнорирует ON DELETE CASCADE, пока pragma не включена на каждом соединении
    with app.app_context():
        if db.engine.dialect.name != "sqlite":
            return

        @event.listens_for(db.engine, "connect")
        def _on_connect(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()


def _seed_from_config(app: Flask) -> None:
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # таблицы может ещё не быть (до `flask db upgrade`)
        if not inspect(db.engine).has_table("user"):
            return

        from models import User  # локальный импорт, чтобы избежать циклов
        created = 0
        for u in app.config.get("DEFAULT_USERS", []):
            email = u["email"].strip().lower()
            if db.session.scalars(select(User.id).where(User.email == email)).first():
                continue
            user = User(name=u.get("name") or email, email=email, role=u["role"])
            user.set_password(u["password"])
            db.session.add(user)
            created += 1
        if created:
            db.session.commit()
            log.info("seeded %d default users", created)


def register_blueprints(app: Flask) -> None:
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp
    from blueprints.auth.routes import api_bp as auth_api_bp
    from blueprints.subjects.routes import api_bp as subjects_api_bp
    from blueprints.students.routes import api_bp as students_api_bp
    from blueprints.faculty.routes import api_bp as faculty_api_bp
    from blueprints.mapping.routes import api_bp as mapping_api_bp
    from blueprints.import_export.routes import api_bp as import_export_api_bp

    # core без префикса → '/' и '/health' в корне
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_api_bp, url_prefix="/api")
    app.register_blueprint(subjects_api_bp, url_prefix="/api")
    app.register_blueprint(students_api_bp, url_prefix="/api")
    app.register_blueprint(faculty_api_bp, url_prefix="/api")
    app.register_blueprint(mapping_api_bp, url_prefix="/api")
    app.register_blueprint(import_export_api_bp, url_prefix="/api")


def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    _sqlite_foreign_keys(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=application.config["PORT"])
