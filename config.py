from __future__ import annotations
import os
from urllib.parse import quote_plus


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _database_url() -> str:
    # DATABASE_URL в приоритете; иначе собираем MySQL URL из переменных DB_*
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "3306")
    user = os.getenv("DB_USER", "root")
    password = quote_plus(os.getenv("DB_PASSWORD", ""))
    name = os.getenv("DB_NAME", "t_app")
    return f"mysql+mysqlconnector://{user}:{password}@{host}:{port}/{name}"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # пул ограничен, при исчерпании запросы ждут в очереди
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_size": 10, "pool_recycle": 3600, "pool_pre_ping": True}
    JSON_SORT_KEYS = False
    PORT = int(os.getenv("PORT", "5000"))

    # пароль для пользователей, зарегистрированных без пароля
    DEFAULT_PASSWORD = os.getenv("DEFAULT_PASSWORD", "123")
    ADMIN_AUTH_REQUIRED = _env_flag("ADMIN_AUTH_REQUIRED", False)

    SEED_TEST_DATA = False
    DEFAULT_USERS: list[dict] = []


class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = _env_flag("SEED_TEST_DATA", True)
    DEFAULT_USERS = [
        {"name": "Admin", "email": "admin@example.com", "password": "admin", "role": "admin"},
    ]


class ProdConfig(BaseConfig):
    DEBUG = False


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False}}
    ADMIN_AUTH_REQUIRED = False


config_map = {
    "dev": DevConfig,
    "prod": ProdConfig,
    "test": TestConfig,
    "default": DevConfig,
}
