from flask import Blueprint

bp = Blueprint("core", __name__)

# маршруты регистрируются при импорте
from . import routes  # noqa: E402,F401
