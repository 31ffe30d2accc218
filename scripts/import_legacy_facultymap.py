# scripts/import_legacy_facultymap.py
"""Load a JSON dump of the old ``facultymap`` table into ``faculty_subject``.

    python scripts/import_legacy_facultymap.py facultymap.json

The dump is a list of rows (or ``{"rows": [...]}``) with ``user_id``,
``subject_id`` and ``student_id`` columns as they were stored.
"""
import argparse
import json
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir)))

from app import create_app  # noqa: E402
from extensions import db  # noqa: E402
from blueprints.core.errors import CorruptedMappingData  # noqa: E402
from blueprints.import_export.services import import_legacy_facultymap  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("dump", help="path to the JSON dump")
    parser.add_argument("--config", default=None, help="config name (dev, prod, test)")
    args = parser.parse_args()

    with open(args.dump, encoding="utf-8") as fh:
        payload = json.load(fh)
    rows = payload.get("rows", []) if isinstance(payload, dict) else payload

    app = create_app(args.config)
    with app.app_context():
        try:
            report = import_legacy_facultymap(db.session, rows)
        except CorruptedMappingData as ex:
            print(f"[import] aborted: {ex.message} ({ex.error})", file=sys.stderr)
            return 1
    print(json.dumps(report.as_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
