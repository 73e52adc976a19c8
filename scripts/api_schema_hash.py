"""
api_schema_hash.py — fingerprint the stats API's OpenAPI document.

public/app.js talks to /api/stats, /api/visit, /api/click and /api/vote
directly, so any change to those request/response models must ship together
with a page update. CI stores the fingerprint and flags a mismatch.

Usage:
    python scripts/api_schema_hash.py                 # writes api_schema_hash.txt
    python scripts/api_schema_hash.py out/hash.txt
"""

import hashlib
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

DEFAULT_OUT = "api_schema_hash.txt"


def schema_hash(app) -> str:
    schema = app.openapi()
    # title/version churn is not an API change
    schema.pop("info", None)
    canonical = json.dumps(schema, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


def main(out_path: str = DEFAULT_OUT):
    from main import app

    digest = schema_hash(app)
    with open(out_path, "w") as f:
        f.write(digest)
    print(f"Stats API schema: {digest} -> {out_path}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_OUT)
