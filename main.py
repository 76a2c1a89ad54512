"""
main.py

Development entry point for the sound pack gate.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, boto3, google-cloud-storage,
    redis, celery, apprise
  - Infrastructure: Redis server (subscription store, optional Celery broker)

Notes:
  - Swagger docs available at /docs
  - Storage tiers are enabled by the R2_* and GCS_* environment variables;
    the bundled local copy is always the last fallback
"""

import os

from app_factory import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug)
