"""
main.py

Flask entry point for the S3 upload slot broker.

Environment:
  - SERVED_HOSTS and S3_* options select the hosts and their module options
  - ROUTE_TABLE=redis shares routes through Redis (REDIS_* settings)
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
"""

import atexit
import logging
import os

from app_factory import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
atexit.register(app.supervisor.stop_all)

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug)
