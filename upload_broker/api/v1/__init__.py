"""
API v1 - Upload Broker REST API

Transport ingress for exchanges and administration of running brokers,
with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

# Get API version from environment
API_VERSION = os.getenv("API_VERSION", "v1")

# Create blueprint for API v1
api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_v1_bp,
    version="1.0",
    title="Upload Broker API",
    description="HTTP File Upload (XEP-0363) slot broker backed by S3 presigned URLs",
    doc="/docs",  # Swagger UI will be available at /api/v1/docs
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import exchange_ns, host_ns  # noqa: E402

# Register namespaces
api.add_namespace(exchange_ns, path="/exchanges")
api.add_namespace(host_ns, path="/hosts")
