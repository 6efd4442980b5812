"""
API Models for Swagger documentation

Exchanges are validated by the protocol codec rather than by Flask-RESTX,
so that malformed envelopes get the same structured errors as every
other failure.
"""

from flask_restx import fields

from upload_broker.api.v1 import api

# =============================================================================
# Request Models
# =============================================================================

exchange_model = api.model(
    "Exchange",
    {
        "id": fields.String(required=True, description="Exchange id", example="slot-1"),
        "type": fields.String(
            required=True,
            description="Exchange type",
            enum=["get", "set", "result", "error"],
            example="get",
        ),
        "from": fields.String(
            required=True, description="Sender JID", example="alice@example.com/phone"
        ),
        "to": fields.String(
            required=True, description="Recipient JID", example="upload.example.com"
        ),
        "lang": fields.String(description="Declared language", example="en"),
        "payload": fields.List(
            fields.Raw,
            description="Payload elements",
            example=[
                {
                    "element": "request",
                    "xmlns": "urn:xmpp:http:upload:0",
                    "filename": "photo.jpg",
                    "size": 1024,
                    "content-type": "image/jpeg",
                }
            ],
        ),
    },
)

module_options_request = api.model(
    "ModuleOptions",
    {
        "access_key_id": fields.String(required=True, description="S3 access key id"),
        "access_key_secret": fields.String(required=True, description="S3 secret key"),
        "region": fields.String(required=True, description="S3 region", example="us-east-1"),
        "bucket_url": fields.String(
            required=True,
            description="Storage base URL",
            example="https://bucket.s3.us-east-1.amazonaws.com",
        ),
        "download_url": fields.String(description="Public download base URL"),
        "max_size": fields.Raw(description="Maximum upload size in bytes or 'infinity'"),
        "set_public": fields.Boolean(description="Mark uploads public-read", default=True),
        "put_ttl": fields.Integer(description="Upload URL validity in seconds", default=600),
        "service_name": fields.String(description="Discovery name", default="S3 Upload"),
        "hosts": fields.List(fields.String, description="Endpoint address templates"),
        "access": fields.String(description="Access rule name", default="local"),
    },
)

# =============================================================================
# Response Models
# =============================================================================

host_model = api.model(
    "Host",
    {
        "host": fields.String(description="Logical host"),
        "addresses": fields.List(fields.String, description="Endpoint addresses"),
    },
)

hosts_response = api.model(
    "HostsResponse",
    {"hosts": fields.List(fields.Nested(host_model))},
)

reload_response = api.model(
    "ReloadResponse",
    {
        "host": fields.String(description="Logical host"),
        "status": fields.String(description="Reload status", example="queued"),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Error title"),
        "message": fields.String(description="User-friendly error message"),
        "action": fields.String(description="Suggested action"),
        "details": fields.String(description="Technical details"),
        "context": fields.Raw(description="Additional context"),
    },
)
