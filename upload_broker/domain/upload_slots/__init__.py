"""
Upload Slots Domain

Service parameter snapshots, object naming and presigned URL construction.
"""

from .services import (
    SlotIssuer,
    decorated_put_url,
    object_name,
    object_url,
    upload_parameters,
)
from .signer import IUrlSigner
from .value_objects import AwsCredentials, ObjectName, ServiceParameters, Slot, UploadRequest

__all__ = [
    "AwsCredentials",
    "IUrlSigner",
    "ObjectName",
    "ServiceParameters",
    "Slot",
    "SlotIssuer",
    "UploadRequest",
    "decorated_put_url",
    "object_name",
    "object_url",
    "upload_parameters",
]
