"""
Upload Broker

XEP-0363 upload-slot broker backed by S3-compatible object storage.
"""

__version__ = "0.1.0"
