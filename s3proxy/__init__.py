"""
s3proxy Application Package

This package contains the read-only gateway in front of an S3 bucket:
- api: FastAPI application, routes and response schemas
- core: Object resolution, path safety and the proxy/list use cases
- services: Stored object model, listing collection and the S3 adapter
- tests: Test suites
"""

__version__ = "0.1.0"
