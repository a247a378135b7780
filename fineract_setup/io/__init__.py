"""
I/O operations for fineract-setup.

This package handles everything that touches the outside world: the shared
HTTP session, template resources, and uploads to Fineract.

Modules
-------
transport : module
    requests.Session factory with TLS policy and timeouts.
resources : module
    Template byte loading with pass-through caching.
upload : module
    Retrying, authenticated multipart upload client.

Public API
----------
make_session : function
    Create the run's HTTP session.
ResourceLoader : class
    Read template bytes by resource path.
UploadClient : class
    Upload one template per call and report an UploadOutcome.
"""

from .resources import ResourceLoader
from .transport import make_session, timeouts
from .upload import UploadClient

__all__ = ["make_session", "timeouts", "ResourceLoader", "UploadClient"]
