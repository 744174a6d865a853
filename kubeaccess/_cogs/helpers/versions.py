"""
Detecting the library's own version.

The version is determined only once when the code is loaded,
and is used in the self-identification of the HTTP requests.
"""
import importlib.metadata
from typing import Optional

version: Optional[str] = None

try:
    name, *_ = __name__.split('.')  # usually "kubeaccess", unless renamed/forked.
    version = importlib.metadata.version(name)
except importlib.metadata.PackageNotFoundError:
    pass  # not installed, e.g. when used from a source checkout.
