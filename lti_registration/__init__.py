"""
Bongo registration client and host-platform collaborators
"""
from importlib.metadata import PackageNotFoundError, version

try:
  __version__ = version("bongo-provisioner")
except PackageNotFoundError:
  __version__ = "0.0.0+local"

from .classes import LocalConfig, Region, RegistrationRequest, RegistrationResult, SiteInfo
from .error_classifier import classify
from .registration_client import register, unregister

__all__ = [
  "LocalConfig",
  "Region",
  "RegistrationRequest",
  "RegistrationResult",
  "SiteInfo",
  "classify",
  "register",
  "unregister",
]
