#!/usr/bin/env python
from __future__ import annotations

import dataclasses
import enum
import os
import time
import typing

from . import constants
from .strings import get_string

if typing.TYPE_CHECKING:
  from .interfaces import ConfigStore, StringLookup


class Region(enum.Enum):
  NA = "NA"
  SA = "SA"
  CA = "CA"
  EU = "EU"
  AU = "AU"

  @classmethod
  def default(cls) -> Region:
    return cls.NA

  @classmethod
  def from_string(cls, value: str | Region | None) -> Region:
    if value is None or value == "":
      return cls.default()
    if isinstance(value, cls):
      return value
    try:
      return cls(str(value).strip().upper())
    except ValueError:
      valid = ", ".join(region.value for region in cls)
      raise ValueError(f"Unknown region '{value}'. Expected one of: {valid}.")

  @property
  def string_id(self) -> str:
    return f"bongo{self.value.lower()}"

  def translated_name(self, strings: StringLookup = get_string) -> str:
    return strings(self.string_id)


@dataclasses.dataclass(frozen=True)
class RegionOption:
  translated_name: str
  value: str
  is_default: bool


def available_regions(strings: StringLookup = get_string) -> list[RegionOption]:
  """Region choices in display order, with the default region flagged."""
  return [
    RegionOption(
      translated_name=region.translated_name(strings),
      value=region.value,
      is_default=(region is Region.default())
    )
    for region in Region
  ]


@dataclasses.dataclass(frozen=True)
class SiteInfo:
  """Details of the host installation, reported to Bongo for troubleshooting."""
  version: str | None = None
  db_type: str | None = None
  dir_root: str | None = None

  @classmethod
  def from_env(cls) -> SiteInfo:
    return cls(
      version=os.environ.get("BONGO_SITE_VERSION"),
      db_type=os.environ.get("BONGO_SITE_DBTYPE"),
      dir_root=os.environ.get("BONGO_SITE_DIRROOT", os.getcwd()),
    )


def _stored_id(store: ConfigStore, key: str) -> int | None:
  value = store.get(key)
  if value in (None, ""):
    return None
  try:
    return int(value)
  except (TypeError, ValueError):
    raise ValueError(f"Stored '{key}' must be a number, found {value!r}.")


@dataclasses.dataclass(frozen=True)
class LocalConfig:
  """
  Read-only snapshot of the plugin configuration plus host site details.

  Built once per operation and handed to the registration client, so nothing
  downstream reads process-wide configuration.
  """
  plugin_version: str | None = None
  site: SiteInfo = dataclasses.field(default_factory=SiteInfo)
  endpoint: str = constants.DEFAULT_REGISTRATION_ENDPOINT
  name: str | None = None
  region: str | None = None
  key: str | None = None
  secret: str | None = None
  lti_type_id: int | None = None
  course_id: int | None = None
  config_viewed: bool = False

  @classmethod
  def from_store(
      cls,
      store: ConfigStore,
      *,
      site: SiteInfo | None = None,
      endpoint: str | None = None
  ) -> LocalConfig:
    return cls(
      plugin_version=store.get(constants.ConfigKeys.VERSION) or os.environ.get("BONGO_PLUGIN_VERSION"),
      site=site or SiteInfo.from_env(),
      endpoint=endpoint or os.environ.get("BONGO_REGISTRATION_URL", constants.DEFAULT_REGISTRATION_ENDPOINT),
      name=store.get(constants.ConfigKeys.NAME),
      region=store.get(constants.ConfigKeys.REGION),
      key=store.get(constants.ConfigKeys.KEY),
      secret=store.get(constants.ConfigKeys.SECRET),
      lti_type_id=_stored_id(store, constants.ConfigKeys.LTI_TYPE_ID),
      course_id=_stored_id(store, constants.ConfigKeys.COURSE_ID),
      config_viewed=store.get(constants.ConfigKeys.CONFIG_VIEWED, 0) in (1, "1"),
    )

  @classmethod
  def from_env(cls) -> LocalConfig:
    return cls(
      plugin_version=os.environ.get("BONGO_PLUGIN_VERSION"),
      site=SiteInfo.from_env(),
      endpoint=os.environ.get("BONGO_REGISTRATION_URL", constants.DEFAULT_REGISTRATION_ENDPOINT),
    )


@dataclasses.dataclass(frozen=True)
class RegistrationRequest:
  name: str
  region: Region = Region.NA
  access_code: str = ""
  customer_email: str = ""
  course_id: str | None = None
  product_version: str | None = None
  host_platform_version: str | None = None
  host_db_type: str | None = None
  host_install_path: str | None = None

  @classmethod
  def from_config(
      cls,
      *,
      name: str,
      access_code: str,
      customer_email: str,
      config: LocalConfig,
      region: str | Region | None = None,
      course_id: str | int | None = None
  ) -> RegistrationRequest:
    return cls(
      name=name,
      region=Region.from_string(region),
      access_code=access_code,
      customer_email=customer_email,
      course_id=str(course_id) if course_id is not None else None,
      product_version=config.plugin_version,
      host_platform_version=config.site.version,
      host_db_type=config.site.db_type,
      host_install_path=config.site.dir_root,
    )

  def with_course(self, course_id: str | int) -> RegistrationRequest:
    return dataclasses.replace(self, course_id=str(course_id))


@dataclasses.dataclass(frozen=True)
class ErrorClassification:
  error_exists: bool
  error_message: str | None = None


@dataclasses.dataclass(frozen=True)
class RegistrationResult:
  secret: str | None = None
  connector_key: str | None = None
  connector_url: str | None = None
  region: str | None = None
  message: str | None = None
  code: str | None = None
  error_exists: bool = False
  error_message: str | None = None

  def with_classification(self, classification: ErrorClassification) -> RegistrationResult:
    return dataclasses.replace(
      self,
      error_exists=classification.error_exists,
      error_message=classification.error_message
    )

  @property
  def succeeded(self) -> bool:
    return not self.error_exists and self.connector_url is not None


# Host platform records

@dataclasses.dataclass(frozen=True)
class CourseRecord:
  fullname: str
  shortname: str
  summary: str
  category: int
  startdate: int = dataclasses.field(default_factory=lambda: int(time.time()))
  timecreated: int = dataclasses.field(default_factory=lambda: int(time.time()))
  timemodified: int = dataclasses.field(default_factory=lambda: int(time.time()))


@dataclasses.dataclass(frozen=True)
class LtiTypeConfig:
  lti_toolurl: str
  lti_typename: str
  lti_description: str
  lti_resourcekey: str
  lti_password: str
  lti_icon: str = constants.FAVICON_URL
  lti_secureicon: str = constants.FAVICON_URL
  lti_coursevisible: int = constants.LtiTypeDefaults.COURSE_VISIBLE
  lti_state: int = constants.LtiTypeDefaults.STATE
  lti_sendname: int = constants.LtiTypeDefaults.SEND_NAME
  lti_sendemailaddr: int = constants.LtiTypeDefaults.SEND_EMAIL_ADDR
  lti_acceptgrades: int = constants.LtiTypeDefaults.ACCEPT_GRADES
  lti_launchcontainer: int = constants.LtiTypeDefaults.LAUNCH_CONTAINER


@dataclasses.dataclass
class LtiType:
  id: int
  icon: str
  resourcekey: str
  password: str
  toolurl: str | None = None
  state: int = constants.LtiTypeDefaults.TOOL_STATE_CONFIGURED


@dataclasses.dataclass(frozen=True)
class CourseModuleRecord:
  name: str
  typeid: int
  urlmatchedtypeid: int
  course: int
  section: int
  module: int
  instance: int
  modulename: str = constants.LTI_MODULE_NAME
  add: str = constants.LTI_MODULE_NAME
  showdescription: int = 0
  showtitlelaunch: int = 1
  launchcontainer: int = constants.ActivityDefaults.LAUNCH_CONTAINER
  instructorchoicesendname: int = 1
  instructorchoicesendemailaddr: int = 1
  instructorchoiceacceptgrades: int = 1
  grade: int = constants.ActivityDefaults.GRADE
  visible: bool = True
  visibleoncoursepage: bool = True
  update: int = 0
  return_to: int = 0


@dataclasses.dataclass(frozen=True)
class PluginRecord:
  name: str
  customer_email: str
  access_code: str
  timezone: str
  region: str
  hostname: str
  ltikey: str
  secret: str
  lti_type_id: int
  course: int


@dataclasses.dataclass(frozen=True)
class ProvisioningOutcome:
  result: RegistrationResult
  course_id: int | None = None
  lti_type_id: int | None = None
  module_id: int | None = None

  @property
  def error_exists(self) -> bool:
    return self.result.error_exists
