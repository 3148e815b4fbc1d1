#!/usr/bin/env python
"""
Set up everything the host platform needs to launch Bongo:

- find or create the demo course
- register this installation with Bongo
- create the LTI type (connector) from the returned credentials
- add a Bongo activity to the demo course, attached to that LTI type
- save the plugin configuration

There is no rollback. If a step fails partway, whatever was created stays.
"""
from __future__ import annotations

import logging
import time

import requests

from lti_registration import registration_client
from lti_registration.classes import (
  CourseModuleRecord,
  CourseRecord,
  LocalConfig,
  LtiTypeConfig,
  PluginRecord,
  ProvisioningOutcome,
  Region,
  RegistrationRequest,
  SiteInfo,
)
from lti_registration.constants import FAVICON_URL, LTI_MODULE_NAME, MAIN_URL, ConfigKeys
from lti_registration.interfaces import ConfigStore, HostPlatform, StringLookup
from lti_registration.strings import get_string

log = logging.getLogger(__name__)

MISSING_ID = -1


class BongoError(Exception):
  """User-facing error for CLI operations."""


def find_or_create_course_category(host: HostPlatform, strings: StringLookup = get_string) -> int:
  """
  Use the Miscellaneous category, creating it when it is missing.
  If it cannot be created, fall back to the first category there is.
  """
  name = strings("miscellaneous")
  category_id = host.find_category_by_name(name)
  if category_id:
    return category_id

  category_id = host.create_category(name)
  if category_id:
    log.info(f"Created course category '{name}'")
    return category_id

  for category_id in host.list_category_ids():
    return category_id

  log.error("No course category available for the Bongo example course")
  return MISSING_ID


def create_course_object(category_id: int, strings: StringLookup = get_string) -> CourseRecord:
  now = int(time.time())
  return CourseRecord(
    fullname=strings("bongoexamplecourse"),
    shortname=strings("bongoexamplecourse"),
    summary=MAIN_URL,
    category=category_id,
    startdate=now,
    timecreated=now,
    timemodified=now,
  )


def create_demo_course(host: HostPlatform, strings: StringLookup = get_string) -> int:
  """Return the id of the Bongo example course, creating the course the first time."""
  course_id = host.find_course_by_summary(MAIN_URL)
  if course_id is not None:
    log.debug(f"Reusing Bongo example course {course_id}")
    return course_id

  category_id = find_or_create_course_category(host, strings)
  course_id = host.create_course(create_course_object(category_id, strings))
  log.info(f"Created Bongo example course {course_id}")
  return course_id


def get_course_section_id(host: HostPlatform, course_id: int) -> int:
  section_id = host.get_last_section_id(course_id)
  if not section_id:
    return MISSING_ID
  return section_id


def get_lti_module_id(host: HostPlatform) -> int:
  return host.get_module_id(LTI_MODULE_NAME)


def create_lti_type_config(url: str, key: str, secret: str, strings: StringLookup = get_string) -> LtiTypeConfig:
  return LtiTypeConfig(
    lti_toolurl=url,
    lti_typename=strings("pluginname"),
    lti_description=strings("plugindescription"),
    lti_resourcekey=key,
    lti_password=secret,
  )


def create_lti_tool(
    host: HostPlatform,
    config: LocalConfig,
    secret: str,
    key: str,
    url: str,
    strings: StringLookup = get_string
) -> int:
  """
  Return the id of the Bongo LTI type.

  A type id already saved in the plugin config wins. Otherwise an existing
  Bongo type (found by its icon) gets the new key and secret, and only when
  there is none is a new type added.
  """
  if config.lti_type_id:
    log.debug(f"Using LTI type {config.lti_type_id} from plugin config")
    return config.lti_type_id

  lti_type = host.find_lti_type_by_icon(FAVICON_URL)
  if lti_type is not None:
    lti_type.resourcekey = key
    lti_type.password = secret
    log.info(f"Updating credentials on existing Bongo LTI type {lti_type.id}")
    return host.update_lti_type(lti_type)

  lti_type_id = host.add_lti_type(create_lti_type_config(url, key, secret, strings))
  log.info(f"Added Bongo LTI type {lti_type_id}")
  return lti_type_id


def create_course_module_object(
    lti_type_id: int,
    course_id: int,
    section_id: int,
    lti_module_id: int,
    strings: StringLookup = get_string
) -> CourseModuleRecord:
  return CourseModuleRecord(
    name=strings("bongoactivity"),
    typeid=lti_type_id,
    urlmatchedtypeid=lti_type_id,
    course=course_id,
    section=section_id,
    module=lti_module_id,
    instance=lti_type_id,
  )


def create_course_module(
    host: HostPlatform,
    course_id: int,
    section_id: int,
    lti_type_id: int,
    lti_module_id: int,
    strings: StringLookup = get_string
) -> int:
  module = create_course_module_object(lti_type_id, course_id, section_id, lti_module_id, strings)
  module_id = host.add_course_module(module)
  log.info(f"Added Bongo activity {module_id} to course {course_id}")
  return module_id


def save_plugin_config(
    config_store: ConfigStore,
    request: RegistrationRequest,
    outcome: ProvisioningOutcome
) -> None:
  config_store.set(ConfigKeys.NAME, request.name)
  config_store.set(ConfigKeys.REGION, outcome.result.region or request.region.value)
  config_store.set(ConfigKeys.KEY, outcome.result.connector_key)
  config_store.set(ConfigKeys.SECRET, outcome.result.secret)
  config_store.set(ConfigKeys.LTI_TYPE_ID, outcome.lti_type_id)
  config_store.set(ConfigKeys.COURSE_ID, outcome.course_id)


def set_up_integration(
    request: RegistrationRequest,
    *,
    host: HostPlatform,
    config_store: ConfigStore,
    site: SiteInfo | None = None,
    endpoint: str | None = None,
    strings: StringLookup = get_string,
    session: requests.Session | None = None
) -> ProvisioningOutcome:
  config = LocalConfig.from_store(config_store, site=site, endpoint=endpoint)

  course_id = create_demo_course(host, strings)
  section_id = get_course_section_id(host, course_id)
  lti_module_id = get_lti_module_id(host)

  # Bongo links the institution to the example course
  request = request.with_course(course_id)
  result = registration_client.register(request, config, session=session, strings=strings)
  if result.error_exists or result.connector_url is None:
    return ProvisioningOutcome(result=result)

  lti_type_id = create_lti_tool(host, config, result.secret, result.connector_key, result.connector_url, strings)
  module_id = create_course_module(host, course_id, section_id, lti_type_id, lti_module_id, strings)
  outcome = ProvisioningOutcome(
    result=result,
    course_id=course_id,
    lti_type_id=lti_type_id,
    module_id=module_id,
  )
  save_plugin_config(config_store, request, outcome)
  return outcome


def insert_dummy_data(host: HostPlatform, course_id: int) -> int:
  """
  Record placeholder plugin data for an installation whose LTI setup worked
  but whose configuration was never saved.
  """
  record = PluginRecord(
    name="Customer Name",
    customer_email="customer@example.com",
    access_code="bongoaccesscode",
    timezone=time.strftime("%Z") or "UTC",
    region=Region.default().value,
    hostname="",
    ltikey="",
    secret="",
    lti_type_id=0,
    course=course_id,
  )
  return host.insert_plugin_record(record)


def get_config_viewed(config_store: ConfigStore) -> bool:
  return config_store.get(ConfigKeys.CONFIG_VIEWED, 0) in (1, "1")


def set_config_viewed(config_store: ConfigStore) -> None:
  config_store.set(ConfigKeys.CONFIG_VIEWED, 1)


def unregister_integration(
    config_store: ConfigStore,
    *,
    site: SiteInfo | None = None,
    endpoint: str | None = None,
    session: requests.Session | None = None
) -> None:
  config = LocalConfig.from_store(config_store, site=site, endpoint=endpoint)
  registration_client.unregister(config, session=session)
