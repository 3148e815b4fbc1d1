#!/usr/bin/env python
"""
Client for the Bongo registration service.

One POST per call, with a flat JSON body. Failures never raise to the caller:
transport errors are logged and replaced with a generic error body, so every
path comes back as a parsed, classified `RegistrationResult`.
"""
from __future__ import annotations

import json
import logging
import typing

import requests

from .classes import LocalConfig, RegistrationRequest, RegistrationResult
from .constants import RequestKeys, ResponseKeys, RestCallType
from .error_classifier import GENERIC_ERROR, classify
from .interfaces import StringLookup
from .strings import get_string

log = logging.getLogger(__name__)

REQUEST_HEADERS = {
  "Content-Type": "text/plain",
  "Accept-Content": "application/json",
}


def build_payload(request: RegistrationRequest) -> dict[str, typing.Any]:
  return {
    RequestKeys.NAME: request.name,
    RequestKeys.REGION: request.region.value,
    RequestKeys.ACCESS_CODE: request.access_code,
    RequestKeys.CUSTOMER_EMAIL: request.customer_email,
    RequestKeys.LMS_CODE: request.course_id,
    RequestKeys.VERSION: request.product_version,
    # Site details let Bongo troubleshoot without asking the customer
    RequestKeys.MOODLE_VERSION: request.host_platform_version,
    RequestKeys.MOODLE_DB_TYPE: request.host_db_type,
    RequestKeys.MOODLE_DIR_ROOT: request.host_install_path,
    RequestKeys.REST_CALL_TYPE: RestCallType.INSTALL,
  }


def build_uninstall_payload(config: LocalConfig) -> dict[str, typing.Any]:
  return {
    RequestKeys.NAME: config.name,
    RequestKeys.KEY: config.key,
    RequestKeys.SECRET: config.secret,
    RequestKeys.REGION: config.region,
    RequestKeys.VERSION: config.plugin_version,
    RequestKeys.MOODLE_VERSION: config.site.version,
    RequestKeys.MOODLE_DB_TYPE: config.site.db_type,
    RequestKeys.MOODLE_DIR_ROOT: config.site.dir_root,
    RequestKeys.REST_CALL_TYPE: RestCallType.UNINSTALL,
  }


def execute_rest_call(
    endpoint: str,
    payload: dict[str, typing.Any],
    *,
    session: requests.Session | None = None,
    timeout: float | None = None,
    strings: StringLookup = get_string
) -> str:
  """
  POST the payload and return the raw response body.

  The HTTP status is not inspected; the service reports problems in the body.
  On a transport failure the body `{"errors": <generic message>}` is returned
  instead, and the underlying exception is only logged.
  """
  http = session or requests
  body = json.dumps(payload)
  try:
    response = http.post(endpoint, data=body, headers=REQUEST_HEADERS, timeout=timeout)
    log.debug(f"Registration service responded with status {response.status_code}")
    return response.text
  except requests.exceptions.RequestException as e:
    log.warning(f"Could not reach registration service at {endpoint}: {e}")
    return json.dumps({ResponseKeys.ERRORS: strings(GENERIC_ERROR)})


def _optional_text(value: typing.Any) -> str | None:
  if value is None or isinstance(value, str):
    return value
  if isinstance(value, (dict, list)):
    return json.dumps(value)
  return str(value)


def parse_response(body: str | None) -> RegistrationResult:
  """
  Pull the known fields out of a response body.

  Missing keys become None. A body that is not a JSON object is treated as an
  empty object. An `errors` entry takes precedence over `data.message`.
  """
  try:
    payload = json.loads(body) if body else {}
  except (TypeError, ValueError) as e:
    log.warning(f"Registration response is not valid JSON: {e}")
    payload = {}
  if not isinstance(payload, dict):
    log.warning(f"Registration response is not a JSON object: {type(payload).__name__}")
    payload = {}

  data = payload.get(ResponseKeys.DATA)
  if not isinstance(data, dict):
    data = {}

  message = data.get(ResponseKeys.MESSAGE)
  if ResponseKeys.ERRORS in payload:
    message = payload[ResponseKeys.ERRORS]

  return RegistrationResult(
    secret=_optional_text(data.get(ResponseKeys.SECRET)),
    connector_key=_optional_text(data.get(ResponseKeys.KEY)),
    connector_url=_optional_text(data.get(ResponseKeys.URL)),
    region=_optional_text(data.get(ResponseKeys.REGION)),
    message=_optional_text(message),
    code=_optional_text(data.get(ResponseKeys.CODE)),
  )


def register(
    request: RegistrationRequest,
    config: LocalConfig,
    *,
    session: requests.Session | None = None,
    timeout: float | None = None,
    strings: StringLookup = get_string
) -> RegistrationResult:
  """Register this installation with Bongo and return the classified result."""
  log.info(f"Registering '{request.name}' with Bongo (region {request.region.value})")
  body = execute_rest_call(
    config.endpoint,
    build_payload(request),
    session=session,
    timeout=timeout,
    strings=strings
  )
  result = parse_response(body)
  result = result.with_classification(classify(result, strings))
  if result.error_exists:
    log.error(f"Bongo registration failed: {result.message or 'no connector url returned'}")
  else:
    log.info(f"Bongo registration succeeded, connector url {result.connector_url}")
  return result


def unregister(
    config: LocalConfig,
    *,
    session: requests.Session | None = None,
    timeout: float | None = None
) -> None:
  """
  Tell Bongo the plugin was uninstalled so it can de-provision the installation.
  Nothing is sent when the plugin was never configured. The response is ignored.
  """
  if config.name is None:
    log.debug("No stored Bongo configuration, skipping unregister")
    return
  if config.key is None:
    log.debug("No stored Bongo key, skipping unregister")
    return

  body = execute_rest_call(
    config.endpoint,
    build_uninstall_payload(config),
    session=session,
    timeout=timeout
  )
  log.debug(f"Ignoring unregister response: {body}")
