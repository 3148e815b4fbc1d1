"""
Tests for the Bongo registration client.

The HTTP layer is replaced with a mocked session, so no network calls are made.
"""

import json
import logging
from unittest.mock import Mock, patch

import pytest
import requests

from lti_registration.classes import LocalConfig, Region, RegistrationRequest, SiteInfo
from lti_registration.registration_client import (
  REQUEST_HEADERS,
  build_payload,
  execute_rest_call,
  parse_response,
  register,
  unregister,
)
from lti_registration.strings import get_string

GENERIC = get_string("bongoresterror")
ENDPOINT = "https://registration.test/"


def _session_returning(body, status_code=200):
  session = Mock(spec=requests.Session)
  response = Mock()
  response.text = body if isinstance(body, str) else json.dumps(body)
  response.status_code = status_code
  session.post.return_value = response
  return session


def _session_raising(exc):
  session = Mock(spec=requests.Session)
  session.post.side_effect = exc
  return session


@pytest.fixture
def config():
  return LocalConfig(
    plugin_version="2024051500",
    site=SiteInfo(version="2022112800", db_type="pgsql", dir_root="/var/www/moodle"),
    endpoint=ENDPOINT,
  )


@pytest.fixture
def request_obj(config):
  return RegistrationRequest.from_config(
    name="Example University",
    access_code="ABC-123",
    customer_email="admin@example.edu",
    region="eu",
    course_id=42,
    config=config,
  )


class TestPayload:

  def test_payload_has_fixed_wire_keys(self, request_obj):
    payload = build_payload(request_obj)
    assert payload == {
      "name": "Example University",
      "region": "EU",
      "access_code": "ABC-123",
      "customer_email": "admin@example.edu",
      "lms_code": "42",
      "version": "2024051500",
      "moodle_version": "2022112800",
      "moodle_db_type": "pgsql",
      "moodle_dir_root": "/var/www/moodle",
      "rest_call_type": "install",
    }

  def test_post_uses_text_plain_and_json_body(self, request_obj, config):
    session = _session_returning({"data": {"url": "https://x.test/lti"}})

    register(request_obj, config, session=session)

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args == (ENDPOINT,)
    assert kwargs["headers"] == REQUEST_HEADERS
    assert kwargs["headers"]["Content-Type"] == "text/plain"
    assert kwargs["headers"]["Accept-Content"] == "application/json"
    assert json.loads(kwargs["data"]) == build_payload(request_obj)

  def test_module_level_requests_used_without_session(self, request_obj, config):
    with patch("lti_registration.registration_client.requests.post") as post:
      post.return_value = Mock(text='{"data": {"url": "https://x.test/lti"}}', status_code=200)
      result = register(request_obj, config)
    post.assert_called_once()
    assert result.error_exists is False


class TestParseResponse:

  def test_data_fields_are_extracted(self):
    result = parse_response(json.dumps({
      "data": {
        "code": "201",
        "secret": "s1",
        "key": "k1",
        "url": "https://x.test/lti",
        "region": "NA",
      }
    }))
    assert result.code == "201"
    assert result.secret == "s1"
    assert result.connector_key == "k1"
    assert result.connector_url == "https://x.test/lti"
    assert result.region == "NA"
    assert result.message is None

  def test_missing_keys_are_none(self):
    result = parse_response('{"data": {"url": "https://x.test/lti"}}')
    assert result.secret is None
    assert result.connector_key is None
    assert result.region is None
    assert result.code is None

  def test_errors_become_message(self):
    result = parse_response('{"errors": "Invalid accessCode"}')
    assert result.message == "Invalid accessCode"
    assert result.connector_url is None

  def test_errors_override_data_message(self):
    result = parse_response(json.dumps({
      "errors": "No Token",
      "data": {"message": "ignored", "url": "https://x.test/lti"},
    }))
    assert result.message == "No Token"
    assert result.connector_url == "https://x.test/lti"

  @pytest.mark.parametrize("body", ["", "not json", "[1, 2]", "null", None])
  def test_unusable_bodies_parse_as_empty(self, body):
    result = parse_response(body)
    assert result.connector_url is None
    assert result.message is None

  def test_non_string_values_are_stringified(self):
    result = parse_response('{"data": {"code": 200}, "errors": {"detail": "bad"}}')
    assert result.code == "200"
    assert result.message == '{"detail": "bad"}'


class TestRegister:

  def test_successful_registration(self, request_obj, config):
    session = _session_returning({"data": {"url": "https://x.test/lti", "key": "k1", "secret": "s1"}})

    result = register(request_obj, config, session=session)

    assert result.error_exists is False
    assert result.error_message is None
    assert result.connector_url == "https://x.test/lti"
    assert result.connector_key == "k1"
    assert result.secret == "s1"
    assert result.succeeded is True

  def test_data_only_response_populates_only_given_fields(self, request_obj, config):
    session = _session_returning({"data": {"url": "https://x.test/lti", "region": "AU"}})

    result = register(request_obj, config, session=session)

    assert result.connector_url == "https://x.test/lti"
    assert result.region == "AU"
    assert result.secret is None
    assert result.connector_key is None
    assert result.code is None
    assert result.message is None

  def test_application_error(self, request_obj, config):
    session = _session_returning({"errors": "Expired accessCode"}, status_code=400)

    result = register(request_obj, config, session=session)

    assert result.error_exists is True
    assert result.message == "Expired accessCode"
    assert result.error_message == get_string("bongoresterrorexpiredtoken")

  def test_empty_success_is_an_error(self, request_obj, config):
    session = _session_returning({"data": {}})

    result = register(request_obj, config, session=session)

    assert result.error_exists is True
    assert result.error_message == GENERIC

  def test_transport_error_is_masked_as_generic_error(self, request_obj, config, caplog):
    session = _session_raising(requests.exceptions.ConnectionError("Connection refused"))

    with caplog.at_level(logging.WARNING, logger="lti_registration.registration_client"):
      result = register(request_obj, config, session=session)

    assert result.error_exists is True
    assert result.message == GENERIC
    assert result.error_message == GENERIC
    assert result.secret is None
    assert result.connector_key is None
    assert result.connector_url is None
    assert result.region is None
    assert result.code is None
    assert "Connection refused" in caplog.text

  def test_transport_error_matches_synthesized_errors_body(self, request_obj, config):
    failed = register(request_obj, config, session=_session_raising(requests.exceptions.Timeout("slow")))
    synthesized = register(request_obj, config, session=_session_returning({"errors": GENERIC}))
    assert failed == synthesized


class TestExecuteRestCall:

  def test_returns_body_regardless_of_status(self):
    session = _session_returning('{"errors": "Internal server error"}', status_code=500)
    body = execute_rest_call(ENDPOINT, {"a": 1}, session=session)
    assert json.loads(body) == {"errors": "Internal server error"}

  def test_timeout_is_passed_through(self):
    session = _session_returning("{}")
    execute_rest_call(ENDPOINT, {}, session=session, timeout=5)
    assert session.post.call_args.kwargs["timeout"] == 5


class TestUnregister:

  def test_sends_uninstall_payload(self):
    config = LocalConfig(
      plugin_version="2024051500",
      site=SiteInfo(version="2022112800", db_type="mysqli", dir_root="/srv/moodle"),
      endpoint=ENDPOINT,
      name="Example University",
      region=Region.CA.value,
      key="k1",
      secret="s1",
    )
    session = _session_returning({"data": {}})

    assert unregister(config, session=session) is None

    payload = json.loads(session.post.call_args.kwargs["data"])
    assert payload == {
      "name": "Example University",
      "key": "k1",
      "secret": "s1",
      "region": "CA",
      "version": "2024051500",
      "moodle_version": "2022112800",
      "moodle_db_type": "mysqli",
      "moodle_dir_root": "/srv/moodle",
      "rest_call_type": "uninstall",
    }

  def test_skipped_without_stored_key(self):
    session = _session_returning("{}")
    unregister(LocalConfig(name="Example University", endpoint=ENDPOINT), session=session)
    session.post.assert_not_called()

  def test_empty_stored_key_is_still_sent(self):
    session = _session_returning("{}")
    unregister(LocalConfig(name="Example University", key="", endpoint=ENDPOINT), session=session)
    session.post.assert_called_once()
    payload = json.loads(session.post.call_args.kwargs["data"])
    assert payload["key"] == ""

  def test_skipped_without_stored_name(self):
    session = _session_returning("{}")
    unregister(LocalConfig(key="k1", endpoint=ENDPOINT), session=session)
    session.post.assert_not_called()

  def test_errors_are_swallowed(self):
    session = _session_raising(requests.exceptions.ConnectionError("down"))
    config = LocalConfig(name="Example University", key="k1", endpoint=ENDPOINT)
    assert unregister(config, session=session) is None
