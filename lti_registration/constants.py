#!env python
"""
Constants shared by the registration client and the provisioning workflow.
Wire key names must match what the Bongo registration service expects.
"""

DEFAULT_REGISTRATION_ENDPOINT = "https://moodle-registration.bongolearn.com/"

PLUGIN_COMPONENT = "local_bongo"
LTI_MODULE_NAME = "lti"
MAIN_URL = "https://bongolearn.com"
FAVICON_URL = "https://bongolearn.com/favicon.ico"


class RequestKeys:
  NAME = "name"
  REGION = "region"
  ACCESS_CODE = "access_code"
  CUSTOMER_EMAIL = "customer_email"
  LMS_CODE = "lms_code"
  VERSION = "version"
  MOODLE_VERSION = "moodle_version"
  MOODLE_DB_TYPE = "moodle_db_type"
  MOODLE_DIR_ROOT = "moodle_dir_root"
  REST_CALL_TYPE = "rest_call_type"
  # Only sent on uninstall
  KEY = "key"
  SECRET = "secret"


class ResponseKeys:
  ERRORS = "errors"
  DATA = "data"
  CODE = "code"
  MESSAGE = "message"
  SECRET = "secret"
  KEY = "key"
  URL = "url"
  REGION = "region"


class RestCallType:
  INSTALL = "install"
  UNINSTALL = "uninstall"


class ConfigKeys:
  VERSION = "version"
  NAME = "name"
  REGION = "region"
  KEY = "ltikey"
  SECRET = "secret"
  LTI_TYPE_ID = "lti_type_id"
  COURSE_ID = "course_id"
  CONFIG_VIEWED = "config_viewed"


# LTI type config values used when registering the connector
class LtiTypeDefaults:
  COURSE_VISIBLE = 2
  STATE = 1
  SEND_NAME = 1
  SEND_EMAIL_ADDR = 1
  ACCEPT_GRADES = 1
  LAUNCH_CONTAINER = 3
  TOOL_STATE_CONFIGURED = 1


class ActivityDefaults:
  LAUNCH_CONTAINER = 1
  GRADE = 100
