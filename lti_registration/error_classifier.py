from __future__ import annotations

from .classes import ErrorClassification, RegistrationResult
from .interfaces import StringLookup
from .strings import get_string

GENERIC_ERROR = "bongoresterror"
INVALID_TOKEN_ERROR = "bongoresterrorinvalidtoken"
EXPIRED_TOKEN_ERROR = "bongoresterrorexpiredtoken"

# Server messages are matched exactly, case included.
KNOWN_ERRORS: dict[str, str] = {
  "Internal server error": GENERIC_ERROR,
  "POST body missing accessCode": GENERIC_ERROR,
  "POST body missing region": GENERIC_ERROR,
  "POST body missing Institution Name": GENERIC_ERROR,
  "POST body missing Class lms code": GENERIC_ERROR,
  "POST body missing timezone": GENERIC_ERROR,
  "No Token": GENERIC_ERROR,  # Token for contacting Bongo, not the GSS
  "Institution not created": GENERIC_ERROR,
  "Invalid backend": GENERIC_ERROR,
  "Invalid accessCode": INVALID_TOKEN_ERROR,
  "Expired accessCode": EXPIRED_TOKEN_ERROR,
}


def message_id_for(message: str) -> str:
  return KNOWN_ERRORS.get(message, GENERIC_ERROR)


def classify(result: RegistrationResult, strings: StringLookup = get_string) -> ErrorClassification:
  """
  Decide whether a parsed registration response is an error, and which
  user-facing message to show for it.

  Any message from the server is an error; unrecognized messages get the
  generic error text. A response with neither a message nor a connector URL
  is also a generic error.
  """
  if result.message is not None:
    return ErrorClassification(
      error_exists=True,
      error_message=strings(message_id_for(result.message))
    )
  if result.connector_url is None:
    return ErrorClassification(error_exists=True, error_message=strings(GENERIC_ERROR))
  return ErrorClassification(error_exists=False, error_message=None)
