from __future__ import annotations

import logging

log = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

STRINGS: dict[str, dict[str, str]] = {
  "en": {
    "pluginname": "Bongo",
    "plugindescription": "Bongo is a video assessment and virtual classroom solution.",
    "bongoexamplecourse": "Bongo Example Course",
    "bongoactivity": "Bongo",
    "miscellaneous": "Miscellaneous",
    "bongona": "North America",
    "bongosa": "South America",
    "bongoca": "Canada",
    "bongoeu": "Europe",
    "bongoau": "Australia",
    "bongoresterror": (
      "There was an error communicating with Bongo. "
      "Please try again later or contact Bongo support."
    ),
    "bongoresterrorinvalidtoken": (
      "The access code you entered is not valid. "
      "Please check the code and try again."
    ),
    "bongoresterrorexpiredtoken": (
      "The access code you entered has expired. "
      "Please contact Bongo support for a new code."
    ),
  },
}


def get_string(identifier: str, language: str = DEFAULT_LANGUAGE) -> str:
  """
  Look up a localized string, falling back to the default language.
  Unknown identifiers come back wrapped in square brackets so they stand out.
  """
  catalog = STRINGS.get(language, STRINGS[DEFAULT_LANGUAGE])
  if identifier in catalog:
    return catalog[identifier]
  if identifier in STRINGS[DEFAULT_LANGUAGE]:
    return STRINGS[DEFAULT_LANGUAGE][identifier]
  log.warning(f"Missing string '{identifier}' for language '{language}'")
  return f"[[{identifier}]]"
