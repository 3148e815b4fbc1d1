from __future__ import annotations

import dataclasses
import logging
import os
from typing import Any

import yaml

from .classes import CourseModuleRecord, CourseRecord, LtiType, LtiTypeConfig, PluginRecord
from .interfaces import ConfigStore, HostPlatform

log = logging.getLogger(__name__)


def _write_yaml_atomically(path: str, payload: dict) -> None:
  directory = os.path.dirname(path)
  if directory:
    os.makedirs(directory, exist_ok=True)
  tmp_path = f"{path}.tmp"
  with open(tmp_path, "w", encoding="utf-8") as f:
    yaml.safe_dump(payload, f, sort_keys=True)
  os.replace(tmp_path, path)
  try:
    os.chmod(path, 0o600)
  except OSError:
    pass


def _read_yaml_mapping(path: str) -> dict:
  if not os.path.exists(path):
    return {}
  with open(path, "r", encoding="utf-8") as f:
    payload = yaml.safe_load(f)
  if payload is None:
    return {}
  if not isinstance(payload, dict):
    raise ValueError(f"Expected a mapping at the top of '{path}', found {type(payload).__name__}.")
  return payload


class InMemoryConfigStore(ConfigStore):
  def __init__(self, values: dict[str, Any] | None = None):
    self._values: dict[str, Any] = dict(values or {})

  def get(self, key: str, default: Any = None) -> Any:
    return self._values.get(key, default)

  def set(self, key: str, value: Any) -> None:
    self._values[key] = value

  def as_dict(self) -> dict[str, Any]:
    return dict(self._values)


class YamlConfigStore(InMemoryConfigStore):
  """Plugin configuration kept in a YAML file, rewritten on every `set`."""

  def __init__(self, path: str):
    self.path = os.path.abspath(os.path.expanduser(path))
    super().__init__(_read_yaml_mapping(self.path))

  def set(self, key: str, value: Any) -> None:
    super().set(key, value)
    _write_yaml_atomically(self.path, self.as_dict())


class InMemoryHost(HostPlatform):
  """
  Minimal stand-in for the host platform's course, module and LTI tables.

  Ids are allocated per table starting at 1. Records are kept as plain
  dictionaries so the whole state can be dumped and reloaded.
  """

  TABLES = ("course_categories", "course", "course_sections", "modules",
            "lti_types", "course_modules", "local_bongo")

  def __init__(self, state: dict[str, dict[int, dict]] | None = None):
    self.tables: dict[str, dict[int, dict]] = {table: {} for table in self.TABLES}
    for table, rows in (state or {}).items():
      if not isinstance(rows, dict) or not all(isinstance(row, dict) for row in rows.values()):
        raise ValueError(f"Table '{table}' must map row ids to records, found {rows!r}.")
      self.tables[table] = {int(row_id): dict(row) for row_id, row in rows.items()}
    if not self._find("modules", name="lti"):
      self._insert("modules", {"name": "lti"})

  def _insert(self, table: str, row: dict) -> int:
    rows = self.tables[table]
    row_id = max(rows, default=0) + 1
    rows[row_id] = dict(row, id=row_id)
    return row_id

  def _find(self, table: str, **criteria) -> dict | None:
    for row in self.tables[table].values():
      if all(row.get(field) == value for field, value in criteria.items()):
        return row
    return None

  def find_course_by_summary(self, summary: str) -> int | None:
    row = self._find("course", summary=summary)
    return row["id"] if row else None

  def find_category_by_name(self, name: str) -> int | None:
    row = self._find("course_categories", name=name)
    return row["id"] if row else None

  def create_category(self, name: str) -> int | None:
    return self._insert("course_categories", {"name": name})

  def list_category_ids(self) -> list[int]:
    return sorted(self.tables["course_categories"])

  def create_course(self, course: CourseRecord) -> int:
    course_id = self._insert("course", dataclasses.asdict(course))
    # New courses come with their general section
    self._insert("course_sections", {"course": course_id, "section": 0})
    log.debug(f"Created course {course_id} ({course.fullname})")
    return course_id

  def get_last_section_id(self, course_id: int) -> int | None:
    ids = [row_id for row_id, row in self.tables["course_sections"].items() if row["course"] == course_id]
    return max(ids, default=None)

  def get_module_id(self, name: str) -> int:
    row = self._find("modules", name=name)
    if row is None:
      raise LookupError(f"Module '{name}' is not installed.")
    return row["id"]

  def find_lti_type_by_icon(self, icon: str) -> LtiType | None:
    row = self._find("lti_types", icon=icon)
    if row is None:
      return None
    return LtiType(**row)

  def update_lti_type(self, lti_type: LtiType) -> int:
    self.tables["lti_types"][lti_type.id] = dataclasses.asdict(lti_type)
    return lti_type.id

  def add_lti_type(self, config: LtiTypeConfig) -> int:
    return self._insert("lti_types", {
      "icon": config.lti_icon,
      "resourcekey": config.lti_resourcekey,
      "password": config.lti_password,
      "toolurl": config.lti_toolurl,
      "state": config.lti_state,
    })

  def add_course_module(self, module: CourseModuleRecord) -> int:
    return self._insert("course_modules", dataclasses.asdict(module))

  def insert_plugin_record(self, record: PluginRecord) -> int:
    return self._insert("local_bongo", dataclasses.asdict(record))

  def dump(self) -> dict[str, dict[int, dict]]:
    return {table: {row_id: dict(row) for row_id, row in rows.items()} for table, rows in self.tables.items()}


class YamlHost(InMemoryHost):
  """`InMemoryHost` whose tables are loaded from and saved to a YAML file."""

  def __init__(self, path: str):
    self.path = os.path.abspath(os.path.expanduser(path))
    super().__init__(_read_yaml_mapping(self.path))

  def save(self) -> None:
    _write_yaml_atomically(self.path, self.dump())
    log.debug(f"Saved host state to {self.path}")
