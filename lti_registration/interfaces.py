from __future__ import annotations

from typing import Any, Protocol

from .classes import CourseModuleRecord, CourseRecord, LtiType, LtiTypeConfig, PluginRecord


class StringLookup(Protocol):
  def __call__(self, identifier: str) -> str: ...


class ConfigStore(Protocol):
  def get(self, key: str, default: Any = None) -> Any: ...
  def set(self, key: str, value: Any) -> None: ...


class HostPlatform(Protocol):
  def find_course_by_summary(self, summary: str) -> int | None: ...
  def find_category_by_name(self, name: str) -> int | None: ...
  def create_category(self, name: str) -> int | None: ...
  def list_category_ids(self) -> list[int]: ...
  def create_course(self, course: CourseRecord) -> int: ...
  def get_last_section_id(self, course_id: int) -> int | None: ...
  def get_module_id(self, name: str) -> int: ...
  def find_lti_type_by_icon(self, icon: str) -> LtiType | None: ...
  def update_lti_type(self, lti_type: LtiType) -> int: ...
  def add_lti_type(self, config: LtiTypeConfig) -> int: ...
  def add_course_module(self, module: CourseModuleRecord) -> int: ...
  def insert_plugin_record(self, record: PluginRecord) -> int: ...
