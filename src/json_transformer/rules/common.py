"""
Rule records.

A rule is one of four frozen dataclasses, discriminated by its ``kind`` class
attribute. Each class only carries the fields that make sense for its kind, so
for example a RemoveRule has no value and can never allow an empty one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Type, Union

from ..common.errors import RuleConfigError


class RuleKind(Enum):
	"""Operation kinds a rule can perform."""
	REMOVE = "remove"
	REPLACE = "replace"
	MOVE = "move"
	RENAME = "rename"


class ValueMode(Enum):
	"""How a replace rule interprets its value."""
	AUTO = "auto"
	LITERAL = "literal"


class MoveTargetMode(Enum):
	"""How a move rule interprets its target."""
	AUTO = "auto"
	POINTER = "pointer"
	JSONPATH = "jsonpath"


class RenameTargetMode(Enum):
	"""How a rename rule interprets its target."""
	AUTO = "auto"
	LITERAL = "literal"
	JSONPATH = "jsonpath"


class _Missing:
	"""Sentinel for a replace value that was never supplied (JSON null is a real value)."""

	def __repr__(self):
		return "MISSING"

	def __bool__(self):
		return False

	def __copy__(self):
		return self

	def __deepcopy__(self, memo):
		return self


MISSING: Any = _Missing()


def coerce_mode(mode_class: Type[Enum], value: Any, field_name: str) -> Enum:
	"""Accept an enum member or its string value."""
	if isinstance(value, mode_class):
		return value
	try:
		return mode_class(value)
	except ValueError:
		allowed = ", ".join(member.value for member in mode_class)
		raise RuleConfigError(f"Invalid {field_name} '{value}' (expected one of: {allowed})") from None


@dataclass(frozen=True)
class RemoveRule:
	"""Deletes every matched location."""
	id: str
	matcher: str
	disabled: bool = False
	allow_empty_matcher: bool = False

	kind: ClassVar[RuleKind] = RuleKind.REMOVE
	allow_empty_value: ClassVar[bool] = False


@dataclass(frozen=True)
class ReplaceRule:
	"""
	Overwrites every matched location with a value.

	With value_mode AUTO, a string value starting with '$' is a JSONPath query
	against the working document that must yield exactly one value. LITERAL
	always uses the value as given.
	"""
	id: str
	matcher: str
	value: Any = MISSING
	value_mode: ValueMode = ValueMode.AUTO
	disabled: bool = False
	allow_empty_matcher: bool = False
	allow_empty_value: bool = False

	kind: ClassVar[RuleKind] = RuleKind.REPLACE

	def __post_init__(self):
		object.__setattr__(self, 'value_mode', coerce_mode(ValueMode, self.value_mode, 'value_mode'))


@dataclass(frozen=True)
class MoveRule:
	"""Moves every matched value to a JSON Pointer or JSONPath target."""
	id: str
	matcher: str
	target: str
	target_mode: MoveTargetMode = MoveTargetMode.AUTO
	disabled: bool = False
	allow_empty_matcher: bool = False
	allow_empty_value: bool = False

	kind: ClassVar[RuleKind] = RuleKind.MOVE

	def __post_init__(self):
		object.__setattr__(self, 'target_mode', coerce_mode(MoveTargetMode, self.target_mode, 'target_mode'))


@dataclass(frozen=True)
class RenameRule:
	"""Renames the key of every matched object property."""
	id: str
	matcher: str
	target: str
	target_mode: RenameTargetMode = RenameTargetMode.AUTO
	disabled: bool = False
	allow_empty_matcher: bool = False
	allow_empty_value: bool = False

	kind: ClassVar[RuleKind] = RuleKind.RENAME

	def __post_init__(self):
		object.__setattr__(self, 'target_mode', coerce_mode(RenameTargetMode, self.target_mode, 'target_mode'))


Rule = Union[RemoveRule, ReplaceRule, MoveRule, RenameRule]
