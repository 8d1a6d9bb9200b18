"""
Resolves what each staged operation needs beyond the matched pointer:
the replacement value for replace rules, and the destination pointer for
move and rename rules.

Resolution reads the working document as it stands when the rule starts, so
a rule sees every mutation made by the rules before it.
"""

import copy
from typing import Any, List, Optional

from ..rules.common import (
	MISSING, MoveRule, MoveTargetMode, RenameRule, RenameTargetMode, ReplaceRule, ValueMode
)
from .errors import (
	InvalidTargetError, RenameCollisionError, RootMutationError, UnresolvedValueError, UnsafePointerError,
	ValueArityError
)
from .matcher import MatcherEvaluator
from .path_utils import simple_jsonpath_to_pointer
from .pointer import (
	ensure_pointer_safety, is_unsafe_key, join_pointer, normalize_pointer, parent_and_key, split_pointer
)

QUERY_SIGIL = "$"
CURRENT_NODE_SIGIL = "@"


class TargetResolver:
	"""Per-kind value and destination resolution for staged operations."""

	def __init__(self, matcher: MatcherEvaluator):
		self.matcher = matcher

	def require_value(self, rule: ReplaceRule):
		"""Raise UnresolvedValueError if the rule carries no value at all."""
		if rule.value is MISSING:
			raise UnresolvedValueError("replacement value is required")

	def resolve_value(self, document: Any, rule: ReplaceRule) -> Any:
		"""
		Resolve the replacement value of a replace rule.

		In LITERAL mode the value is used as given. In AUTO mode a string starting
		with '$' is evaluated against the document and must produce exactly one value.
		The result is always a deep copy, never a reference into the document.
		"""
		self.require_value(rule)
		value = rule.value
		if rule.value_mode is ValueMode.LITERAL:
			return copy.deepcopy(value)
		if isinstance(value, str) and value.strip().startswith(QUERY_SIGIL):
			expression = value.strip()
			resolved = self.matcher.query.evaluate_values(document, expression)
			if len(resolved) != 1:
				raise ValueArityError(
					f"Expected exactly one value for JSONPath '{value}', received {len(resolved)}", expression,
					len(resolved)
				)
			return copy.deepcopy(resolved[0])
		return copy.deepcopy(value)

	def resolve_move_target(self, document: Any, rule: MoveRule) -> Optional[str]:
		"""
		Resolve the destination pointer of a move rule.

		Returns:
			The destination pointer, or None when the target query matched nothing
			and the rule allows empty values.
		"""
		target = (rule.target or "").strip()
		if not target:
			raise InvalidTargetError("Move operations require a target pointer or JSONPath")

		if rule.target_mode is MoveTargetMode.POINTER:
			return self._accept_pointer(target)
		if rule.target_mode is MoveTargetMode.JSONPATH:
			return self._resolve_target_query(document, rule, target)
		if target.startswith("/"):
			return self._accept_pointer(target)
		if target.startswith(QUERY_SIGIL):
			return self._resolve_target_query(document, rule, target)
		raise InvalidTargetError("Target must start with '/' for JSONPointer or '$' for JSONPath")

	def _resolve_target_query(self, document: Any, rule: MoveRule, expression: str) -> Optional[str]:
		pointers = self.matcher.evaluate(document, expression)
		if len(pointers) == 1:
			return self._accept_pointer(pointers[0])
		if not pointers:
			if rule.allow_empty_value:
				return None
			# A destination that does not exist yet can still be named by a simple path
			fallback = simple_jsonpath_to_pointer(expression)
			if fallback is not None:
				return self._accept_pointer(fallback)
		raise ValueArityError(
			f"Expected exactly one target pointer for JSONPath '{rule.target}', received {len(pointers)}",
			expression, len(pointers)
		)

	def _accept_pointer(self, pointer: str) -> str:
		normalized = normalize_pointer(pointer)
		ensure_pointer_safety(normalized)
		return normalized

	def resolve_rename_target(self, document: Any, pointer: str, rule: RenameRule) -> Optional[str]:
		"""
		Resolve the destination pointer of a rename.

		The new key is derived relative to the matched property's parent object and
		appended to the parent pointer.

		Returns:
			The destination pointer, or None when the rename is a no-op (same key) or
			the target query matched nothing and the rule allows empty values.
		"""
		parent, key = parent_and_key(document, pointer)
		if key is None:
			raise RootMutationError("Cannot rename the root document")
		if not isinstance(parent, dict):
			raise InvalidTargetError("Rename operations can only target object properties")

		target = (rule.target or "").strip()
		if not target:
			if rule.allow_empty_value:
				return None
			raise InvalidTargetError("Rename operations require a target key or JSONPath")

		if rule.target_mode is RenameTargetMode.LITERAL:
			new_key = self._coerce_key(target)
		elif rule.target_mode is RenameTargetMode.JSONPATH or target.startswith((QUERY_SIGIL, CURRENT_NODE_SIGIL)):
			values = self._evaluate_relative(parent, target)
			if not values:
				if rule.allow_empty_value:
					return None
				raise ValueArityError(
					f"Expected JSONPath '{rule.target}' to resolve to exactly one string key", target, 0
				)
			if len(values) != 1:
				raise ValueArityError(
					f"Expected JSONPath '{rule.target}' to resolve to exactly one string key but received {len(values)}",
					target, len(values)
				)
			new_key = self._coerce_key(values[0])
		else:
			new_key = self._coerce_key(target)

		if is_unsafe_key(new_key):
			raise UnsafePointerError(new_key)
		if new_key == key:
			return None
		if new_key in parent:
			raise RenameCollisionError(f"Property '{new_key}' already exists on the target object")

		destination = join_pointer(split_pointer(pointer)[:-1] + [new_key])
		ensure_pointer_safety(destination)
		return destination

	def _evaluate_relative(self, parent: dict, target: str) -> List[Any]:
		# '@' addresses the parent object, which is the query root here
		expression = QUERY_SIGIL + target[1:] if target.startswith(CURRENT_NODE_SIGIL) else target
		return self.matcher.query.evaluate_values(parent, expression)

	@staticmethod
	def _coerce_key(value: Any) -> str:
		if not isinstance(value, str):
			raise InvalidTargetError("Rename target must resolve to a string key")
		normalized = value.strip()
		if not normalized:
			raise InvalidTargetError("Rename target must be a non-empty string")
		return normalized
