"""
Data model for patch operations and their diagnostics.

Operations are declarative data objects describing JSON Pointer mutations.
This makes them serializable as an RFC 6902 patch, reviewable in diagnostics,
and replayable by any patch applier that understands remove/replace/move.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from ..rules.common import RuleKind
from .errors import PatchFormatError
from .path_utils import pointer_to_analysis_path


class OperationStatus(Enum):
	"""Outcome of applying a staged operation."""
	APPLIED = "applied"
	SKIPPED = "skipped"


@dataclass(frozen=True)
class RemoveOperation:
	"""Delete the value at path."""
	path: str

	op: ClassVar[str] = "remove"

	def to_dict(self) -> Dict[str, Any]:
		return {"op": self.op, "path": self.path}


@dataclass(frozen=True)
class ReplaceOperation:
	"""Overwrite the existing value at path."""
	path: str
	value: Any

	op: ClassVar[str] = "replace"

	def to_dict(self) -> Dict[str, Any]:
		return {"op": self.op, "path": self.path, "value": self.value}


@dataclass(frozen=True)
class MoveOperation:
	"""Detach the value at from_pointer and insert it at path."""
	from_pointer: str
	path: str

	op: ClassVar[str] = "move"

	def to_dict(self) -> Dict[str, Any]:
		return {"op": self.op, "from": self.from_pointer, "path": self.path}


PatchOperation = Union[RemoveOperation, ReplaceOperation, MoveOperation]


def patch_operation_from_dict(data: Dict[str, Any]) -> PatchOperation:
	"""Parse one RFC 6902 operation object (remove, replace or move only)."""
	op = data.get("op") if isinstance(data, dict) else None
	path = data.get("path") if isinstance(data, dict) else None
	if not isinstance(path, str):
		raise PatchFormatError("Patch operation requires a string 'path'")
	if op == "remove":
		return RemoveOperation(path=path)
	if op == "replace":
		if "value" not in data:
			raise PatchFormatError("Patch operation 'replace' requires a 'value'")
		return ReplaceOperation(path=path, value=data["value"])
	if op == "move":
		if not isinstance(data.get("from"), str):
			raise PatchFormatError("Patch operation 'move' requires a string 'from'")
		return MoveOperation(from_pointer=data["from"], path=path)
	raise PatchFormatError(f"Unsupported patch op: {op}")


@dataclass
class StagedOperation:
	"""
	One pending or executed operation for a single match of a rule.

	Attributes:
		match_index: Position of the matched pointer in the matcher's result.
		pointer: The matched pointer.
		kind: Logical kind; a rename is staged as a MoveOperation with kind RENAME.
		patch: The patch summary to apply.
		status: SKIPPED until the executor applies it successfully.
		message: Failure reason when the operation could not be applied.
	"""
	match_index: int
	pointer: str
	kind: RuleKind
	patch: PatchOperation
	status: OperationStatus = OperationStatus.SKIPPED
	message: Optional[str] = None

	def format_path(self) -> str:
		"""Format the matched pointer as a readable analysis path (root.a.b[0])."""
		return pointer_to_analysis_path(self.pointer)

	def to_dict(self) -> Dict[str, Any]:
		data = {
			'match_index': self.match_index,
			'pointer': self.pointer,
			'op': self.kind.value,
			'summary': self.patch.to_dict(),
			'status': self.status.value,
		}
		if self.message is not None:
			data['message'] = self.message
		return data


@dataclass
class RuleDiagnostic:
	"""Everything one rule did, produced exactly once per rule."""
	rule_id: str
	matcher: str
	kind: RuleKind
	match_count: int = 0
	operations: List[StagedOperation] = field(default_factory=list)
	errors: List[str] = field(default_factory=list)
	warnings: List[str] = field(default_factory=list)
	# Milliseconds spent on the rule, set only when timing is enabled
	duration_ms: Optional[float] = None

	@property
	def applied_count(self) -> int:
		return sum(1 for operation in self.operations if operation.status is OperationStatus.APPLIED)

	@property
	def skipped_count(self) -> int:
		return len(self.operations) - self.applied_count

	def to_dict(self) -> Dict[str, Any]:
		data = {
			'rule_id': self.rule_id,
			'matcher': self.matcher,
			'op': self.kind.value,
			'match_count': self.match_count,
			'operations': [operation.to_dict() for operation in self.operations],
			'errors': list(self.errors),
			'warnings': list(self.warnings),
		}
		if self.duration_ms is not None:
			data['duration_ms'] = self.duration_ms
		return data
