"""
Turns a rule's matched pointers into staged operations and orders them for
execution.

Staging never mutates the document. Resolution failures are recorded as
rule-scoped error strings and the match is dropped; they never abort the
remaining matches.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..rules.common import Rule, RuleKind
from .errors import TransformerError, UnresolvedValueError, ValueArityError
from .operations import MoveOperation, PatchOperation, RemoveOperation, ReplaceOperation, StagedOperation
from .pointer import array_index, parent_pointer, split_pointer
from .resolver import TargetResolver

logger = logging.getLogger(__name__)

RESOLUTION_ERROR_LABELS: Dict[RuleKind, str] = {
	RuleKind.REMOVE: "remove error",
	RuleKind.REPLACE: "replace value error",
	RuleKind.MOVE: "move target error",
	RuleKind.RENAME: "rename target error",
}


@dataclass
class StagingOutcome:
	"""Operations staged for one rule, plus what went wrong while resolving them."""
	operations: List[StagedOperation] = field(default_factory=list)
	errors: List[str] = field(default_factory=list)
	# True once a match was skipped on purpose, which silences the no-op warning
	suppress_warning: bool = False


class OperationStager:
	"""Builds pending operations from matched pointers."""

	def __init__(self, resolver: TargetResolver):
		self.resolver = resolver

	def stage(self, document: Any, rule: Rule, rule_number: int, pointers: List[str]) -> StagingOutcome:
		"""
		Stage one operation per matched pointer, in match order, then reorder removals.

		Args:
			document: The working document (read only here).
			rule: The rule being executed.
			rule_number: 1-based rule position, used in error messages.
			pointers: Distinct pointers returned by the matcher.
		"""
		outcome = StagingOutcome()
		label = RESOLUTION_ERROR_LABELS[rule.kind]

		if rule.kind is RuleKind.REPLACE:
			try:
				self.resolver.require_value(rule)
			except UnresolvedValueError as e:
				if rule.allow_empty_value:
					outcome.suppress_warning = True
				else:
					outcome.errors.append(f"Rule {rule_number} {label}: {e}")
				return outcome

		for match_index, pointer in enumerate(pointers):
			try:
				patch = self._build_patch(document, rule, pointer)
			except ValueArityError as e:
				if e.observed == 0 and rule.allow_empty_value:
					outcome.suppress_warning = True
					continue
				outcome.errors.append(f"Rule {rule_number} {label}: {e}")
				continue
			except TransformerError as e:
				outcome.errors.append(f"Rule {rule_number} {label}: {e}")
				continue

			if patch is None:
				logger.debug("Rule %s skipped match %s (nothing to do)", rule.id, pointer)
				outcome.suppress_warning = True
				continue

			outcome.operations.append(
				StagedOperation(match_index=match_index, pointer=pointer, kind=rule.kind, patch=patch)
			)

		outcome.operations = reorder_removals(outcome.operations)
		return outcome

	def _build_patch(self, document: Any, rule: Rule, pointer: str) -> Optional[PatchOperation]:
		if rule.kind is RuleKind.REMOVE:
			return RemoveOperation(path=pointer)
		if rule.kind is RuleKind.REPLACE:
			return ReplaceOperation(path=pointer, value=self.resolver.resolve_value(document, rule))
		if rule.kind is RuleKind.MOVE:
			destination = self.resolver.resolve_move_target(document, rule)
		else:
			destination = self.resolver.resolve_rename_target(document, pointer, rule)
		if destination is None:
			return None
		return MoveOperation(from_pointer=pointer, path=destination)


def reorder_removals(operations: List[StagedOperation]) -> List[StagedOperation]:
	"""
	Reorder same-parent array removals so higher indices go first.

	Removals are grouped by parent pointer. Within a group, the members are
	sorted by descending index and written back into the slots the group
	already occupied, so every other operation keeps its position.
	"""
	ordered = list(operations)
	groups: Dict[str, List[int]] = OrderedDict()

	for position, operation in enumerate(operations):
		if not isinstance(operation.patch, RemoveOperation):
			continue
		if _removal_index(operation) is None:
			continue
		groups.setdefault(parent_pointer(operation.patch.path), []).append(position)

	for positions in groups.values():
		members = sorted((operations[position] for position in positions), key=_removal_index, reverse=True)
		for position, member in zip(positions, members):
			ordered[position] = member

	return ordered


def _removal_index(operation: StagedOperation) -> Optional[int]:
	tokens = split_pointer(operation.patch.path)
	if not tokens:
		return None
	return array_index(tokens[-1])
