"""
This module implements the rule execution engine.

The input document is deep-cloned once. Rules then run strictly in order, and
each rule's staged operations are applied to the working document before the
next rule is evaluated, so later rules observe earlier mutations. Every
failure is captured as a rule-scoped message in the diagnostics; no
TransformerError crosses the engine boundary.
"""

import copy
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .common import pointer
from .common.errors import EmptyMatcherError, MatchError, TransformerError
from .common.matcher import MatcherEvaluator, QueryEvaluator
from .common.operations import (
	MoveOperation, OperationStatus, PatchOperation, RemoveOperation, ReplaceOperation, RuleDiagnostic,
	patch_operation_from_dict
)
from .common.resolver import TargetResolver
from .common.stager import OperationStager
from .rules.common import Rule

logger = logging.getLogger(__name__)

NO_OP_WARNING = "No matches produced patch operations"

APPLY_FAILURE_LABELS = {
	RemoveOperation.op: "Remove",
	ReplaceOperation.op: "Replace",
	MoveOperation.op: "Move",
}


@dataclass
class TransformerResult:
	"""Results from a transformer run."""
	document: Any
	applied_operations: List[PatchOperation] = field(default_factory=list)
	diagnostics: List[RuleDiagnostic] = field(default_factory=list)
	errors: List[str] = field(default_factory=list)
	warnings: List[str] = field(default_factory=list)
	rule_timings: Dict[str, float] = field(default_factory=dict)

	@property
	def ok(self) -> bool:
		return not self.errors

	def patch(self) -> List[Dict[str, Any]]:
		"""The applied operations as an RFC 6902 patch."""
		return [operation.to_dict() for operation in self.applied_operations]

	def to_dict(self) -> Dict[str, Any]:
		return {
			'ok': self.ok,
			'document': self.document,
			'operations': self.patch(),
			'diagnostics': [diagnostic.to_dict() for diagnostic in self.diagnostics],
			'errors': list(self.errors),
			'warnings': list(self.warnings),
		}


def apply_operation(document: Any, operation: PatchOperation) -> Any:
	"""
	Apply one patch operation in place and return the (possibly new) document.

	A failed operation leaves the document as it was before the call.
	"""
	if isinstance(operation, RemoveOperation):
		return pointer.remove(document, operation.path)
	if isinstance(operation, ReplaceOperation):
		return pointer.replace(document, operation.path, copy.deepcopy(operation.value))
	if isinstance(operation, MoveOperation):
		removal = pointer.take(document, operation.from_pointer)
		try:
			return pointer.insert(document, operation.path, copy.deepcopy(removal.value))
		except TransformerError:
			removal.undo()
			raise
	raise TypeError(f"Unsupported patch operation: {operation!r}")


def apply_patch(document: Any, operations: Iterable[Union[PatchOperation, Dict[str, Any]]]) -> Any:
	"""
	Replay a remove/replace/move patch against a copy of document.

	Unlike the engine, replay stops at the first failing operation and raises.
	"""
	result = copy.deepcopy(document)
	for operation in operations:
		if isinstance(operation, dict):
			operation = patch_operation_from_dict(operation)
		result = apply_operation(result, operation)
	return result


class TransformEngine:
	"""Runs ordered rules against a document and records what happened."""

	def __init__(self, query: Optional[QueryEvaluator] = None):
		self.matcher = MatcherEvaluator(query)
		self.resolver = TargetResolver(self.matcher)
		self.stager = OperationStager(self.resolver)

	def run(self, document: Any, rules: Sequence[Rule], enable_timing: bool = False) -> TransformerResult:
		"""
		Transform a deep copy of document with the given rules.

		Args:
			document: The input document; it is never mutated.
			rules: Rules to execute, in order.
			enable_timing: Record each rule's duration in milliseconds on its diagnostic.
				rule_timings sums the durations per rule id, so rules sharing an id share a total.

		Returns:
			TransformerResult with the transformed document and diagnostics.
		"""
		working = copy.deepcopy(document)
		result = TransformerResult(document=working)

		for rule_number, rule in enumerate(rules, start=1):
			if enable_timing:
				start_time = time.perf_counter()

			working, diagnostic, applied = self._run_rule(working, rule, rule_number)

			if enable_timing:
				diagnostic.duration_ms = (time.perf_counter() - start_time) * 1000.0
				result.rule_timings[rule.id] = result.rule_timings.get(rule.id, 0.0) + diagnostic.duration_ms

			result.diagnostics.append(diagnostic)
			result.applied_operations.extend(applied)
			result.errors.extend(diagnostic.errors)
			result.warnings.extend(diagnostic.warnings)

		result.document = working
		logger.debug(
			"Transformer finished: %d rule(s), %d applied operation(s), %d error(s), %d warning(s)", len(rules),
			len(result.applied_operations), len(result.errors), len(result.warnings)
		)
		return result

	def _run_rule(self, document: Any, rule: Rule,
					rule_number: int) -> Tuple[Any, RuleDiagnostic, List[PatchOperation]]:
		"""Evaluate, stage and apply a single rule."""
		diagnostic = RuleDiagnostic(rule_id=rule.id, matcher=rule.matcher, kind=rule.kind)
		if rule.disabled:
			logger.debug("Rule %s is disabled, skipping", rule.id)
			return document, diagnostic, []

		suppress_warning = False
		pointers: List[str] = []
		try:
			pointers = self.matcher.evaluate(document, rule.matcher)
		except EmptyMatcherError:
			suppress_warning = True
		except MatchError as e:
			diagnostic.errors.append(f"Rule {rule_number} ({rule.kind.value}) matcher error: {e}")
		if not pointers and rule.allow_empty_matcher:
			suppress_warning = True

		diagnostic.match_count = len(pointers)
		logger.debug("Rule %s (%s) matched %d pointer(s)", rule.id, rule.kind.value, len(pointers))

		staging = self.stager.stage(document, rule, rule_number, pointers)
		diagnostic.errors.extend(staging.errors)
		suppress_warning = suppress_warning or staging.suppress_warning

		if not (suppress_warning or staging.operations or pointers or diagnostic.errors):
			diagnostic.warnings.append(NO_OP_WARNING)

		applied = []
		for operation in staging.operations:
			try:
				document = apply_operation(document, operation.patch)
			except TransformerError as e:
				operation.status = OperationStatus.SKIPPED
				operation.message = str(e)
				label = APPLY_FAILURE_LABELS[operation.patch.op]
				diagnostic.errors.append(f"{label} {operation.pointer} failed: {e}")
				logger.debug("Rule %s skipped %s %s: %s", rule.id, operation.patch.op, operation.pointer, e)
				continue
			operation.status = OperationStatus.APPLIED
			applied.append(operation.patch)

		diagnostic.operations = staging.operations
		return document, diagnostic, applied


def run_transformer(
	document: Any, rules: Sequence[Rule], query: Optional[QueryEvaluator] = None, enable_timing: bool = False
) -> TransformerResult:
	"""Run rules against document with a fresh engine. See TransformEngine.run()."""
	return TransformEngine(query).run(document, rules, enable_timing=enable_timing)
