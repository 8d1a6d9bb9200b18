"""
Matcher evaluation.

Rules locate nodes with JSONPath expressions. The query language itself lives
behind the QueryEvaluator protocol; the default implementation delegates to
python-jsonpath. MatcherEvaluator wraps whichever evaluator is injected and
turns its raw output into the ordered, duplicate-free pointer list the engine
stages operations from.
"""

import logging
import re
from typing import Any, List, Optional, Protocol

import jsonpath

from .errors import EmptyMatcherError, MatchError, QueryError
from .pointer import normalize_pointer

logger = logging.getLogger(__name__)

# Failure text of query backends that raise when a filter dereferences a property of a
# missing value. JsonPathQueryEvaluator never raises here (a missing property is simply
# Nothing and the comparison is false), so guidance only appears with such custom backends.
UNDEFINED_PROPERTY_PATTERN = re.compile(
	r"cannot read propert(?:y|ies) of (?:undefined|null)|'NoneType' object", re.IGNORECASE
)

GUARDED_FILTER_GUIDANCE = (
	"Ensure optional segments exist before comparing, e.g. "
	"@.inspection && @.inspection.meta && @.inspection.meta.status == \"OK\". "
	"JSONPath filters do not support optional chaining syntax (?.)."
)


class QueryEvaluator(Protocol):
	"""
	The query collaborator consumed by the engine.

	Both methods are read-only with respect to the document and raise
	QueryError when the expression cannot be evaluated.
	"""

	def evaluate_pointers(self, document: Any, expression: str) -> List[str]:
		...

	def evaluate_values(self, document: Any, expression: str) -> List[Any]:
		...


class JsonPathQueryEvaluator:
	"""
	QueryEvaluator backed by python-jsonpath (RFC 9535 JSONPath).

	python-jsonpath reads str data as JSON text. A string document is a scalar
	with no children, so it is queried through a non-string stand-in: only
	root-level expressions such as "$" can match it, and they yield the string.
	"""

	def __init__(self, environment: Optional[jsonpath.JSONPathEnvironment] = None):
		self.environment = environment or jsonpath.JSONPathEnvironment()

	def evaluate_pointers(self, document: Any, expression: str) -> List[str]:
		try:
			matches = self.environment.finditer(expression, _queryable(document))
			return [str(match.pointer()) for match in matches]
		except (jsonpath.JSONPathError, ValueError) as e:
			raise QueryError(str(e)) from e

	def evaluate_values(self, document: Any, expression: str) -> List[Any]:
		try:
			values = self.environment.findall(expression, _queryable(document))
		except (jsonpath.JSONPathError, ValueError) as e:
			raise QueryError(str(e)) from e
		if isinstance(document, str):
			return [document for _ in values]
		return values


def _queryable(document: Any) -> Any:
	return None if isinstance(document, str) else document


class MatcherEvaluator:
	"""Runs matcher expressions against the working document."""

	def __init__(self, query: Optional[QueryEvaluator] = None):
		self.query = query or JsonPathQueryEvaluator()

	def evaluate(self, document: Any, expression: str) -> List[str]:
		"""
		Evaluate a matcher expression to JSON pointers.

		Args:
			document: The current working document.
			expression: JSONPath expression; surrounding whitespace is ignored.

		Returns:
			Leading-slash pointers in first-seen order, each location once.

		Raises:
			EmptyMatcherError: The expression is blank.
			MatchError: The query collaborator failed. Failures matching
				UNDEFINED_PROPERTY_PATTERN carry GUARDED_FILTER_GUIDANCE.
		"""
		normalized = (expression or "").strip()
		if not normalized:
			raise EmptyMatcherError()

		try:
			raw_pointers = self.query.evaluate_pointers(document, normalized)
		except QueryError as e:
			message = str(e)
			guidance = GUARDED_FILTER_GUIDANCE if UNDEFINED_PROPERTY_PATTERN.search(message) else None
			raise MatchError(message, guidance) from e

		pointers = list(dict.fromkeys(normalize_pointer(pointer) for pointer in raw_pointers))
		if len(pointers) != len(raw_pointers):
			logger.debug("Matcher %r returned %d duplicate pointer(s)", normalized, len(raw_pointers) - len(pointers))
		return pointers
