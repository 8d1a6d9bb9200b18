"""
Exception hierarchy for the transformer.

Pointer primitives, the matcher and the resolvers raise these; the engine
catches TransformerError and turns it into rule-scoped diagnostic messages,
so nothing in this hierarchy escapes run_transformer().
"""

from typing import Optional


class TransformerError(Exception):
	"""Base class for every failure the engine knows how to report."""


class RuleConfigError(TransformerError, ValueError):
	"""A rule record or rule file entry is malformed."""


class PatchFormatError(TransformerError, ValueError):
	"""A patch operation object is malformed or uses an unsupported op."""


class DocumentFormatError(TransformerError, ValueError):
	"""A loaded document or rule file holds values JSON cannot represent."""


class EmptyMatcherError(TransformerError):
	"""The matcher expression is empty after trimming."""

	def __init__(self):
		super().__init__("Matcher JSONPath expression is empty")


class QueryError(TransformerError):
	"""The query collaborator failed to evaluate an expression."""


class MatchError(TransformerError):
	"""
	A matcher expression could not be evaluated.

	Attributes:
		guidance: Extra advice appended to the message, if any.
	"""

	def __init__(self, message: str, guidance: Optional[str] = None):
		self.guidance = guidance
		super().__init__(f"{message}. {guidance}" if guidance else message)


class ValueArityError(TransformerError):
	"""A query had to resolve to exactly one result but did not."""

	def __init__(self, message: str, expression: str, observed: int):
		self.expression = expression
		self.observed = observed
		super().__init__(message)


class UnresolvedValueError(TransformerError):
	"""A replace rule carries no value."""


class UnsafePointerError(TransformerError):
	"""A write targets a reserved inheritance-chain key."""

	def __init__(self, key: str):
		self.key = key
		super().__init__(f"Unsafe pointer segment '{key}' is not allowed")


class InvalidTargetError(TransformerError):
	"""A move/rename target string cannot be interpreted."""


class RenameCollisionError(TransformerError):
	"""The rename destination key already exists on the parent object."""


class PointerError(TransformerError):
	"""Structural failure while reading or mutating the document."""


class PointerNotFoundError(PointerError):
	"""A pointer segment does not exist."""


class IndexOutOfBoundsError(PointerError):
	"""An array token is not a valid index for the array."""


class RootMutationError(PointerError):
	"""The operation is not allowed on the document root."""
