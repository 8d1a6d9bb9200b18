"""
JSON Pointer (RFC 6901) primitives over an in-memory document tree.

A document is nested dicts, lists and scalars. Pointers are strings such as
"/users/0/name"; the empty string addresses the document root.

Mutating helpers work in place and return the tree, because replacing or
inserting at the root swaps the whole document for a new value:

	document = insert(document, "/published/body", "hello")

Every write checks the pointer for reserved keys before touching anything.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from .errors import (
	IndexOutOfBoundsError, PointerError, PointerNotFoundError, RootMutationError, UnsafePointerError
)

# Keys that would rewire an object's prototype chain in a JavaScript consumer of the patch
UNSAFE_KEYS = frozenset(("__proto__", "prototype", "constructor"))

APPEND_TOKEN = "-"

_INDEX_PATTERN = re.compile(r'^[0-9]+$')


def decode_token(token: str) -> str:
	return token.replace("~1", "/").replace("~0", "~")


def encode_token(token: str) -> str:
	return token.replace("~", "~0").replace("/", "~1")


def split_pointer(pointer: str) -> List[str]:
	"""Split a pointer into unescaped tokens. The root pointer yields an empty list."""
	if pointer == "":
		return []
	if not pointer.startswith("/"):
		raise PointerError(f"Invalid JSON pointer: {pointer}")
	return [decode_token(token) for token in pointer[1:].split("/")]


def join_pointer(tokens: List[Union[str, int]]) -> str:
	if not tokens:
		return ""
	return "/" + "/".join(encode_token(str(token)) for token in tokens)


def normalize_pointer(pointer: str) -> str:
	"""Force the leading-slash form ("a/b" and "//a/b" both become "/a/b")."""
	if pointer == "":
		return ""
	if not pointer.startswith("/"):
		return "/" + pointer.lstrip("/")
	return pointer


def parent_pointer(pointer: str) -> str:
	"""Pointer of the containing node. The root is its own parent."""
	return join_pointer(split_pointer(pointer)[:-1])


def is_unsafe_key(key: str) -> bool:
	return key in UNSAFE_KEYS


def ensure_pointer_safety(pointer: str):
	"""Raise UnsafePointerError if any token of the pointer is a reserved key."""
	for token in split_pointer(pointer):
		if is_unsafe_key(token):
			raise UnsafePointerError(token)


def array_index(token: str) -> Optional[int]:
	"""Parse an array token, returning None for anything that is not a non-negative integer."""
	if not _INDEX_PATTERN.match(token):
		return None
	return int(token)


def _resolve_index(token: str, items: list, allow_end: bool = False) -> int:
	index = array_index(token)
	limit = len(items) + 1 if allow_end else len(items)
	if index is None or index >= limit:
		raise IndexOutOfBoundsError(f"Array index {token} is out of bounds")
	return index


def _child(node: Any, token: str) -> Any:
	if isinstance(node, list):
		if token == APPEND_TOKEN:
			raise IndexOutOfBoundsError("Cannot resolve '-' within JSON pointer")
		return node[_resolve_index(token, node)]
	if isinstance(node, dict):
		if token not in node:
			raise PointerNotFoundError(f"Property '{token}' does not exist")
		return node[token]
	raise PointerNotFoundError(f"Cannot traverse pointer segment '{token}' on non-container value")


def read(tree: Any, pointer: str) -> Any:
	"""Return the value at pointer, raising PointerError if it does not exist."""
	current = tree
	for token in split_pointer(pointer):
		current = _child(current, token)
	return current


def parent_and_key(tree: Any, pointer: str) -> Tuple[Any, Optional[str]]:
	"""
	Resolve the container holding the pointer's final token.

	Returns:
		(parent, key) for any non-root pointer, (None, None) for the root.
		Callers must test the key, not the parent, since a parent may itself be None.
	"""
	tokens = split_pointer(pointer)
	if not tokens:
		return None, None
	parent = tree
	for token in tokens[:-1]:
		parent = _child(parent, token)
	return parent, tokens[-1]


@dataclass
class Removal:
	"""A value detached from its container, with enough context to put it back."""
	parent: Any
	key: Union[int, str]
	value: Any
	position: int

	def undo(self):
		"""Re-attach the value at its original position."""
		if isinstance(self.parent, list):
			self.parent.insert(self.key, self.value)
			return
		# dicts keep insertion order, so rebuild it to restore the key's slot
		items = list(self.parent.items())
		items.insert(self.position, (self.key, self.value))
		self.parent.clear()
		self.parent.update(items)


def take(tree: Any, pointer: str) -> Removal:
	"""Detach the value at pointer and return a Removal record for it."""
	parent, key = parent_and_key(tree, pointer)
	if key is None:
		raise RootMutationError("Cannot remove the root document")
	if isinstance(parent, list):
		if key == APPEND_TOKEN:
			raise IndexOutOfBoundsError("'-' is not allowed when removing array elements")
		index = _resolve_index(key, parent)
		return Removal(parent=parent, key=index, value=parent.pop(index), position=index)
	if isinstance(parent, dict):
		if key not in parent:
			raise PointerNotFoundError(f"Property '{key}' does not exist")
		position = list(parent).index(key)
		return Removal(parent=parent, key=key, value=parent.pop(key), position=position)
	raise PointerError("Cannot remove from non-container value")


def remove(tree: Any, pointer: str) -> Any:
	take(tree, pointer)
	return tree


def replace(tree: Any, pointer: str, value: Any) -> Any:
	"""Overwrite an existing location. Replacing the root returns value as the new tree."""
	ensure_pointer_safety(pointer)
	parent, key = parent_and_key(tree, pointer)
	if key is None:
		return value
	if isinstance(parent, list):
		if key == APPEND_TOKEN:
			raise IndexOutOfBoundsError("'-' is not allowed when replacing array elements")
		parent[_resolve_index(key, parent)] = value
		return tree
	if isinstance(parent, dict):
		if key not in parent:
			raise PointerNotFoundError(f"Property '{key}' does not exist")
		parent[key] = value
		return tree
	raise PointerError("Cannot replace within non-container value")


def insert(tree: Any, pointer: str, value: Any) -> Any:
	"""
	Add a value at pointer.

	Objects accept any key (an existing key is overwritten). Arrays accept an
	index in 0..len, shifting later elements, or '-' to append.
	"""
	ensure_pointer_safety(pointer)
	parent, key = parent_and_key(tree, pointer)
	if key is None:
		return value
	if isinstance(parent, list):
		if key == APPEND_TOKEN:
			parent.append(value)
		else:
			parent.insert(_resolve_index(key, parent, allow_end=True), value)
		return tree
	if isinstance(parent, dict):
		parent[key] = value
		return tree
	raise PointerError("Cannot add within non-container value")
