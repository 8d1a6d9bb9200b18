"""
Conversions between the three path notations the transformer deals with.

	Analysis path:  root.users[0]["first name"]
	JSONPath:       $.users[0]['first name']
	JSON Pointer:   /users/0/first name

Analysis paths are the dotted form shown to users in editors and reports.
"""

import re
from typing import Any, Optional

from .errors import PointerError
from .pointer import encode_token, read, split_pointer

NORMAL_KEY_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

ANALYSIS_SEGMENT_PATTERN = re.compile(
	r'(?:\.([A-Za-z_][A-Za-z0-9_]*))|(?:\["((?:\\"|[^"])+)"\])|(?:\[(\d+)\])'
)

# Property access, quoted bracket access and numeric indices only; no filters or wildcards
SIMPLE_JSONPATH_SEGMENT_PATTERN = re.compile(
	r"""(?:\.([A-Za-z_][A-Za-z0-9_]*))|(?:\[['"]([^'"\\]+)['"]\])|(?:\[(\d+)\])"""
)

ROOT_POINTERS = ("", "/")


def analysis_path_to_jsonpath(path: str) -> str:
	if not path or path == "root":
		return "$"
	return re.sub(r'^root', "$", path)


def analysis_path_to_pointer(path: str) -> str:
	"""Convert root.foo.bar[0] to /foo/bar/0."""
	if not path or path == "root":
		return ""
	tail = re.sub(r'^root', "", path)
	tokens = []
	for dotted, quoted, index in ANALYSIS_SEGMENT_PATTERN.findall(tail):
		if dotted:
			tokens.append(dotted)
		elif quoted:
			tokens.append(quoted.replace('\\"', '"'))
		else:
			tokens.append(index)
	if not tokens:
		return ""
	return "/" + "/".join(encode_token(token) for token in tokens)


def pointer_to_analysis_path(pointer: str) -> str:
	"""Convert /foo/bar/0 to root.foo.bar[0]."""
	if pointer in ROOT_POINTERS:
		return "root"
	path = "root"
	for token in split_pointer(pointer):
		if token.isdigit():
			path += f"[{token}]"
		elif NORMAL_KEY_PATTERN.match(token):
			path += f".{token}"
		else:
			escaped = token.replace('"', '\\"')
			path += f'["{escaped}"]'
	return path


def pointer_exists(document: Any, pointer: str) -> bool:
	"""True if the pointer addresses a value inside document."""
	if pointer in ROOT_POINTERS:
		return True
	try:
		read(document, pointer)
	except PointerError:
		return False
	return True


def get_value_at_pointer_safe(document: Any, pointer: str, default: Any = None) -> Any:
	"""Like pointer.read(), but returns default instead of raising when the location is missing."""
	if pointer in ROOT_POINTERS:
		return document
	try:
		return read(document, pointer)
	except PointerError:
		return default


def simple_jsonpath_to_pointer(expression: str) -> Optional[str]:
	"""
	Lower a "simple" JSONPath expression to the equivalent JSON Pointer.

	Only $-rooted property access (.name, ['name']) and numeric indices ([0]) are
	understood. Anything else (filters, wildcards, slices, recursive descent)
	returns None.

	Example:
		simple_jsonpath_to_pointer("$.users['first-name']")  ->  "/users/first-name"
	"""
	trimmed = expression.strip()
	if not trimmed.startswith("$"):
		return None
	remainder = trimmed[1:]

	tokens = []
	position = 0
	while position < len(remainder):
		match = SIMPLE_JSONPATH_SEGMENT_PATTERN.match(remainder, position)
		if not match:
			return None
		dotted, quoted, index = match.groups()
		tokens.append(dotted if dotted is not None else quoted if quoted is not None else index)
		position = match.end()

	if not tokens:
		return ""
	return "/" + "/".join(encode_token(token) for token in tokens)
