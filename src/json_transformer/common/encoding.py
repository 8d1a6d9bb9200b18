"""
Text renderings of the transformed document and of the applied patch.
"""

import json
from enum import Enum
from typing import Any, Dict, Iterable, NamedTuple, Union

import yaml

from .operations import PatchOperation


class OutputEncoding(Enum):
	"""Encodings available for the transformed document."""
	JSON_PRETTY = "json-pretty"
	JSON_COMPACT = "json-compact"
	YAML = "yaml"

	@property
	def description(self) -> str:
		return OUTPUT_ENCODING_DESCRIPTIONS[self]

	@property
	def content_type(self) -> str:
		return "application/yaml" if self is OutputEncoding.YAML else "application/json"


OUTPUT_ENCODING_DESCRIPTIONS = {
	OutputEncoding.JSON_PRETTY: "Human-friendly JSON with indentation.",
	OutputEncoding.JSON_COMPACT: "Minified JSON without whitespace.",
	OutputEncoding.YAML: "Block-style YAML, keys in document order.",
}


class EncodedOutput(NamedTuple):
	"""An encoded document together with how it was encoded."""
	output: str
	encoding: OutputEncoding
	content_type: str


def encode_document(
	document: Any, encoding: Union[OutputEncoding, str] = OutputEncoding.JSON_PRETTY, indent: int = 2
) -> EncodedOutput:
	"""
	Render a document as text.

	Args:
		document: Any JSON-compatible value.
		encoding: An OutputEncoding or its string value.
		indent: Indentation width for pretty JSON.
	"""
	encoding = OutputEncoding(encoding)
	if encoding is OutputEncoding.JSON_COMPACT:
		output = json.dumps(document, separators=(",", ":"), ensure_ascii=False)
	elif encoding is OutputEncoding.JSON_PRETTY:
		output = json.dumps(document, indent=indent, ensure_ascii=False)
	else:
		output = yaml.safe_dump(document, default_flow_style=False, sort_keys=False, allow_unicode=True)
	return EncodedOutput(output=output, encoding=encoding, content_type=encoding.content_type)


def format_patch(operations: Iterable[Union[PatchOperation, Dict[str, Any]]], pretty: bool = True) -> str:
	"""Serialize patch operations as an RFC 6902 JSON array."""
	data = [operation if isinstance(operation, dict) else operation.to_dict() for operation in operations]
	if pretty:
		return json.dumps(data, indent=2, ensure_ascii=False)
	return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
