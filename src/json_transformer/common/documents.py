"""
Reading JSON and YAML files into JSON-compatible trees.

YAML is a superset of JSON with richer scalars: unquoted dates become
timestamps and mapping keys can be numbers or booleans. Documents here are
JSON trees, so YAML is loaded with JsonCompatibleLoader and anything that
still cannot be written back as JSON (e.g. !!binary) is rejected.
"""

import json
from pathlib import Path
from typing import Any, IO, Union

import yaml

from .errors import DocumentFormatError

YAML_SUFFIXES = (".yaml", ".yml")

TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class JsonCompatibleLoader(yaml.SafeLoader):
	"""
	SafeLoader that keeps dates as plain strings and mapping keys as str.

	Non-string keys become their JSON text, the same key json.dumps would
	write: 1 -> "1", true -> "true", null -> "null".
	"""

	def construct_mapping(self, node, deep=False):
		mapping = super().construct_mapping(node, deep=deep)
		return {key if isinstance(key, str) else json.dumps(key): value for key, value in mapping.items()}


JsonCompatibleLoader.yaml_implicit_resolvers = {
	first: [(tag, regexp) for tag, regexp in resolvers if tag != TIMESTAMP_TAG]
	for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def ensure_json_compatible(document: Any, source: str = "Document") -> Any:
	"""Return document unchanged, or raise DocumentFormatError if JSON cannot represent it."""
	try:
		json.dumps(document)
	except (TypeError, ValueError) as e:
		raise DocumentFormatError(f"{source} is not JSON-compatible: {e}") from e
	return document


def load_yaml(stream: Union[str, IO[str]], source: str = "Document") -> Any:
	return ensure_json_compatible(yaml.load(stream, Loader=JsonCompatibleLoader), source)


def is_yaml_path(path: Union[str, Path]) -> bool:
	return Path(path).suffix.lower() in YAML_SUFFIXES


def load_document(path: Union[str, Path]) -> Any:
	"""Read a document file; .yaml/.yml files are parsed as YAML, everything else as JSON."""
	file_path = Path(path)
	with open(file_path, 'r', encoding='utf-8') as f:
		if is_yaml_path(file_path):
			return load_yaml(f, str(file_path))
		return json.load(f)
