"""
Helpers that build well-formed rule records with documented defaults, plus the
loader that turns a rule file (JSON or YAML) into rule records.

Rule files hold either a list of rule objects or {"rules": [...]}:

	- op: rename
	  matcher: $.summary.services[*].service
	  target: service_now
	- op: replace
	  matcher: $.currency
	  value: $100
	  valueMode: literal

Keys are accepted in the camelCase wire form (allowEmptyMatcher, valueMode, ...)
or in snake_case.
"""

import json
import secrets
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..common.documents import load_yaml
from ..common.errors import RuleConfigError
from .common import (
	MISSING, MoveRule, MoveTargetMode, RemoveRule, RenameRule, RenameTargetMode, ReplaceRule, Rule, ValueMode
)


def generate_rule_id() -> str:
	"""Random rule identifier such as 'r-0c9f31a2'."""
	return f"r-{secrets.token_hex(4)}"


def create_remove_rule(
	matcher: str, id: Optional[str] = None, allow_empty_matcher: bool = False, disabled: bool = False
) -> RemoveRule:
	return RemoveRule(
		id=id or generate_rule_id(), matcher=matcher, disabled=disabled, allow_empty_matcher=allow_empty_matcher
	)


def create_replace_rule(
	matcher: str,
	value: Any = MISSING,
	id: Optional[str] = None,
	allow_empty_matcher: bool = False,
	allow_empty_value: bool = False,
	disabled: bool = False,
	value_mode: Union[ValueMode, str] = ValueMode.AUTO,
) -> ReplaceRule:
	"""
	Create a replace rule.

	Args:
		matcher: JSONPath selecting the locations to overwrite.
		value: Replacement value. With value_mode "auto", a string starting with '$'
			is read from the working document instead.
		value_mode: "auto" or "literal".
	"""
	return ReplaceRule(
		id=id or generate_rule_id(),
		matcher=matcher,
		value=value,
		value_mode=value_mode,
		disabled=disabled,
		allow_empty_matcher=allow_empty_matcher,
		allow_empty_value=allow_empty_value,
	)


def create_move_rule(
	matcher: str,
	target: str,
	id: Optional[str] = None,
	allow_empty_matcher: bool = False,
	allow_empty_value: bool = False,
	disabled: bool = False,
	target_mode: Union[MoveTargetMode, str] = MoveTargetMode.AUTO,
) -> MoveRule:
	"""
	Create a move rule that copies the matched value to a JSON Pointer or JSONPath
	target and removes the source.
	"""
	return MoveRule(
		id=id or generate_rule_id(),
		matcher=matcher,
		target=target,
		target_mode=target_mode,
		disabled=disabled,
		allow_empty_matcher=allow_empty_matcher,
		allow_empty_value=allow_empty_value,
	)


def create_rename_rule(
	matcher: str,
	target: str,
	id: Optional[str] = None,
	allow_empty_matcher: bool = False,
	allow_empty_value: bool = False,
	disabled: bool = False,
	target_mode: Union[RenameTargetMode, str] = RenameTargetMode.AUTO,
) -> RenameRule:
	"""
	Create a rename rule. The target is the new key, or a JSONPath ('$' or '@')
	evaluated against the matched property's parent object.
	"""
	return RenameRule(
		id=id or generate_rule_id(),
		matcher=matcher,
		target=target,
		target_mode=target_mode,
		disabled=disabled,
		allow_empty_matcher=allow_empty_matcher,
		allow_empty_value=allow_empty_value,
	)


RULE_BUILDERS: Dict[str, Callable[..., Rule]] = {
	"remove": create_remove_rule,
	"replace": create_replace_rule,
	"move": create_move_rule,
	"rename": create_rename_rule,
}

# Wire-format key -> builder keyword
CONFIG_KEY_ALIASES = {
	"allowEmptyMatcher": "allow_empty_matcher",
	"allowEmptyValue": "allow_empty_value",
	"valueMode": "value_mode",
	"targetMode": "target_mode",
}


def rule_from_config(entry: Dict[str, Any], position: int = 1) -> Rule:
	"""
	Build one rule from a rule file entry.

	Args:
		entry: Mapping with an "op" (or "kind") key plus the builder's arguments.
		position: 1-based position of the entry, used in error messages.
	"""
	if not isinstance(entry, dict):
		raise RuleConfigError(f"Rule {position}: expected an object, got {type(entry).__name__}")

	kwargs = {CONFIG_KEY_ALIASES.get(key, key): value for key, value in entry.items()}
	kind = kwargs.pop("op", None) or kwargs.pop("kind", None)
	kwargs.pop("kind", None)
	if not isinstance(kind, str) or kind not in RULE_BUILDERS:
		raise RuleConfigError(f"Rule {position}: unknown op '{kind}'")
	if not isinstance(kwargs.get("matcher"), str):
		raise RuleConfigError(f"Rule {position}: 'matcher' must be a string")

	try:
		return RULE_BUILDERS[kind](**kwargs)
	except TypeError as e:
		raise RuleConfigError(f"Rule {position} ({kind}): {e}") from e
	except RuleConfigError as e:
		raise RuleConfigError(f"Rule {position} ({kind}): {e}") from e


def rules_from_config(config: Any) -> List[Rule]:
	"""Build rules from a parsed rule file (a list, or a mapping with a "rules" list)."""
	entries = config.get("rules") if isinstance(config, dict) else config
	if not isinstance(entries, list):
		raise RuleConfigError("Rule configuration must be a list of rules or an object with a 'rules' list")
	return [rule_from_config(entry, position) for position, entry in enumerate(entries, start=1)]


def load_rules(path: Union[str, Path]) -> List[Rule]:
	"""Read rules from a .json, .yaml or .yml file."""
	rules_path = Path(path)
	with open(rules_path, 'r', encoding='utf-8') as f:
		if rules_path.suffix.lower() == ".json":
			config = json.load(f)
		else:
			config = load_yaml(f, str(rules_path))
	return rules_from_config(config)
