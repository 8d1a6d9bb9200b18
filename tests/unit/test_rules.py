# pylint: disable=import-error
"""
Unit tests for rule records, builders and rule file loading.
"""

import dataclasses
import json
import os
import re
import sys
import tempfile
import unittest
from pathlib import Path

# Add the src directory to the PYTHONPATH
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from json_transformer.common.errors import RuleConfigError
from json_transformer.rules import (
	MISSING, MoveRule, MoveTargetMode, RemoveRule, RenameRule, RenameTargetMode, ReplaceRule, RuleKind, ValueMode,
	create_move_rule, create_remove_rule, create_rename_rule, create_replace_rule, generate_rule_id, load_rules,
	rules_from_config
)


# =============================================================================
# Test rule records and builders
# =============================================================================
class TestRuleBuilders(unittest.TestCase):
	"""Test builder defaults and mode coercion."""

	def test_generated_ids(self):
		self.assertRegex(generate_rule_id(), re.compile(r'^r-[0-9a-f]{8}$'))
		self.assertNotEqual(create_remove_rule("$.a").id, create_remove_rule("$.a").id)

	def test_remove_rule_defaults(self):
		rule = create_remove_rule("$.a", id="r1")
		self.assertEqual(rule, RemoveRule(id="r1", matcher="$.a"))
		self.assertIs(rule.kind, RuleKind.REMOVE)
		self.assertFalse(rule.disabled)
		self.assertFalse(rule.allow_empty_matcher)
		self.assertFalse(rule.allow_empty_value)

	def test_remove_rule_has_no_value_flag(self):
		with self.assertRaises(TypeError):
			create_remove_rule("$.a", allow_empty_value=True)  # pylint: disable=unexpected-keyword-arg

	def test_replace_rule_defaults(self):
		rule = create_replace_rule("$.a")
		self.assertIs(rule.value, MISSING)
		self.assertIs(rule.value_mode, ValueMode.AUTO)
		self.assertIs(rule.kind, RuleKind.REPLACE)

	def test_null_is_a_real_value(self):
		rule = create_replace_rule("$.a", None)
		self.assertIsNone(rule.value)
		self.assertIsNot(rule.value, MISSING)

	def test_mode_strings_are_coerced(self):
		self.assertIs(create_replace_rule("$.a", "x", value_mode="literal").value_mode, ValueMode.LITERAL)
		self.assertIs(create_move_rule("$.a", "/b", target_mode="jsonpath").target_mode, MoveTargetMode.JSONPATH)
		self.assertIs(create_rename_rule("$.a", "b", target_mode="literal").target_mode, RenameTargetMode.LITERAL)

	def test_invalid_mode(self):
		with self.assertRaises(RuleConfigError):
			create_replace_rule("$.a", "x", value_mode="verbatim")
		with self.assertRaises(RuleConfigError):
			create_rename_rule("$.a", "b", target_mode="pointer")

	def test_rules_are_immutable(self):
		rule = create_move_rule("$.a", "/b")
		with self.assertRaises(dataclasses.FrozenInstanceError):
			rule.target = "/c"

	def test_kinds(self):
		self.assertIs(create_move_rule("$.a", "/b").kind, RuleKind.MOVE)
		self.assertIs(create_rename_rule("$.a", "b").kind, RuleKind.RENAME)


# =============================================================================
# Test rule configuration
# =============================================================================
class TestRulesFromConfig(unittest.TestCase):
	"""Test building rules from parsed rule files."""

	def test_camel_case_keys(self):
		rules = rules_from_config([
			{"op": "replace", "id": "r1", "matcher": "$.currency", "value": "$100", "valueMode": "literal"},
			{"op": "move", "matcher": "$.a", "target": "$.b", "targetMode": "jsonpath", "allowEmptyValue": True},
			{"op": "remove", "matcher": "", "allowEmptyMatcher": True},
		])
		self.assertEqual(rules[0], ReplaceRule(id="r1", matcher="$.currency", value="$100", value_mode=ValueMode.LITERAL))
		self.assertIsInstance(rules[1], MoveRule)
		self.assertIs(rules[1].target_mode, MoveTargetMode.JSONPATH)
		self.assertTrue(rules[1].allow_empty_value)
		self.assertTrue(rules[2].allow_empty_matcher)

	def test_snake_case_keys_and_kind(self):
		rules = rules_from_config({"rules": [{"kind": "rename", "matcher": "$.a", "target": "b", "target_mode": "literal"}]})
		self.assertIsInstance(rules[0], RenameRule)
		self.assertIs(rules[0].target_mode, RenameTargetMode.LITERAL)

	def test_replace_without_value(self):
		rules = rules_from_config([{"op": "replace", "matcher": "$.a"}])
		self.assertIs(rules[0].value, MISSING)

	def test_invalid_entries(self):
		cases = {
			"unknown op": [{"op": "copy", "matcher": "$.a"}],
			"missing op": [{"matcher": "$.a"}],
			"missing matcher": [{"op": "remove"}],
			"unknown key": [{"op": "remove", "matcher": "$.a", "value": 1}],
			"missing target": [{"op": "move", "matcher": "$.a"}],
			"bad mode": [{"op": "replace", "matcher": "$.a", "value": 1, "valueMode": "raw"}],
			"not an object": ["remove $.a"],
			"not a list": {"rules": "remove"},
		}
		for name, config in cases.items():
			with self.subTest(name=name):
				with self.assertRaises(RuleConfigError):
					rules_from_config(config)

	def test_error_names_rule_position(self):
		with self.assertRaises(RuleConfigError) as context:
			rules_from_config([{"op": "remove", "matcher": "$.a"}, {"op": "move", "matcher": "$.b"}])
		self.assertTrue(str(context.exception).startswith("Rule 2 (move):"))


class TestLoadRules(unittest.TestCase):
	"""Test reading rule files from disk."""

	def setUp(self):
		self.temp_dir = tempfile.TemporaryDirectory()
		self.addCleanup(self.temp_dir.cleanup)
		self.directory = Path(self.temp_dir.name)

	def test_load_yaml(self):
		path = self.directory / "rules.yaml"
		path.write_text(
			"rules:\n"
			"  - op: replace\n"
			"    id: price\n"
			"    matcher: $.price\n"
			"    value: $100\n"
			"    valueMode: literal\n"
			"  - op: remove\n"
			"    matcher: $.draft\n",
			encoding='utf-8'
		)
		rules = load_rules(path)
		self.assertEqual([rule.kind for rule in rules], [RuleKind.REPLACE, RuleKind.REMOVE])
		self.assertEqual(rules[0].value, "$100")

	def test_load_json(self):
		path = self.directory / "rules.json"
		path.write_text(json.dumps([{"op": "rename", "matcher": "$.a", "target": "b", "id": "r"}]), encoding='utf-8')
		self.assertEqual(load_rules(str(path)), [RenameRule(id="r", matcher="$.a", target="b")])


if __name__ == "__main__":
	unittest.main()
