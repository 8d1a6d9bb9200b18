"""
Integration tests for the json-transform command line.

Tests end-to-end runs through a subprocess as well as direct calls to main().
"""

import json
import os
import unittest
import tempfile
import subprocess
import sys
from pathlib import Path

# Add parent directory to path for imports
current_dir = Path(__file__).parent
tests_dir = current_dir.parent
project_root = tests_dir.parent
sys.path.insert(0, str(project_root / "src"))

from json_transformer.cli import exit_code_for, main  # pylint: disable=wrong-import-position
from json_transformer import create_remove_rule, run_transformer  # pylint: disable=wrong-import-position

SOURCE_DOCUMENT = {
	"arr": ["a", "b", "c", "d"],
	"draft": {"body": "hello"},
	"published": {},
	"currency": "",
}

RULES_YAML = """
rules:
  - op: remove
    id: drop-odd
    matcher: $.arr[1,3]
  - op: move
    id: publish
    matcher: $.draft.body
    target: /published/body
  - op: replace
    id: price
    matcher: $.currency
    value: $100
    valueMode: literal
"""

EXPECTED_DOCUMENT = {
	"arr": ["a", "c"],
	"draft": {},
	"published": {"body": "hello"},
	"currency": "$100",
}


class TestCliIntegration(unittest.TestCase):
	"""End-to-end tests for the json-transform CLI."""

	def setUp(self):
		"""Set up a temporary directory with an input document and a rule file."""
		self.temp_dir = tempfile.mkdtemp()
		self.temp_path = Path(self.temp_dir)

		self.input_file = self.temp_path / "input.json"
		self.input_file.write_text(json.dumps(SOURCE_DOCUMENT), encoding='utf-8')
		self.rules_file = self.temp_path / "rules.yaml"
		self.rules_file.write_text(RULES_YAML, encoding='utf-8')

	def tearDown(self):
		"""Clean up temporary files."""
		import shutil
		shutil.rmtree(self.temp_dir, ignore_errors=True)

	def run_cli(self, args: list) -> subprocess.CompletedProcess:
		"""Run the CLI with the given arguments."""
		cmd = [
			sys.executable,
			"-m",
			"json_transformer.cli",
		] + args

		env = dict(os.environ)
		env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root / "src"), env.get("PYTHONPATH")]))
		env["PYTHONIOENCODING"] = "utf-8"
		return subprocess.run(
			cmd,
			cwd=self.temp_path,
			capture_output=True,
			text=True,
			encoding='utf-8',
			env=env
		)

	def test_transform_to_stdout(self):
		"""The transformed document goes to stdout and the report to stderr."""
		result = self.run_cli([str(self.input_file), "--rules", str(self.rules_file)])

		self.assertEqual(result.returncode, 0, result.stderr)
		self.assertEqual(json.loads(result.stdout), EXPECTED_DOCUMENT)
		self.assertIn("drop-odd", result.stderr)
		self.assertIn("All rules applied cleanly", result.stderr)

	def test_patch_and_report_outputs(self):
		output_file = self.temp_path / "out.json"
		patch_file = self.temp_path / "patch.json"
		report_file = self.temp_path / "report.json"

		result = self.run_cli([
			str(self.input_file), "--rules", str(self.rules_file), "--output", str(output_file), "--patch-output",
			str(patch_file), "--report-output", str(report_file), "--timing"
		])

		self.assertEqual(result.returncode, 0, result.stderr)
		self.assertEqual(result.stdout, "")
		self.assertEqual(json.loads(output_file.read_text(encoding='utf-8')), EXPECTED_DOCUMENT)
		self.assertEqual(
			json.loads(patch_file.read_text(encoding='utf-8')), [
				{"op": "remove", "path": "/arr/3"},
				{"op": "remove", "path": "/arr/1"},
				{"op": "move", "from": "/draft/body", "path": "/published/body"},
				{"op": "replace", "path": "/currency", "value": "$100"},
			]
		)
		report = json.loads(report_file.read_text(encoding='utf-8'))
		self.assertTrue(report["ok"])
		self.assertEqual([diagnostic["rule_id"] for diagnostic in report["diagnostics"]], ["drop-odd", "publish", "price"])
		self.assertIn("ms", result.stderr)

	def test_yaml_encoding(self):
		output_file = self.temp_path / "out.yaml"
		result = self.run_cli([
			str(self.input_file), "--rules", str(self.rules_file), "--output", str(output_file), "--encoding", "yaml"
		])

		self.assertEqual(result.returncode, 0, result.stderr)
		self.assertTrue(output_file.read_text(encoding='utf-8').startswith("arr:\n"))

	def test_rule_errors_fail_the_run(self):
		self.rules_file.write_text("- op: rename\n  matcher: $.draft.body\n  target: __proto__\n", encoding='utf-8')
		result = self.run_cli([str(self.input_file), "--rules", str(self.rules_file)])

		self.assertEqual(result.returncode, 1)
		self.assertIn("Unsafe pointer segment", result.stderr)
		self.assertEqual(json.loads(result.stdout), SOURCE_DOCUMENT)

	def test_warnings_fail_unless_ignored(self):
		self.rules_file.write_text("- op: remove\n  matcher: $.nothing\n", encoding='utf-8')

		result = self.run_cli([str(self.input_file), "--rules", str(self.rules_file)])
		self.assertEqual(result.returncode, 1)
		self.assertIn("No matches produced patch operations", result.stderr)

		result = self.run_cli([str(self.input_file), "--rules", str(self.rules_file), "--ignore-warnings"])
		self.assertEqual(result.returncode, 0, result.stderr)
		self.assertIn("ignoring warnings", result.stderr)

	def test_invalid_rule_file(self):
		self.rules_file.write_text("- op: copy\n  matcher: $.a\n", encoding='utf-8')
		result = self.run_cli([str(self.input_file), "--rules", str(self.rules_file)])

		self.assertEqual(result.returncode, 2)
		self.assertIn("unknown op 'copy'", result.stderr)

	def test_missing_input_file(self):
		result = self.run_cli([str(self.temp_path / "absent.json"), "--rules", str(self.rules_file)])
		self.assertEqual(result.returncode, 2)


class TestCliMain(unittest.TestCase):
	"""Tests that call main() in-process."""

	def setUp(self):
		self.temp_dir = tempfile.TemporaryDirectory()
		self.addCleanup(self.temp_dir.cleanup)
		self.temp_path = Path(self.temp_dir.name)

	def test_yaml_input_and_json_rules(self):
		input_file = self.temp_path / "input.yaml"
		input_file.write_text("service:\n  id: a1\n", encoding='utf-8')
		rules_file = self.temp_path / "rules.json"
		rules_file.write_text(json.dumps([{"op": "rename", "matcher": "$.service", "target": "service_now"}]),
								encoding='utf-8')
		output_file = self.temp_path / "out.json"

		exit_code = main([str(input_file), "--rules", str(rules_file), "--output", str(output_file)])

		self.assertEqual(exit_code, 0)
		self.assertEqual(json.loads(output_file.read_text(encoding='utf-8')), {"service_now": {"id": "a1"}})

	def test_yaml_input_dates_and_keys(self):
		input_file = self.temp_path / "input.yml"
		input_file.write_text("created: 2024-01-01\n1: one\ntitle: x\n", encoding='utf-8')
		rules_file = self.temp_path / "rules.yaml"
		rules_file.write_text("- op: remove\n  matcher: \"$['1']\"\n", encoding='utf-8')
		output_file = self.temp_path / "out.json"

		exit_code = main([str(input_file), "--rules", str(rules_file), "--output", str(output_file)])

		self.assertEqual(exit_code, 0)
		self.assertEqual(json.loads(output_file.read_text(encoding='utf-8')), {"created": "2024-01-01", "title": "x"})

	def test_yaml_input_json_cannot_hold(self):
		input_file = self.temp_path / "input.yaml"
		input_file.write_text("data: !!binary aGVsbG8=\n", encoding='utf-8')
		rules_file = self.temp_path / "rules.yaml"
		rules_file.write_text("- op: remove\n  matcher: $.data\n", encoding='utf-8')
		output_file = self.temp_path / "out.json"

		exit_code = main([str(input_file), "--rules", str(rules_file), "--output", str(output_file)])

		self.assertEqual(exit_code, 2)
		self.assertFalse(output_file.exists())

	def test_exit_codes(self):
		clean = run_transformer({"a": 1}, [create_remove_rule("$.a")])
		warned = run_transformer({"a": 1}, [create_remove_rule("$.b")])
		self.assertEqual(exit_code_for(clean), 0)
		self.assertEqual(exit_code_for(warned), 1)
		self.assertEqual(exit_code_for(warned, ignore_warnings=True), 0)


if __name__ == "__main__":
	unittest.main()
