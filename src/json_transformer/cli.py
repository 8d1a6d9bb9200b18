"""
Command-line interface for json-transformer.

	json-transform input.json --rules rules.yaml --output out.json --patch-output patch.json

The transformed document goes to --output (stdout by default); the diagnostic
report is printed to stderr so the document can be piped.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from importlib.metadata import version, PackageNotFoundError

import yaml

from .common.documents import load_document
from .common.encoding import OutputEncoding, encode_document, format_patch
from .common.errors import DocumentFormatError, RuleConfigError
from .common.operations import OperationStatus
from .engine import TransformerResult, run_transformer
from .rules import load_rules


def get_version() -> str:
	"""Get package version, with fallback for development/testing."""
	try:
		return version('json-transformer')
	except PackageNotFoundError:
		return 'dev'


def report(message: str = ""):
	print(message, file=sys.stderr)


def write_text(target: str, text: str):
	"""Write text to a file, or to stdout when target is '-'."""
	if target == "-":
		sys.stdout.write(text)
		if not text.endswith("\n"):
			sys.stdout.write("\n")
		return
	Path(target).write_text(text if text.endswith("\n") else text + "\n", encoding='utf-8')


def print_rule_results(result: TransformerResult, verbose: bool = False):
	"""Print a per-rule summary of matches, applied operations and problems."""
	for diagnostic in result.diagnostics:
		report(
			f"  📋 {diagnostic.rule_id} ({diagnostic.kind.value}): {diagnostic.match_count} matches, "
			f"{diagnostic.applied_count} applied, {diagnostic.skipped_count} skipped"
		)
		if verbose:
			for operation in diagnostic.operations:
				status = "✅" if operation.status is OperationStatus.APPLIED else "⏭️ "
				report(f"    {status} {operation.patch.op} {operation.format_path()}")
		if diagnostic.duration_ms is not None:
			report(f"    ⏱️  {diagnostic.duration_ms:.2f} ms")

	if result.warnings:
		report(f"\n⚠️  Found {len(result.warnings)} warnings:")
		for warning in result.warnings:
			report(f"    • {warning}")

	if result.errors:
		report(f"\n❌ Found {len(result.errors)} errors:")
		for error in result.errors:
			report(f"    • {error}")


def exit_code_for(result: TransformerResult, ignore_warnings: bool = False) -> int:
	"""0 when the run is clean, 1 on errors, and 1 on warnings unless they are ignored."""
	if result.errors:
		return 1
	if result.warnings and not ignore_warnings:
		return 1
	return 0


def print_final_summary(result: TransformerResult, ignore_warnings: bool = False):
	report("\n📈 Summary:")
	report(f"  Rules processed: {len(result.diagnostics)}")
	report(f"  Operations applied: {len(result.applied_operations)}")
	if result.ok and not result.warnings:
		report("  ✅ All rules applied cleanly")
	elif result.ok and ignore_warnings:
		report("  ✅ No errors found (ignoring warnings)")
	else:
		if result.warnings:
			report(f"  ⚠️  Total warnings: {len(result.warnings)}")
		if result.errors:
			report(f"  ❌ Total errors: {len(result.errors)}")


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="Rewrite a JSON document with declarative rules")
	parser.add_argument(
		"--version",
		action="version",
		version=f"%(prog)s {get_version()}",
	)
	parser.add_argument(
		"input",
		help="Path to the input document (JSON, or YAML with a .yaml/.yml suffix)",
	)
	parser.add_argument(
		"--rules",
		required=True,
		help="Path to the rule file (JSON, or YAML with a .yaml/.yml suffix)",
	)
	parser.add_argument(
		"--output",
		"-o",
		default="-",
		help="Where to write the transformed document (default: stdout)",
	)
	parser.add_argument(
		"--patch-output",
		help="File path to write the applied operations as an RFC 6902 patch",
	)
	parser.add_argument(
		"--report-output",
		help="File path to write the full diagnostics as JSON",
	)
	parser.add_argument(
		"--encoding",
		choices=[encoding.value for encoding in OutputEncoding],
		default=OutputEncoding.JSON_PRETTY.value,
		help="Encoding of the transformed document",
	)
	parser.add_argument(
		"--indent",
		type=int,
		default=2,
		help="Indentation for json-pretty output",
	)
	parser.add_argument(
		"--timing",
		action="store_true",
		help="Measure and print per-rule execution time",
	)
	parser.add_argument(
		"--ignore-warnings",
		action="store_true",
		help="Don't fail on warnings, only on errors (warnings are still displayed)",
	)
	parser.add_argument(
		"--verbose",
		"-v",
		action="store_true",
		help="Show every staged operation and enable debug logging",
	)
	return parser


def main(argv: Optional[List[str]] = None) -> int:
	"""Main function to transform a document with a rule file."""
	args = build_parser().parse_args(argv)

	if args.verbose:
		logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

	try:
		rules = load_rules(args.rules)
	except (OSError, json.JSONDecodeError, yaml.YAMLError, RuleConfigError, DocumentFormatError) as e:
		report(f"❌ Error loading rules from {args.rules}: {e}")
		return 2
	report(f"🔧 Loaded {len(rules)} rules from {args.rules}")

	try:
		document = load_document(args.input)
	except (OSError, json.JSONDecodeError, yaml.YAMLError, DocumentFormatError) as e:
		report(f"❌ Error reading or parsing file {args.input}: {e}")
		return 2

	result = run_transformer(document, rules, enable_timing=args.timing)
	print_rule_results(result, verbose=args.verbose)

	write_text(args.output, encode_document(result.document, args.encoding, indent=args.indent).output)
	if args.patch_output:
		write_text(args.patch_output, format_patch(result.applied_operations))
		report("\n" + f"📝 Patch written to: {args.patch_output}")
	if args.report_output:
		write_text(args.report_output, json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
		report("\n" + f"📝 Report written to: {args.report_output}")

	print_final_summary(result, args.ignore_warnings)
	return exit_code_for(result, args.ignore_warnings)


if __name__ == "__main__":
	sys.exit(main())
