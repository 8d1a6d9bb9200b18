"""
json-transformer: rule-driven JSON document rewriting with a full audit trail.

	from json_transformer import create_move_rule, run_transformer

	result = run_transformer(
		{"draft": {"body": "hello"}, "published": {}},
		[create_move_rule("$.draft.body", "/published/body")],
	)
	result.document  # {"draft": {}, "published": {"body": "hello"}}
	result.patch()   # [{"op": "move", "from": "/draft/body", "path": "/published/body"}]
"""

from .common.documents import JsonCompatibleLoader, load_document
from .common.encoding import OutputEncoding, EncodedOutput, encode_document, format_patch
from .common.errors import TransformerError
from .common.matcher import JsonPathQueryEvaluator, MatcherEvaluator, QueryEvaluator
from .common.operations import (
	MoveOperation, OperationStatus, PatchOperation, RemoveOperation, ReplaceOperation, RuleDiagnostic,
	StagedOperation
)
from .common.path_utils import (
	analysis_path_to_jsonpath, analysis_path_to_pointer, get_value_at_pointer_safe, pointer_exists,
	pointer_to_analysis_path, simple_jsonpath_to_pointer
)
from .common.pointer import decode_token, encode_token
from .engine import TransformEngine, TransformerResult, apply_patch, run_transformer
from .rules import (
	MISSING, MoveRule, RemoveRule, RenameRule, ReplaceRule, Rule, RuleKind, create_move_rule, create_remove_rule,
	create_rename_rule, create_replace_rule, generate_rule_id, load_rules, rules_from_config
)
