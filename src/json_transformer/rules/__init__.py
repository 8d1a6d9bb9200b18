"""
Rule records and the helpers that construct them.
"""

from .common import (
	MISSING, MoveRule, MoveTargetMode, RemoveRule, RenameRule, RenameTargetMode, ReplaceRule, Rule, RuleKind,
	ValueMode
)
from .builders import (
	RULE_BUILDERS, create_move_rule, create_remove_rule, create_rename_rule, create_replace_rule, generate_rule_id,
	load_rules, rule_from_config, rules_from_config
)

__all__ = [
	"MISSING",
	"MoveRule",
	"MoveTargetMode",
	"RemoveRule",
	"RenameRule",
	"RenameTargetMode",
	"ReplaceRule",
	"Rule",
	"RuleKind",
	"ValueMode",
	"RULE_BUILDERS",
	"create_move_rule",
	"create_remove_rule",
	"create_rename_rule",
	"create_replace_rule",
	"generate_rule_id",
	"load_rules",
	"rule_from_config",
	"rules_from_config",
]
