"""
Managers for the cmdtree CLI.

This package contains the engine that turns a configuration into a running CLI:
- CommandExecutor: Runs shell commands
- TemplateRenderer: Substitutes variables into command templates
- PromptExecutor: Asks the user for variable values
- VariableResolver: Computes the variable bag of an invocation
- CommandNode: The command tree with scoped variables
- CommandTreeBuilder: Builds the click CLI from the command tree
"""

from cmdtree.managers.command_executor import CommandExecutor
from cmdtree.managers.command_tree import CommandNode
from cmdtree.managers.prompt_executor import PromptExecutor, parse_selection
from cmdtree.managers.template_renderer import TemplateRenderer, format_value
from cmdtree.managers.tree_builder import (
    CommandTreeBuilder,
    InvocationError,
    TaskCommand,
    TaskGroup,
    collect_overrides,
)
from cmdtree.managers.variable_resolver import FlagOverrides, VariableResolver

__all__ = [
    "CommandExecutor",
    "CommandNode",
    "PromptExecutor",
    "parse_selection",
    "TemplateRenderer",
    "format_value",
    "CommandTreeBuilder",
    "InvocationError",
    "TaskCommand",
    "TaskGroup",
    "collect_overrides",
    "FlagOverrides",
    "VariableResolver",
]
