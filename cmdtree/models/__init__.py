"""
Configuration models for the cmdtree CLI.

- Configuration: Root of the configuration file
- CommandDefinition: A node of the command tree
- VariableDefinition: A variable and its value source
- PromptDefinition: One of text, select, multi-select or confirm prompts
"""

from cmdtree.models.commands import CommandDefinition, Configuration, Options, Platform
from cmdtree.models.variables import (
    ConfirmPrompt,
    PromptDefinition,
    PromptKind,
    SelectPrompt,
    TextPrompt,
    VariableDefinition,
    VariableSource,
)

__all__ = [
    "Configuration",
    "CommandDefinition",
    "Options",
    "Platform",
    "VariableDefinition",
    "VariableSource",
    "PromptDefinition",
    "PromptKind",
    "TextPrompt",
    "SelectPrompt",
    "ConfirmPrompt",
]
