"""
CommandTreeBuilder for turning the configuration into a click CLI.

Every command definition becomes a click command (or a group when it has
subcommands). Every variable visible at a command becomes a ``--flag`` option
on that command, defaulting to None so that "not supplied" can be told apart
from an empty value; positional variables become optional arguments of leaf
commands. Invoking a command resolves its variables, renders its template(s)
and runs them, followed by its deferred steps.
"""
import logging
import re
import shlex
from typing import Any, Dict, List, Optional, Sequence

import click

from cmdtree import __version__
from cmdtree.constants import PASSTHROUGH_ARGS_PARAM, RESERVED_FLAG_NAMES, RESERVED_SHORT_FLAG_NAMES
from cmdtree.exceptions import CmdtreeError, CommandExecutionError, ConfigurationError, DeferredStepsError
from cmdtree.managers.command_executor import CommandExecutor
from cmdtree.managers.command_tree import CommandNode
from cmdtree.managers.template_renderer import TemplateRenderer
from cmdtree.managers.variable_resolver import FlagOverrides, VariableResolver
from cmdtree.models import CommandDefinition, Configuration, Platform, VariableDefinition, VariableSource
from cmdtree.utils import current_platform, setup_logging

logger = logging.getLogger(__name__)

FLAG_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

# Pass-through commands hand everything after their own options to the wrapped command
PASSTHROUGH_CONTEXT = {"ignore_unknown_options": True, "allow_interspersed_args": False}


class InvocationError(click.ClickException):
    """A failed invocation; exits with the failed command's status when there is one."""

    def __init__(self, message: str, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        if exit_code:
            self.exit_code = exit_code


class TaskCommandMixin:
    """
    Attributes shared by generated commands and groups.

    Attributes:
        node: The CommandNode this command was built from.
        flag_params: click parameter name to flag name, for the variable flags
            and positional arguments.
        aliases: Alternative invocation names.
    """

    def __init__(
        self,
        *args,
        node: CommandNode,
        flag_params: Dict[str, str],
        aliases: Optional[List[str]] = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.node = node
        self.flag_params = flag_params
        self.aliases = aliases or []

    def supplied_flags(self, ctx: click.Context) -> Dict[str, Optional[str]]:
        """Get flag name to value (None when not supplied) for this command's context."""
        return {flag: ctx.params.get(param) for param, flag in self.flag_params.items()}


class TaskCommand(TaskCommandMixin, click.Command):
    """A command that runs its templates."""
    pass


class TaskGroup(TaskCommandMixin, click.Group):
    """A command with subcommands, reachable by name or alias."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.alias_map: Dict[str, str] = {}

    def add_command(self, cmd: click.Command, name: Optional[str] = None) -> None:
        super().add_command(cmd, name)
        for alias in getattr(cmd, "aliases", []):
            self.alias_map[alias] = name or cmd.name

    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        canonical = self.alias_map.get(cmd_name)
        if canonical is None:
            return None
        return super().get_command(ctx, canonical)

    def resolve_command(self, ctx: click.Context, args: List[str]):
        # Report the canonical name, not the alias that was typed
        _, command, args = super().resolve_command(ctx, args)
        return (command.name if command else None), command, args


def collect_overrides(ctx: click.Context) -> FlagOverrides:
    """
    Collect flag overrides from a context and its parents.

    A flag supplied to the invoked command wins over the same flag supplied
    to one of its parent groups.
    """
    scopes = []
    current: Optional[click.Context] = ctx
    while current is not None:
        if isinstance(current.command, TaskCommandMixin):
            scopes.append(current.command.supplied_flags(current))
        current = current.parent
    return FlagOverrides.merge(scopes)


def describe_variable(key: str, definition: VariableDefinition) -> str:
    """Build the help text for a variable's flag."""
    if definition.description:
        return definition.description

    source = definition.source
    if source is VariableSource.LITERAL and not definition.is_sensitive:
        return f"Value for '{key}'. Defaults to '{definition.value}'."
    if source is VariableSource.COMMAND:
        return f"Value for '{key}'. Defaults to the output of `{definition.value_from}`."
    if source is VariableSource.PROMPT:
        return f"Value for '{key}'. Prompts for a value if not given."
    if definition.required:
        return f"Value for '{key}'. Required."
    return f"Value for '{key}'."


class CommandTreeBuilder:
    """
    Builds the CommandNode tree and the click CLI on top of it.

    The tree is built once; commands share the same resolver, renderer and
    executor. Commands restricted to other platforms are left out.

    Usage:
        builder = CommandTreeBuilder(config, resolver, renderer, executor)
        cli = builder.build_cli()
        cli()
    """

    def __init__(
        self,
        config: Configuration,
        resolver: VariableResolver,
        renderer: TemplateRenderer,
        executor: CommandExecutor,
        platform: Optional[Platform] = None,
    ) -> None:
        """
        Initialize CommandTreeBuilder.

        Args:
            config: The loaded configuration.
            resolver: Resolves variables at invocation time.
            renderer: Renders command templates.
            executor: Runs rendered commands.
            platform: Platform to build the tree for. Defaults to the current one.
        """
        self.config = config
        self.resolver = resolver
        self.renderer = renderer
        self.executor = executor
        self.platform = platform if platform is not None else current_platform()

    # =========================================================================
    # Node tree
    # =========================================================================

    def build_tree(self) -> CommandNode:
        """
        Build the CommandNode tree from the configuration.

        Returns:
            The root node; its children are the top-level commands.

        Raises:
            ConfigurationError: If a command has neither an execution template
                nor subcommands, or two sibling commands share a name or alias.
        """
        root = CommandNode("cmdtree", self.config.variables)
        self._add_children(root, self.config.commands)
        return root

    def _add_children(self, parent: CommandNode, commands: Dict[str, CommandDefinition]) -> None:
        taken: Dict[str, str] = {}
        for key, definition in commands.items():
            name = definition.invocation_name(key)
            path = f"{parent.path} {name}".strip()
            if not definition.available_on(self.platform):
                logger.debug(f"Skipping '{path}': not available on this platform")
                continue
            if not definition.has_template and not definition.has_subcommands:
                raise ConfigurationError(
                    f"Command '{path}' has neither an execution template nor subcommands."
                )
            self._claim_names(taken, parent, key, [name, *definition.alias])

            node = CommandNode(name, definition.variables, definition)
            parent.add_child(node)
            self._add_children(node, definition.commands)

            if not node.children and not definition.has_template:
                # Every subcommand is restricted to other platforms
                logger.debug(f"Skipping '{path}': no subcommands on this platform")
                del parent.children[name]

    @staticmethod
    def _claim_names(taken: Dict[str, str], parent: CommandNode, key: str, names: List[str]) -> None:
        """Record the names a command is reachable by, rejecting ones a sibling already uses."""
        for name in names:
            if name in taken:
                where = f" under '{parent.path}'" if not parent.is_root else ""
                raise ConfigurationError(
                    f"Commands '{taken[name]}' and '{key}'{where} both use the name '{name}'."
                )
        for name in names:
            taken[name] = key

    # =========================================================================
    # click CLI
    # =========================================================================

    def build_cli(self, name: str = "cmdtree") -> click.Group:
        """
        Build the root click group with one subcommand per top-level command.

        Raises:
            ConfigurationError: If the command tree is invalid.
        """
        root = self.build_tree()
        root.name = name
        params, flag_params = self._variable_options(root)
        params.append(click.Option(
            ["-v", "--verbose"],
            count=True,
            help="Log progress to stderr (-vv for debug output).",
        ))

        def root_callback(verbose: int = 0, **_flags: Any) -> None:
            setup_logging(verbose)

        group = TaskGroup(
            name=name,
            help=self.config.description or None,
            params=params,
            callback=root_callback,
            node=root,
            flag_params=flag_params,
        )
        click.version_option(version=__version__, prog_name=name)(group)

        for child in root.children.values():
            group.add_command(self._build_command(child))
        return group

    def _build_command(self, node: CommandNode) -> click.Command:
        definition = node.definition
        params, flag_params = self._variable_options(node)

        help_text = definition.description
        if definition.passthrough is not None:
            help_text = f"{help_text or ''}\n\nArguments after the options are passed to `{definition.passthrough}`."
            params.append(click.Argument([PASSTHROUGH_ARGS_PARAM], nargs=-1, type=click.UNPROCESSED))
        if definition.alias:
            help_text = f"{help_text or ''}\n\nAliases: {', '.join(definition.alias)}"
        help_text = help_text.strip() if help_text else help_text

        callback = self._make_callback(node) if definition.has_template else None
        common = dict(
            name=node.name,
            help=help_text,
            params=params,
            callback=callback,
            hidden=definition.hidden,
            node=node,
            flag_params=flag_params,
            aliases=definition.alias,
        )

        if not node.children:
            if definition.passthrough is not None:
                common["context_settings"] = PASSTHROUGH_CONTEXT
            return TaskCommand(**common)

        group = TaskGroup(invoke_without_command=definition.has_template, **common)
        for child in node.children.values():
            group.add_command(self._build_command(child))
        return group

    def _variable_options(self, node: CommandNode):
        """Create one parameter per variable visible at a node.

        Named variables become string options. Positional variables become
        optional arguments, ordered by position, on commands without
        subcommands only.

        Returns:
            Tuple of (click parameters, parameter name to flag name).

        Raises:
            ConfigurationError: If a flag name is invalid, reserved or used
                twice, or two variables claim the same position.
        """
        options: List[click.Parameter] = []
        arguments: Dict[int, click.Argument] = {}
        flag_params: Dict[str, str] = {}
        seen: Dict[str, str] = {}
        seen_short: Dict[str, str] = {}
        takes_arguments = not node.is_root and not node.children
        where = f"command '{node.path}'" if not node.is_root else "the root"

        for index, (key, definition) in enumerate(node.visible_variables().items()):
            flag = definition.flag_name(key)
            if not FLAG_NAME_PATTERN.match(flag):
                raise ConfigurationError(f"Variable '{key}' in {where} has an invalid flag name '{flag}'.")
            if flag in RESERVED_FLAG_NAMES:
                raise ConfigurationError(f"Variable '{key}' in {where} uses the reserved flag name '{flag}'.")
            if flag in seen:
                raise ConfigurationError(
                    f"Variables '{seen[flag]}' and '{key}' in {where} share the flag name '{flag}'."
                )
            seen[flag] = key
            param_name = f"flag_{index}"

            if definition.is_positional:
                if not takes_arguments:
                    continue
                position = definition.position
                if position in arguments:
                    other = flag_params[arguments[position].name]
                    raise ConfigurationError(
                        f"Variables '{seen[other]}' and '{key}' in {where} share position {position}."
                    )
                arguments[position] = click.Argument(
                    [param_name], required=False, default=None, metavar=f"[{key.upper()}]"
                )
                flag_params[param_name] = flag
                continue

            decls = [f"--{flag}"]
            short = definition.short
            if short is not None:
                if short in RESERVED_SHORT_FLAG_NAMES:
                    raise ConfigurationError(
                        f"Variable '{key}' in {where} uses the reserved short flag '-{short}'."
                    )
                if short in seen_short:
                    raise ConfigurationError(
                        f"Variables '{seen_short[short]}' and '{key}' in {where} share the short flag '-{short}'."
                    )
                seen_short[short] = key
                decls.append(f"-{short}")

            options.append(click.Option(
                [*decls, param_name],
                type=str,
                default=None,
                help=describe_variable(key, definition),
            ))
            flag_params[param_name] = flag

        params = options + [arguments[position] for position in sorted(arguments)]
        return params, flag_params

    def _make_callback(self, node: CommandNode):
        @click.pass_context
        def callback(ctx: click.Context, **_flags: Any) -> None:
            # A group with its own template only runs it when no subcommand was given
            if ctx.invoked_subcommand is not None:
                return
            extra_args = ctx.params.get(PASSTHROUGH_ARGS_PARAM) or ()
            self.invoke(node, collect_overrides(ctx), extra_args)

        return callback

    # =========================================================================
    # Invocation
    # =========================================================================

    def invoke(self, node: CommandNode, overrides: FlagOverrides, extra_args: Sequence[str] = ()) -> None:
        """
        Resolve, render and run a command.

        All templates, deferred ones included, are rendered before the first
        one runs. Steps run in order and the first failing step stops the
        action. Deferred steps then run one after another whether or not the
        action failed.

        Args:
            node: The command node being invoked.
            overrides: Flag values supplied on the command line.
            extra_args: Arguments for a pass-through command.

        Raises:
            InvocationError: If resolution, rendering, the action or a
                deferred step fails.
        """
        logger.info(f"Invoking '{node.path}'")
        try:
            variables = self.resolver.resolve(node, overrides)
            env = self.resolver.environment(node, variables)
            workdir = node.definition.workdir
            cwd = self.renderer.render(workdir, variables) if workdir else None
            commands = self._render_action(node, variables, extra_args)
            deferred = [self.renderer.render(template, variables) for template in node.deferred]
        except CmdtreeError as e:
            raise InvocationError(str(e))

        failure: Optional[CommandExecutionError] = None
        try:
            for command in commands:
                self._run(command, env, cwd)
        except CommandExecutionError as e:
            failure = e

        deferred_failure: Optional[DeferredStepsError] = None
        try:
            self._run_deferred(deferred, env, cwd)
        except DeferredStepsError as e:
            deferred_failure = e

        if failure is not None:
            message = str(failure) if deferred_failure is None else f"{failure}\n{deferred_failure}"
            raise InvocationError(message, exit_code=failure.returncode)
        if deferred_failure is not None:
            raise InvocationError(str(deferred_failure), exit_code=deferred_failure.returncode)

    def _render_action(self, node: CommandNode, variables: Dict[str, Any], extra_args: Sequence[str]) -> List[str]:
        passthrough = node.definition.passthrough
        if passthrough is None:
            return [self.renderer.render(template, variables) for template in node.templates]

        command = self.renderer.render(passthrough, variables)
        if extra_args:
            command = f"{command} {shlex.join(extra_args)}"
        return [command]

    def _run(self, command: str, env: Dict[str, str], cwd: Optional[str]) -> None:
        if self.config.options.print_commands:
            click.echo(click.style(command, fg="cyan"))
        self.executor.execute(command, env=env, cwd=cwd)

    def _run_deferred(self, commands: List[str], env: Dict[str, str], cwd: Optional[str]) -> None:
        failures = []
        for number, command in enumerate(commands, start=1):
            try:
                self._run(command, env, cwd)
            except CommandExecutionError as e:
                logger.debug(f"Deferred step {number} failed")
                failures.append((number, e))
        if failures:
            raise DeferredStepsError(failures)
