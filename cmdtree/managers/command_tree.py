"""
CommandNode tree for the cmdtree CLI.

The tree mirrors the configuration: one root node holding the root-level
variables, one node per command definition. Each node owns its children and
keeps a lookup-only reference to its parent, which is how variable scopes are
walked.
"""
from typing import Dict, List, Optional

from cmdtree.models import CommandDefinition, VariableDefinition


class CommandNode:
    """
    A node of the command tree.

    Attributes:
        name: Invocation name.
        variables: Variables defined at this node.
        definition: The command definition (None for the root).
        parent: Enclosing node (None for the root).
        children: Child nodes keyed by invocation name, in configured order.
    """

    def __init__(
        self,
        name: str,
        variables: Dict[str, VariableDefinition],
        definition: Optional[CommandDefinition] = None,
        parent: Optional["CommandNode"] = None,
    ) -> None:
        self.name = name
        self.variables = variables
        self.definition = definition
        self.parent = parent
        self.children: Dict[str, "CommandNode"] = {}

    def __repr__(self) -> str:
        return f"CommandNode({self.path!r})"

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def path(self) -> str:
        """Space separated invocation path below the root, e.g. ``"db migrate"``."""
        return " ".join(node.name for node in self.lineage() if not node.is_root)

    @property
    def templates(self) -> List[str]:
        """Execution templates of this node, empty if it only groups subcommands."""
        if self.definition is None:
            return []
        return self.definition.execute

    @property
    def deferred(self) -> List[str]:
        """Templates run after the action, whether or not it failed."""
        if self.definition is None:
            return []
        return self.definition.defer

    def add_child(self, child: "CommandNode") -> None:
        """Attach a child node and point it back at this node."""
        child.parent = self
        self.children[child.name] = child

    def lineage(self) -> List["CommandNode"]:
        """Get the nodes from the root down to this node."""
        nodes = []
        node: Optional[CommandNode] = self
        while node is not None:
            nodes.append(node)
            node = node.parent
        return list(reversed(nodes))

    def visible_variables(self) -> Dict[str, VariableDefinition]:
        """
        Get the variables visible at this node.

        Walks from the root down, so a definition at a deeper node replaces an
        outer definition of the same name. Outer-scope variables come first.

        Returns:
            Variable definitions keyed by variable name.
        """
        visible: Dict[str, VariableDefinition] = {}
        for node in self.lineage():
            for key, definition in node.variables.items():
                # Re-insert so the shadowing definition takes the inner position
                visible.pop(key, None)
                visible[key] = definition
        return visible
