"""Immutable workflow configuration.

A ``WorkflowConfig`` wraps the status graph, the role-set permissions and the
level requirements. It is built once (``default_config()`` or
``load_workflow_config()``) and handed to the resolvers, so tests and
deployments can swap in alternate tables without touching module state.

Construction checks the graph and raises ``WorkflowConfigError`` when:
  - an edge is a self-loop or has no roles;
  - roles, required fields or a deliverable rule name an edge not in the graph;
  - a terminal status has outgoing edges or a non-terminal one has none;
  - some status cannot reach a terminal status;
  - a level requirement or the admin floor is below 1.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from loguru import logger
from pydantic import ValidationError

from tacklebox.utils import WorkflowConfigError
from tacklebox.workflow import tables
from tacklebox.workflow.enums import TaskStatus, UserRole
from tacklebox.workflow.models import AITool, LevelTier, NavItem
from tacklebox.workflow.schemas import TransitionRule, WorkflowDocument

Edge = tuple[TaskStatus, TaskStatus]


@dataclass(frozen=True, eq=False)
class WorkflowConfig:
    # from → {to → roles}
    transitions: Mapping[TaskStatus, Mapping[TaskStatus, frozenset[UserRole]]]
    requires: Mapping[Edge, tuple[str, ...]]
    deliverable_edges: frozenset[Edge]
    role_permissions: Mapping[str, frozenset[UserRole]]
    level_requirements: Mapping[str, int]
    initial_status: TaskStatus = tables.INITIAL_STATUS
    terminal_statuses: frozenset[TaskStatus] = tables.TERMINAL_STATUSES
    admin_level_floor: int = tables.ADMIN_LEVEL_FLOOR
    default_level: int = tables.DEFAULT_LEVEL
    client_level: int = tables.CLIENT_LEVEL
    unreachable_level: int = tables.UNREACHABLE_LEVEL
    tiers: tuple[LevelTier, ...] = field(default_factory=tuple)
    camper_nav_items: tuple[NavItem, ...] = field(default_factory=tuple)
    client_nav_items: tuple[NavItem, ...] = field(default_factory=tuple)
    ai_tools: tuple[AITool, ...] = field(default_factory=tuple)

    # ---- construction ----
    @classmethod
    def from_tables(
        cls,
        transitions: Mapping[TaskStatus, Iterable[TaskStatus]],
        transition_roles: Mapping[Edge, Iterable[UserRole]],
        *,
        requires: Optional[Mapping[Edge, Iterable[str]]] = None,
        deliverable_edges: Optional[Iterable[Edge]] = None,
        role_permissions: Optional[Mapping[str, Iterable[UserRole]]] = None,
        level_requirements: Optional[Mapping[str, int]] = None,
        terminal_statuses: Optional[Iterable[TaskStatus]] = None,
        admin_level_floor: int = tables.ADMIN_LEVEL_FLOOR,
    ) -> "WorkflowConfig":
        """
        Freeze an adjacency list plus its edge-role table into a config.
        Omitted tables fall back to the built-in ones.
        """
        graph: dict[TaskStatus, dict[TaskStatus, frozenset[UserRole]]] = {
            status: {} for status in TaskStatus
        }
        for source, targets in transitions.items():
            for target in targets:
                roles = transition_roles.get((source, target))
                if roles is None:
                    raise WorkflowConfigError(
                        f"Edge {source.value}->{target.value} has no role entry"
                    )
                graph[source][target] = frozenset(roles)

        for source, target in transition_roles:
            if target not in graph[source]:
                raise WorkflowConfigError(
                    f"Roles given for {source.value}->{target.value}, "
                    "which is not in the transition table"
                )

        # Built-in edge rules only apply to the edges still in the graph;
        # explicit ones must all name a real edge.
        if requires is None:
            requires = {
                edge: fields for edge, fields in tables.TASK_TRANSITION_REQUIRES.items()
                if edge[1] in graph[edge[0]]
            }
        if deliverable_edges is None:
            deliverable_edges = [
                edge for edge in tables.TASK_TRANSITION_DELIVERABLES
                if edge[1] in graph[edge[0]]
            ]
        for source, target in [*requires, *deliverable_edges]:
            if target not in graph[source]:
                raise WorkflowConfigError(
                    f"Edge rule given for {source.value}->{target.value}, "
                    "which is not in the transition table"
                )

        if role_permissions is None:
            role_permissions = tables.ROLE_PERMISSIONS
        if level_requirements is None:
            level_requirements = tables.LEVEL_REQUIREMENTS
        if terminal_statuses is None:
            terminal_statuses = tables.TERMINAL_STATUSES

        config = cls(
            transitions=MappingProxyType(
                {s: MappingProxyType(targets) for s, targets in graph.items()}
            ),
            requires=MappingProxyType(
                {edge: tuple(fields) for edge, fields in requires.items()}
            ),
            deliverable_edges=frozenset(deliverable_edges),
            role_permissions=MappingProxyType(
                {key: frozenset(roles) for key, roles in role_permissions.items()}
            ),
            level_requirements=MappingProxyType(dict(level_requirements)),
            terminal_statuses=frozenset(terminal_statuses),
            admin_level_floor=admin_level_floor,
            tiers=tuple(
                LevelTier(level=level, name=name, xp_required=xp, fire_stage=stage)
                for level, name, xp, stage in tables.SCALING_TIERS
            ),
            camper_nav_items=tuple(
                NavItem(path=path, label=label, min_level=min_level)
                for path, label, min_level in tables.CAMPER_NAV_ITEMS
            ),
            client_nav_items=tuple(
                NavItem(path=path, label=label) for path, label in tables.CLIENT_NAV_ITEMS
            ),
            ai_tools=tuple(
                AITool(id=tool_id, label=label, min_level=min_level)
                for tool_id, label, min_level in tables.AI_TOOLS
            ),
        )
        config.check()
        return config

    @classmethod
    def from_document(cls, document: WorkflowDocument) -> "WorkflowConfig":
        transitions: Mapping[TaskStatus, Iterable[TaskStatus]] = tables.TASK_TRANSITIONS
        transition_roles: Mapping[Edge, Iterable[UserRole]] = tables.TASK_TRANSITION_ROLES
        requires: Mapping[Edge, Iterable[str]] = tables.TASK_TRANSITION_REQUIRES
        deliverable_edges: Iterable[Edge] = tables.TASK_TRANSITION_DELIVERABLES
        if document.transitions is not None:
            adjacency: dict[TaskStatus, list[TaskStatus]] = {}
            edge_roles: dict[Edge, list[UserRole]] = {}
            edge_requires: dict[Edge, list[str]] = {}
            edge_deliverables: list[Edge] = []
            for rule in document.transitions:
                edge = (rule.source, rule.target)
                if edge in edge_roles:
                    raise WorkflowConfigError(
                        f"Duplicate rule for {rule.source.value}->{rule.target.value}"
                    )
                adjacency.setdefault(rule.source, []).append(rule.target)
                edge_roles[edge] = rule.roles
                if rule.requires:
                    edge_requires[edge] = rule.requires
                if rule.needs_deliverable:
                    edge_deliverables.append(edge)
            transitions, transition_roles = adjacency, edge_roles
            requires, deliverable_edges = edge_requires, edge_deliverables

        return cls.from_tables(
            transitions,
            transition_roles,
            requires=requires,
            deliverable_edges=deliverable_edges,
            role_permissions=document.permissions,
            level_requirements=document.level_requirements,
            terminal_statuses=document.terminal_statuses,
            admin_level_floor=(
                document.admin_level_floor
                if document.admin_level_floor is not None
                else tables.ADMIN_LEVEL_FLOOR
            ),
        )

    # ---- invariants ----
    def check(self) -> None:
        """Raise WorkflowConfigError if the tables break a graph invariant."""
        for source, targets in self.transitions.items():
            if source in targets:
                raise WorkflowConfigError(f"Self-loop on {source.value}")
            for target, roles in targets.items():
                if not roles:
                    raise WorkflowConfigError(
                        f"Edge {source.value}->{target.value} has an empty role list"
                    )
            if source in self.terminal_statuses and targets:
                raise WorkflowConfigError(
                    f"Terminal status {source.value} has outgoing transitions"
                )
            if source not in self.terminal_statuses and not targets:
                raise WorkflowConfigError(
                    f"Status {source.value} has no outgoing transitions"
                )

        if not self.terminal_statuses:
            raise WorkflowConfigError("At least one terminal status is required")
        if self.initial_status in self.terminal_statuses:
            raise WorkflowConfigError("The initial status cannot be terminal")

        stranded = set(TaskStatus) - self._statuses_reaching_terminal()
        if stranded:
            names = ", ".join(sorted(s.value for s in stranded))
            raise WorkflowConfigError(f"No path to a terminal status from: {names}")

        for key, level in self.level_requirements.items():
            if level < 1:
                raise WorkflowConfigError(f"Capability {key} needs a level of at least 1")
        if self.admin_level_floor < 1:
            raise WorkflowConfigError("The admin level floor must be at least 1")

    def _statuses_reaching_terminal(self) -> set[TaskStatus]:
        # walk the reversed graph outwards from the sinks
        incoming: dict[TaskStatus, set[TaskStatus]] = {s: set() for s in TaskStatus}
        for source, targets in self.transitions.items():
            for target in targets:
                incoming[target].add(source)
        seen = set(self.terminal_statuses)
        queue = deque(self.terminal_statuses)
        while queue:
            for source in incoming[queue.popleft()]:
                if source not in seen:
                    seen.add(source)
                    queue.append(source)
        return seen

    # ---- views ----
    def targets(self, status: TaskStatus) -> tuple[TaskStatus, ...]:
        return tuple(self.transitions.get(status, {}))

    def edge_roles(self, source: TaskStatus, target: TaskStatus) -> Optional[frozenset[UserRole]]:
        return self.transitions.get(source, {}).get(target)

    def edge_requires(self, source: TaskStatus, target: TaskStatus) -> tuple[str, ...]:
        return self.requires.get((source, target), ())

    def needs_deliverable(self, source: TaskStatus, target: TaskStatus) -> bool:
        return (source, target) in self.deliverable_edges

    def rules(self) -> list[TransitionRule]:
        return [
            TransitionRule(
                source=source,
                target=target,
                roles=sorted(roles, key=lambda r: r.value),
                requires=list(self.edge_requires(source, target)),
                needs_deliverable=self.needs_deliverable(source, target),
            )
            for source, targets in self.transitions.items()
            for target, roles in targets.items()
        ]


@lru_cache
def default_config() -> WorkflowConfig:
    """The built-in tables, frozen once per process."""
    return WorkflowConfig.from_tables(
        tables.TASK_TRANSITIONS,
        tables.TASK_TRANSITION_ROLES,
    )


def load_workflow_config(path: Optional[Path] = None) -> WorkflowConfig:
    """
    Build the config from a JSON document, or the built-in tables if no
    path is given.
    """
    if path is None:
        logger.info("Using built-in workflow tables")
        return default_config()

    try:
        document = WorkflowDocument.model_validate_json(Path(path).read_text())
    except OSError as exc:
        raise WorkflowConfigError(f"Cannot read workflow file {path}: {exc}") from exc
    except ValidationError as exc:
        raise WorkflowConfigError(f"Invalid workflow file {path}: {exc}") from exc

    config = WorkflowConfig.from_document(document)
    logger.info(
        "Loaded workflow tables from {} ({} transitions)",
        path,
        sum(len(targets) for targets in config.transitions.values()),
    )
    return config
