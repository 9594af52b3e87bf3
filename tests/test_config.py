import json

import pytest

from tacklebox.utils import WorkflowConfigError
from tacklebox.workflow import tables
from tacklebox.workflow.config import WorkflowConfig, default_config, load_workflow_config
from tacklebox.workflow.enums import TaskStatus, TransitionError, UserRole
from tacklebox.workflow.schemas import WorkflowDocument
from tacklebox.workflow.state_machine import TaskStateMachine

S = TaskStatus
ADMIN = UserRole.ADMIN
CONTRACTOR = UserRole.CONTRACTOR


def _short_graph():
    transitions = {
        S.SUBMITTED: (S.IN_PROGRESS, S.CANCELLED),
        S.IN_PROGRESS: (S.CLOSED,),
        S.ASSIGNED: (S.CANCELLED,),
        S.REVIEW: (S.CANCELLED,),
        S.REVISION: (S.CANCELLED,),
        S.APPROVED: (S.CLOSED,),
    }
    roles = {
        (S.SUBMITTED, S.IN_PROGRESS): {CONTRACTOR},
        (S.SUBMITTED, S.CANCELLED): {ADMIN},
        (S.IN_PROGRESS, S.CLOSED): {CONTRACTOR, ADMIN},
        (S.ASSIGNED, S.CANCELLED): {ADMIN},
        (S.REVIEW, S.CANCELLED): {ADMIN},
        (S.REVISION, S.CANCELLED): {ADMIN},
        (S.APPROVED, S.CLOSED): {ADMIN},
    }
    return transitions, roles


def test_default_config_is_cached():
    assert default_config() is default_config()


def test_default_config_matches_tables():
    config = default_config()
    for source, targets in tables.TASK_TRANSITIONS.items():
        assert config.targets(source) == targets
        for target in targets:
            assert config.edge_roles(source, target) == tables.TASK_TRANSITION_ROLES[(source, target)]
    assert config.edge_requires(S.SUBMITTED, S.ASSIGNED) == ("contractor_id",)
    assert config.edge_requires(S.ASSIGNED, S.IN_PROGRESS) == ()


def test_config_tables_are_read_only():
    config = default_config()
    with pytest.raises(TypeError):
        config.transitions[S.CLOSED] = {}
    with pytest.raises(TypeError):
        config.level_requirements["REVIEW_OTHERS"] = 1


def test_alternate_tables_change_behaviour():
    transitions, roles = _short_graph()
    machine = TaskStateMachine(WorkflowConfig.from_tables(transitions, roles))

    assert machine.validate_transition("submitted", "in_progress", "contractor").allowed
    assert (
        machine.validate_transition("submitted", "assigned", "admin").reason
        is TransitionError.INVALID_TRANSITION
    )
    # the default tables are untouched
    assert TaskStateMachine().validate_transition("submitted", "assigned", "admin").allowed


def test_edge_without_roles_entry_is_rejected():
    transitions, roles = _short_graph()
    del roles[(S.IN_PROGRESS, S.CLOSED)]
    with pytest.raises(WorkflowConfigError, match="no role entry"):
        WorkflowConfig.from_tables(transitions, roles)


def test_roles_without_edge_are_rejected():
    transitions, roles = _short_graph()
    roles[(S.SUBMITTED, S.CLOSED)] = {ADMIN}
    with pytest.raises(WorkflowConfigError, match="not in the transition table"):
        WorkflowConfig.from_tables(transitions, roles)


def test_empty_role_list_is_rejected():
    transitions, roles = _short_graph()
    roles[(S.IN_PROGRESS, S.CLOSED)] = set()
    with pytest.raises(WorkflowConfigError, match="empty role list"):
        WorkflowConfig.from_tables(transitions, roles)


def test_self_loop_is_rejected():
    transitions, roles = _short_graph()
    transitions[S.REVIEW] = (S.REVIEW, S.CANCELLED)
    roles[(S.REVIEW, S.REVIEW)] = {ADMIN}
    with pytest.raises(WorkflowConfigError, match="Self-loop"):
        WorkflowConfig.from_tables(transitions, roles)


def test_terminal_with_outgoing_edge_is_rejected():
    transitions, roles = _short_graph()
    transitions[S.CLOSED] = (S.SUBMITTED,)
    roles[(S.CLOSED, S.SUBMITTED)] = {ADMIN}
    with pytest.raises(WorkflowConfigError, match="Terminal status closed"):
        WorkflowConfig.from_tables(transitions, roles)


def test_dead_end_is_rejected():
    transitions, roles = _short_graph()
    del transitions[S.REVISION]
    del roles[(S.REVISION, S.CANCELLED)]
    with pytest.raises(WorkflowConfigError, match="revision has no outgoing"):
        WorkflowConfig.from_tables(transitions, roles)


def test_cycle_without_exit_is_rejected():
    transitions, roles = _short_graph()
    transitions[S.REVIEW] = (S.REVISION,)
    transitions[S.REVISION] = (S.REVIEW,)
    for edge in [(S.REVIEW, S.CANCELLED), (S.REVISION, S.CANCELLED)]:
        del roles[edge]
    roles[(S.REVIEW, S.REVISION)] = {ADMIN}
    roles[(S.REVISION, S.REVIEW)] = {CONTRACTOR}
    with pytest.raises(WorkflowConfigError, match="No path to a terminal status from: review, revision"):
        WorkflowConfig.from_tables(transitions, roles)


def test_bad_levels_are_rejected():
    transitions, roles = _short_graph()
    with pytest.raises(WorkflowConfigError):
        WorkflowConfig.from_tables(transitions, roles, level_requirements={"X": 0})
    with pytest.raises(WorkflowConfigError):
        WorkflowConfig.from_tables(transitions, roles, admin_level_floor=0)


def test_from_document_falls_back_per_section():
    document = WorkflowDocument(level_requirements={"REVIEW_OTHERS": 4}, admin_level_floor=8)
    config = WorkflowConfig.from_document(document)
    assert config.level_requirements == {"REVIEW_OTHERS": 4}
    assert config.admin_level_floor == 8
    assert config.targets(S.SUBMITTED) == (S.ASSIGNED, S.CANCELLED)
    assert config.role_permissions == tables.ROLE_PERMISSIONS


def test_from_document_rejects_duplicate_rules():
    rule = {"source": "approved", "target": "closed", "roles": ["admin"]}
    document = WorkflowDocument.model_validate({"transitions": [rule, rule]})
    with pytest.raises(WorkflowConfigError, match="Duplicate rule"):
        WorkflowConfig.from_document(document)


def test_rules_round_out_the_graph():
    rules = default_config().rules()
    assert len(rules) == len(tables.TASK_TRANSITION_ROLES)
    assign = next(r for r in rules if (r.source, r.target) == (S.SUBMITTED, S.ASSIGNED))
    assert assign.roles == [ADMIN]
    assert assign.requires == ["contractor_id"]


def test_load_workflow_config_defaults():
    assert load_workflow_config() is default_config()


def test_load_workflow_config_from_file(tmp_path):
    transitions, roles = _short_graph()
    document = {
        "transitions": [
            {
                "source": source.value,
                "target": target.value,
                "roles": sorted(role.value for role in roles[(source, target)]),
            }
            for source, targets in transitions.items()
            for target in targets
        ],
        "permissions": {"use_search": ["client"]},
    }
    path = tmp_path / "workflow.json"
    path.write_text(json.dumps(document))

    config = load_workflow_config(path)
    assert config.targets(S.SUBMITTED) == (S.IN_PROGRESS, S.CANCELLED)
    assert config.role_permissions == {"use_search": frozenset({UserRole.CLIENT})}
    assert config.requires == {}


def test_load_workflow_config_missing_file(tmp_path):
    with pytest.raises(WorkflowConfigError, match="Cannot read"):
        load_workflow_config(tmp_path / "missing.json")


def test_load_workflow_config_invalid_document(tmp_path):
    path = tmp_path / "workflow.json"
    path.write_text(json.dumps({"transitions": [], "colour": "blue"}))
    with pytest.raises(WorkflowConfigError, match="Invalid workflow file"):
        load_workflow_config(path)


def test_required_fields_on_missing_edge_are_rejected():
    transitions, roles = _short_graph()
    with pytest.raises(WorkflowConfigError, match="submitted->assigned"):
        WorkflowConfig.from_tables(
            transitions, roles, requires={(S.SUBMITTED, S.ASSIGNED): ["contractor_id"]},
        )


def test_deliverable_rule_on_missing_edge_is_rejected():
    transitions, roles = _short_graph()
    with pytest.raises(WorkflowConfigError, match="in_progress->review"):
        WorkflowConfig.from_tables(
            transitions, roles, deliverable_edges=[(S.IN_PROGRESS, S.REVIEW)],
        )


def test_built_in_edge_rules_follow_the_graph():
    transitions, roles = _short_graph()
    config = WorkflowConfig.from_tables(transitions, roles)
    assert config.requires == {}
    assert config.deliverable_edges == frozenset()
    assert default_config().needs_deliverable(S.IN_PROGRESS, S.REVIEW) is True
    assert default_config().needs_deliverable(S.REVIEW, S.APPROVED) is False


def test_document_deliverable_rule():
    transitions, roles = _short_graph()
    document = WorkflowDocument.model_validate(
        {
            "transitions": [
                {
                    "source": source.value,
                    "target": target.value,
                    "roles": [role.value for role in roles[(source, target)]],
                    "needs_deliverable": (source, target) == (S.IN_PROGRESS, S.CLOSED),
                }
                for source, targets in transitions.items()
                for target in targets
            ]
        }
    )
    config = WorkflowConfig.from_document(document)
    assert config.deliverable_edges == {(S.IN_PROGRESS, S.CLOSED)}
    rule = next(r for r in config.rules() if (r.source, r.target) == (S.IN_PROGRESS, S.CLOSED))
    assert rule.needs_deliverable is True
