"""Built-in workflow tables for TackleBox.

Single source of truth for the task status graph, the legacy role-set
permissions and the camper level requirements. Nothing else in the package
hardcodes a status, permission or level; changing the workflow means editing
these tables (or supplying a replacement document, see ``config``).

The remote API enforces the same values. Keep the two in step.
"""

from __future__ import annotations

from tacklebox.workflow.enums import TaskStatus, UserRole

CLIENT = UserRole.CLIENT
CONTRACTOR = UserRole.CONTRACTOR
ADMIN = UserRole.ADMIN


# ── Task lifecycle ──────────────────────────────────────────

INITIAL_STATUS = TaskStatus.SUBMITTED

TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.CLOSED, TaskStatus.CANCELLED}
)

# from → allowed targets
TASK_TRANSITIONS: dict[TaskStatus, tuple[TaskStatus, ...]] = {
    TaskStatus.SUBMITTED: (TaskStatus.ASSIGNED, TaskStatus.CANCELLED),
    TaskStatus.ASSIGNED: (TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED),
    TaskStatus.IN_PROGRESS: (TaskStatus.REVIEW, TaskStatus.CANCELLED),
    TaskStatus.REVIEW: (TaskStatus.APPROVED, TaskStatus.REVISION),
    TaskStatus.REVISION: (TaskStatus.IN_PROGRESS,),
    TaskStatus.APPROVED: (TaskStatus.CLOSED,),
    TaskStatus.CLOSED: (),
    TaskStatus.CANCELLED: (),
}

# (from, to) → roles allowed to take the edge
TASK_TRANSITION_ROLES: dict[tuple[TaskStatus, TaskStatus], frozenset[UserRole]] = {
    (TaskStatus.SUBMITTED, TaskStatus.ASSIGNED): frozenset({ADMIN}),
    (TaskStatus.SUBMITTED, TaskStatus.CANCELLED): frozenset({ADMIN}),
    (TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS): frozenset({CONTRACTOR}),
    (TaskStatus.ASSIGNED, TaskStatus.CANCELLED): frozenset({ADMIN}),
    (TaskStatus.IN_PROGRESS, TaskStatus.REVIEW): frozenset({CONTRACTOR}),
    (TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED): frozenset({ADMIN}),
    (TaskStatus.REVIEW, TaskStatus.APPROVED): frozenset({ADMIN}),
    (TaskStatus.REVIEW, TaskStatus.REVISION): frozenset({ADMIN}),
    (TaskStatus.REVISION, TaskStatus.IN_PROGRESS): frozenset({CONTRACTOR}),
    (TaskStatus.APPROVED, TaskStatus.CLOSED): frozenset({ADMIN}),
}

# (from, to) → request fields the remote API insists on
TASK_TRANSITION_REQUIRES: dict[tuple[TaskStatus, TaskStatus], tuple[str, ...]] = {
    (TaskStatus.SUBMITTED, TaskStatus.ASSIGNED): ("contractor_id",),
    (TaskStatus.REVIEW, TaskStatus.REVISION): ("note",),
}

# Edges that need at least one uploaded deliverable on the task
TASK_TRANSITION_DELIVERABLES: frozenset[tuple[TaskStatus, TaskStatus]] = frozenset(
    {(TaskStatus.IN_PROGRESS, TaskStatus.REVIEW)}
)

# Campfire: open tasks a camper can claim (submitted → assigned) or pass
# back (assigned → submitted). These bypass the edge-role table above.
CLAIM_NOTE = "Claimed from campfire"
PASS_NOTE = "Passed, returned to campfire"


# ── Role-set permissions (legacy, frozen) ───────────────────

ROLE_PERMISSIONS: dict[str, frozenset[UserRole]] = {
    "view_own_tasks": frozenset({CLIENT, CONTRACTOR, ADMIN}),
    "view_all_tasks": frozenset({ADMIN}),
    "submit_task": frozenset({CLIENT, ADMIN}),
    "update_task_status": frozenset({CONTRACTOR, ADMIN}),
    "assign_tasks": frozenset({ADMIN}),
    "upload_deliverables": frozenset({CONTRACTOR, ADMIN}),
    "add_comments": frozenset({CLIENT, CONTRACTOR, ADMIN}),
    "log_time": frozenset({CONTRACTOR, ADMIN}),
    "complete_review": frozenset({CONTRACTOR, ADMIN}),
    "view_reviews": frozenset({CONTRACTOR, ADMIN}),
    "view_brand_profile": frozenset({CLIENT, CONTRACTOR, ADMIN}),
    "edit_brand_profile": frozenset({ADMIN}),
    "view_brand_guides": frozenset({CLIENT, CONTRACTOR, ADMIN}),
    "upload_brand_guides": frozenset({ADMIN}),
    "view_own_projects": frozenset({CLIENT, ADMIN}),
    "manage_categories": frozenset({ADMIN}),
    "manage_templates": frozenset({ADMIN}),
    "view_gamification": frozenset({CONTRACTOR, ADMIN}),
    "view_analytics": frozenset({ADMIN}),
    "manage_users": frozenset({ADMIN}),
    "use_search": frozenset({CLIENT, CONTRACTOR, ADMIN}),
}


# ── Level requirements (progressive unlock) ─────────────────

ADMIN_LEVEL_FLOOR = 7
DEFAULT_LEVEL = 1
CLIENT_LEVEL = 0
# Reported for capabilities nobody can reach
UNREACHABLE_LEVEL = 99

LEVEL_REQUIREMENTS: dict[str, int] = {
    # Core, everyone
    "VIEW_OWN_TASKS": 1,
    "CLAIM_TASKS": 1,
    "VIEW_CALENDAR": 1,
    "SMART_SCHEDULE": 1,
    "VIEW_BRANDS": 1,
    "VIEW_OWN_ANALYTICS": 1,
    "VIEW_EARNINGS": 1,
    "VIEW_JOURNEY": 1,
    "VIEW_PROJECTS": 1,
    "LOG_TIME": 1,

    # AI tools
    "AI_SOCIAL_IMAGES": 2,
    "AI_DOCUMENTS": 3,
    "AI_PRESENTATIONS": 3,
    "AI_AD_CREATIVES": 3,

    # Peer review
    "REVIEW_OTHERS": 6,

    # Management
    "MANAGE_ALL_TASKS": 7,
    "ASSIGN_CAMPERS": 7,
    "SET_COMPLEXITY": 7,
    "MANAGE_BRANDS": 7,
    "ONBOARD_BRANDS": 7,
    "MANAGE_PROJECTS": 7,
    "VIEW_ALL_ANALYTICS": 7,
    "VIEW_ALL_CAMPERS": 7,
    "MANAGE_CAMPERS": 7,
    "APPROVE_CASHOUTS": 7,
    "CREATE_TASKS_FOR_CLIENTS": 7,
    "VIEW_CREDITS": 7,
    "MANAGE_CATEGORIES": 7,
    "MANAGE_TEMPLATES": 7,
    "PLATFORM_SETTINGS": 7,
    "MANAGE_JOURNEY": 7,
}


# ── Level catalogue ─────────────────────────────────────────

# (level, name, xp required, fire stage)
SCALING_TIERS: tuple[tuple[int, str, int, str], ...] = (
    (1, "Volunteer", 0, "Strike the Match"),
    (2, "Apprentice", 500, "Strike the Match"),
    (3, "Junior", 1500, "Find Kindling"),
    (4, "Intermediate", 3500, "Light First Flame"),
    (5, "Senior", 7000, "Feed the Fire"),
    (6, "Specialist", 12000, "Choose Your Wood"),
    (7, "Camp Leader", 20000, "Build the Blaze"),
    (8, "Guide", 30000, "Build the Blaze"),
    (9, "Trailblazer", 45000, "Share the Warmth"),
    (10, "Pioneer", 65000, "Share the Warmth"),
    (11, "Legend", 90000, "Tend the Embers"),
    (12, "Legacy", 120000, "Tend the Embers"),
)

# (path, label, min level); camper menus are level-gated
CAMPER_NAV_ITEMS: tuple[tuple[str, str, int], ...] = (
    ("/camper", "Home", 1),
    ("/camper/tasks", "Tasks", 1),
    ("/camper/projects", "Projects", 1),
    ("/camper/calendar", "Calendar", 1),
    ("/camper/brands", "Brands", 1),
    ("/camper/journey", "Journey", 1),
    ("/camper/tools", "Tools", 2),
    ("/camper/manage/tasks", "Manage Tasks", 7),
    ("/camper/manage/campers", "Campers", 7),
    ("/camper/manage/brands", "Manage Brands", 7),
    ("/camper/manage/settings", "Settings", 7),
    ("/camper/profile", "Profile", 1),
)

# (path, label); clients have a fixed menu
CLIENT_NAV_ITEMS: tuple[tuple[str, str], ...] = (
    ("/client", "Home"),
    ("/client/tasks", "Tasks"),
    ("/client/projects", "Projects"),
    ("/client/credits", "Credits"),
    ("/client/brand-hub", "Brand Hub"),
    ("/client/profile", "Profile"),
)

# (id, label, min level)
AI_TOOLS: tuple[tuple[str, str, int], ...] = (
    ("social", "Social Content", 2),
    ("document", "Documents", 3),
    ("presentation", "Presentations", 3),
    ("ad", "Ad Creatives", 3),
)
