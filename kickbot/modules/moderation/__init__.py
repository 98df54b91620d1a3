"""Moderation module for Kick chat moderation.

Rule evaluation, filter exemptions, platform actions and moderation history.
"""

from kickbot.modules.moderation.models import (
    BannedWord,
    FilterType,
    LogAction,
    ModerationAction,
    ModerationSettings,
    ModLog,
    Permit,
    PermitType,
    SeverityLevel,
    UserLevel,
)
from kickbot.modules.moderation.evaluator import RuleEvaluator, evaluate
from kickbot.modules.moderation.exemptions import (
    build_user_context,
    has_active_permit,
    meets_level,
    resolve_user_level,
)
from kickbot.modules.moderation.actions import (
    ActionError,
    ActionExecutor,
    KickActionExecutor,
)
from kickbot.modules.moderation.audit import AuditLogger, DatabaseAuditLogger
from kickbot.modules.moderation.kick_api import KickAPIError, KickModerationClient
from kickbot.modules.moderation.service import (
    ModerationService,
    ModerationServiceError,
)

__all__ = [
    # Models
    "BannedWord",
    "FilterType",
    "LogAction",
    "ModerationAction",
    "ModerationSettings",
    "ModLog",
    "Permit",
    "PermitType",
    "SeverityLevel",
    "UserLevel",
    # Evaluation
    "RuleEvaluator",
    "evaluate",
    "build_user_context",
    "has_active_permit",
    "meets_level",
    "resolve_user_level",
    # Actions
    "ActionError",
    "ActionExecutor",
    "KickActionExecutor",
    "KickAPIError",
    "KickModerationClient",
    "AuditLogger",
    "DatabaseAuditLogger",
    # Service
    "ModerationService",
    "ModerationServiceError",
]
