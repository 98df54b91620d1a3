"""KickBot Moderation Backend.

Moderation backend for a multi-tenant Kick.com chat bot: filter evaluation,
permits, moderation logs and the dashboard API over them.

Modules:
    - core: Configuration, database, logging, Celery setup
    - modules.moderation: Chat moderation filters, permits and mod logs
"""

__version__ = "0.1.0"
