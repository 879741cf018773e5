"""Resource lifecycle hook outcomes.

Hooks are methods on ResourceController. Before-hooks may decline a
mutation by returning ``ABORT``:

    class ArticleController(ResourceController):
        model = Article

        async def before_create(self, payload, request):
            if payload.get("draft"):
                return ABORT
            return {**payload, "slug": slugify(payload["title"])}
"""

from restforge.hooks.types import (
    ABORT,
    ACTION_AVOIDED,
    Abort,
    has_override,
    payload_or_abort,
)

__all__ = [
    "ABORT",
    "ACTION_AVOIDED",
    "Abort",
    "has_override",
    "payload_or_abort",
]
