"""Authorization Policy — one rule table deciding who may trigger each operation.

Invariants:
    - Author-scoped operations (accept, reject, update status, edit, delete) require
      caller == post.author_id, else ForbiddenError
    - submit_offer requires caller != post.author_id, else SelfHelpForbiddenError
    - Read operations need only an authenticated identity (resolved upstream)
    - Evaluated after the post is loaded and BEFORE any offer lookup, so a
      non-author gets Forbidden whether or not the offer id exists

Design Decisions:
    - Single authorize(operation, caller, post) function over per-route checks:
      no drift between duplicated author comparisons
"""

from helpboard.core.domain_types import Operation, UserId
from helpboard.core.errors import (
    ErrorContext, ForbiddenError, SelfHelpForbiddenError,
)
from helpboard.core.help_post import HelpPost

AUTHOR_ONLY = frozenset({
    Operation.ACCEPT_OFFER,
    Operation.REJECT_OFFER,
    Operation.UPDATE_STATUS,
    Operation.EDIT_POST,
    Operation.DELETE_POST,
})

NON_AUTHOR_ONLY = frozenset({Operation.SUBMIT_OFFER})


def authorize(operation: Operation, caller_id: UserId, post: HelpPost) -> None:
    """Raise if caller may not perform operation on post. Returns None when allowed."""
    context = ErrorContext(post_id=str(post.id), operation=operation.value)
    if operation in AUTHOR_ONLY and not post.is_author(caller_id):
        raise ForbiddenError(operation.value, context)
    if operation in NON_AUTHOR_ONLY and post.is_author(caller_id):
        raise SelfHelpForbiddenError(context)

