"""HelpPost Aggregate — the help request and its embedded offers, with invariant rules.

Invariants:
    - A helper appears in offers at most once
    - The author never appears as a helper on their own post
    - in-progress / completed implies exactly one accepted offer exists
    - At most one offer is accepted at a time
    - offer_status moves only pending -> accepted | rejected, never back
    - Offers are only appended; order is insertion order

Design Decisions:
    - Dataclasses with mutation methods: pure, deterministic, testable without mocks
    - Offers live inside the aggregate (owned list), addressed by id only through
      the parent — there is no independent offer repository
    - `now` and ids are passed in: the shell owns the clock and id generation
    - check_invariants / check_offer_transitions run before every commit as a
      last line of defence; methods already refuse illegal transitions
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from helpboard.core.domain_types import (
    Category, OfferId, OfferStatus, PostId, PostStatus, UserId,
    STATUSES_REQUIRING_HELPER,
)
from helpboard.core.errors import (
    AlreadyAcceptedError, DuplicateOfferError, ErrorContext,
    InvariantViolationError, MissingAcceptedHelperError,
    OfferNotPendingError, ResourceNotFoundError, SelfHelpForbiddenError,
)


@dataclass(frozen=True)
class PostFields:
    """Author-owned, already-validated fields of a post."""
    title: str
    description: str
    category: Category
    location: str
    needed_by: datetime


@dataclass
class Offer:
    """One helper's bid. Embedded in exactly one HelpPost."""
    id: OfferId
    helper_id: UserId
    offered_at: datetime
    message: str = ""
    offer_status: OfferStatus = OfferStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.offer_status == OfferStatus.PENDING

    @property
    def is_accepted(self) -> bool:
        return self.offer_status == OfferStatus.ACCEPTED


@dataclass
class HelpPost:
    """HelpPost aggregate root — owns its offers."""
    id: PostId
    author_id: UserId
    title: str
    description: str
    category: Category
    location: str
    needed_by: datetime
    created_at: datetime
    status: PostStatus = PostStatus.OPEN
    offers: list[Offer] = field(default_factory=list)
    version: int = 0

    @classmethod
    def create(
        cls,
        author_id: UserId,
        fields: PostFields,
        now: datetime,
        post_id: PostId | None = None,
    ) -> "HelpPost":
        """New post: open, no offers."""
        return cls(
            id=post_id or PostId(uuid4()),
            author_id=author_id,
            title=fields.title,
            description=fields.description,
            category=fields.category,
            location=fields.location,
            needed_by=fields.needed_by,
            created_at=now,
        )

    # ─── Queries ─────────────────────────────────────────────────

    def is_author(self, user_id: UserId) -> bool:
        return self.author_id == user_id

    def find_offer(self, offer_id: OfferId) -> Offer | None:
        return next((o for o in self.offers if o.id == offer_id), None)

    def offer_from(self, helper_id: UserId) -> Offer | None:
        return next((o for o in self.offers if o.helper_id == helper_id), None)

    @property
    def accepted_offer(self) -> Offer | None:
        return next((o for o in self.offers if o.is_accepted), None)

    @property
    def has_accepted_offer(self) -> bool:
        return self.accepted_offer is not None

    # ─── Transitions ─────────────────────────────────────────────

    def add_offer(
        self,
        helper_id: UserId,
        message: str,
        now: datetime,
        offer_id: OfferId | None = None,
    ) -> Offer:
        """Append a pending offer. Allowed in any post status."""
        if self.is_author(helper_id):
            raise SelfHelpForbiddenError(self._context())
        if self.offer_from(helper_id) is not None:
            raise DuplicateOfferError(self._context())
        offer = Offer(
            id=offer_id or OfferId(uuid4()),
            helper_id=helper_id,
            offered_at=now,
            message=message,
        )
        self.offers.append(offer)
        return offer

    def accept_offer(self, offer_id: OfferId) -> Offer:
        """Accept one pending offer and move the post to in-progress."""
        offer = self._require_offer(offer_id)
        if self.has_accepted_offer:
            raise AlreadyAcceptedError(self._context(offer_id))
        if not offer.is_pending:
            raise OfferNotPendingError(
                offer.offer_status.value, self._context(offer_id),
            )
        offer.offer_status = OfferStatus.ACCEPTED
        self.status = PostStatus.IN_PROGRESS
        return offer

    def reject_offer(self, offer_id: OfferId) -> Offer:
        """Reject one pending offer. Post status is untouched."""
        offer = self._require_offer(offer_id)
        if not offer.is_pending:
            raise OfferNotPendingError(
                offer.offer_status.value, self._context(offer_id),
            )
        offer.offer_status = OfferStatus.REJECTED
        return offer

    def change_status(self, new_status: PostStatus) -> None:
        """Author-driven status change. Reopening is always allowed."""
        if new_status in STATUSES_REQUIRING_HELPER and not self.has_accepted_offer:
            raise MissingAcceptedHelperError(new_status.value, self._context())
        self.status = new_status

    def apply_edit(self, fields: PostFields) -> None:
        """Rewrite author-owned fields. Never touches status or offers."""
        self.title = fields.title
        self.description = fields.description
        self.category = fields.category
        self.location = fields.location
        self.needed_by = fields.needed_by

    # ─── Helpers ─────────────────────────────────────────────────

    def _require_offer(self, offer_id: OfferId) -> Offer:
        offer = self.find_offer(offer_id)
        if offer is None:
            raise ResourceNotFoundError(
                "Offer", str(offer_id), self._context(offer_id),
            )
        return offer

    def _context(self, offer_id: OfferId | None = None) -> ErrorContext:
        return ErrorContext(
            post_id=str(self.id),
            offer_id=str(offer_id) if offer_id else None,
        )


# ─── Invariant checks ────────────────────────────────────────────

def check_invariants(post: HelpPost) -> None:
    """Raise InvariantViolationError if a structural rule does not hold."""
    context = ErrorContext(post_id=str(post.id))
    helper_ids = [o.helper_id for o in post.offers]
    if len(helper_ids) != len(set(helper_ids)):
        raise InvariantViolationError("duplicate helper", context)
    if post.author_id in helper_ids:
        raise InvariantViolationError("author is a helper", context)
    accepted = sum(1 for o in post.offers if o.is_accepted)
    if post.status in STATUSES_REQUIRING_HELPER and accepted == 0:
        raise InvariantViolationError("no accepted helper", context)
    if accepted > 1:
        raise InvariantViolationError("more than one accepted offer", context)
    offer_ids = [o.id for o in post.offers]
    if len(offer_ids) != len(set(offer_ids)):
        raise InvariantViolationError("duplicate offer id", context)


def check_offer_transitions(before: HelpPost, after: HelpPost) -> None:
    """Raise InvariantViolationError if offers were removed, reordered, or un-decided."""
    context = ErrorContext(post_id=str(after.id))
    if [o.id for o in after.offers[:len(before.offers)]] != [o.id for o in before.offers]:
        raise InvariantViolationError("offers removed or reordered", context)
    for old, new in zip(before.offers, after.offers):
        if old.offer_status != new.offer_status and not old.is_pending:
            raise InvariantViolationError(
                f"offer {old.id} moved {old.offer_status.value} -> "
                f"{new.offer_status.value}",
                context,
            )
