"""Authorization Policy — verifies the author / non-author rule table.

Tests:
    - Author-scoped operations refuse everyone but the author with ForbiddenError
    - submit_offer refuses the author with SelfHelpForbiddenError
    - Read operations are open to any authenticated caller
"""

import pytest

from helpboard.core.authorization import AUTHOR_ONLY, authorize
from helpboard.core.domain_types import Operation
from helpboard.core.errors import ForbiddenError, SelfHelpForbiddenError
from tests.factories import AUTHOR, HELPER, make_post


@pytest.mark.parametrize("operation", sorted(AUTHOR_ONLY, key=lambda o: o.value))
def test_author_only_operations_allow_author(operation):
    authorize(operation, AUTHOR, make_post())


@pytest.mark.parametrize("operation", sorted(AUTHOR_ONLY, key=lambda o: o.value))
def test_author_only_operations_forbid_others(operation):
    post = make_post()
    with pytest.raises(ForbiddenError) as exc:
        authorize(operation, HELPER, post)
    assert exc.value.http_status == 403
    assert exc.value.context.post_id == str(post.id)
    assert exc.value.context.operation == operation.value


def test_submit_offer_forbids_author():
    with pytest.raises(SelfHelpForbiddenError):
        authorize(Operation.SUBMIT_OFFER, AUTHOR, make_post())


def test_submit_offer_allows_non_author():
    authorize(Operation.SUBMIT_OFFER, HELPER, make_post())


@pytest.mark.parametrize("operation", [
    Operation.GET_POST, Operation.LIST_POSTS, Operation.LIST_POSTS_BY_AUTHOR,
])
def test_reads_open_to_anyone(operation):
    authorize(operation, HELPER, make_post())
    authorize(operation, AUTHOR, make_post())
