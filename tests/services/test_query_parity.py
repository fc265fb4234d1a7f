"""Query Parity — the store's SQL rendering and filter_invitations() agree.

Invariants:
    - For every query, store.query(q) == filter_invitations(all_rows, q)
    - Holds for multi-value filters, tri-states, type, search, ordering and paging
    - Search folds non-ASCII case alike; mixed-case strings sort by code point in both
"""

import pytest

from invitations.core.domain_types import (
    AcceptedFilter, InvitationType, SentFilter, SortOrder,
)
from invitations.core.invitation_hooks import InvitationHooks
from invitations.core.invitation_query import InvitationQuery, filter_invitations
from invitations.core.invitation_record import NewInvitation
from invitations.services.invitation_store import SqlInvitationStore

ROWS = [
    dict(user_id=3, inviter_id=1, component_name="groups", component_action="invite", item_id=1),
    dict(user_id=3, inviter_id=2, component_name="groups", component_action="invite", item_id=2,
         invite_sent=True),
    dict(user_id=4, inviter_id=1, component_name="Friends", component_action="request_50%",
         item_id=1, accepted=True),
    dict(user_id=0, inviter_id=1, invitee_email="cake@example.com", component_name="cakes",
         component_action="cupcakes", item_id=3, invite_sent=True),
    dict(user_id=5, component_name="groups", component_action="membership", item_id=2,
         type=InvitationType.REQUEST),
    dict(user_id=3, component_name="cakes", component_action="muffins", item_id=2,
         secondary_item_id=9, type=InvitationType.REQUEST, accepted=True),
    dict(user_id=6, inviter_id=2, component_name="Événements", component_action="apple",
         item_id=4, invite_sent=True),
    dict(user_id=7, inviter_id=2, component_name="events", component_action="Banana",
         item_id=4),
]

QUERIES = [
    InvitationQuery(),
    InvitationQuery(accepted=AcceptedFilter.ALL),
    InvitationQuery(accepted=AcceptedFilter.ACCEPTED),
    InvitationQuery(user_id=[3, 5], accepted=AcceptedFilter.ALL),
    InvitationQuery(invite_sent=SentFilter.SENT),
    InvitationQuery(invite_sent=SentFilter.DRAFT, type=InvitationType.INVITE),
    InvitationQuery(type=InvitationType.REQUEST, accepted=AcceptedFilter.ALL),
    InvitationQuery(invitee_email="cake@example.com"),
    InvitationQuery(search_terms="GROUP", accepted=AcceptedFilter.ALL),
    InvitationQuery(search_terms="50%", accepted=AcceptedFilter.ALL),
    InvitationQuery(search_terms="év", accepted=AcceptedFilter.ALL),
    InvitationQuery(search_terms="ÉV", accepted=AcceptedFilter.ALL),
    InvitationQuery(search_terms="NEMENTS"),
    InvitationQuery(order_by="item_id", sort_order=SortOrder.DESC, accepted=AcceptedFilter.ALL),
    InvitationQuery(order_by="user_id", per_page=2, page=2, accepted=AcceptedFilter.ALL),
    InvitationQuery(order_by="component_action", accepted=AcceptedFilter.ALL),
    InvitationQuery(order_by="component_name", accepted=AcceptedFilter.ALL),
    InvitationQuery(order_by="component_name", sort_order=SortOrder.DESC),
    InvitationQuery(secondary_item_id=9, accepted=AcceptedFilter.ALL),
    InvitationQuery(item_id=[2, 3], per_page=10, page=3),
]


@pytest.fixture
async def seeded_store(test_db):
    store = SqlInvitationStore(test_db, InvitationHooks())
    for row in ROWS:
        result = await store.create(NewInvitation(**row))
        assert result.ok, result.error
    return store


@pytest.mark.parametrize("query", QUERIES)
async def test_sql_and_memory_agree(seeded_store, query):
    everything = await seeded_store.query(InvitationQuery(accepted=AcceptedFilter.ALL))
    assert len(everything) == len(ROWS)

    from_sql = await seeded_store.query(query)
    in_memory = filter_invitations(everything, query)

    assert [r.id for r in from_sql] == [r.id for r in in_memory]
