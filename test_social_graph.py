#!/usr/bin/env python3
"""
Friend request state machine and relationship queries
"""
import pytest
from models import db, Relationship, RelationshipStatus
from services import social_graph_service, InvalidArgument, StorageFailure


@pytest.fixture
def alice(make_user):
    return make_user('alice')

@pytest.fixture
def bob(make_user):
    return make_user('bob')

@pytest.fixture
def carol(make_user):
    return make_user('carol')


def befriend(user_a, user_b):
    assert social_graph_service.send_request(user_a.id, user_b.id) == {'ok': True}
    social_graph_service.accept_request(user_b.id, user_a.id)


# Sending

def test_send_creates_one_pending_row(alice, bob, pair_rows):
    assert social_graph_service.send_request(alice.id, bob.id) == {'ok': True}

    rows = pair_rows(alice.id, bob.id)
    assert len(rows) == 1
    assert rows[0].status == RelationshipStatus.PENDING
    assert rows[0].requester_id == alice.id
    assert rows[0].addressee_id == bob.id

def test_send_twice_reports_already_related(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)

    result = social_graph_service.send_request(alice.id, bob.id)

    assert result == {'ok': True, 'already_related': True}
    assert len(pair_rows(alice.id, bob.id)) == 1

def test_reverse_send_is_a_noop(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)

    result = social_graph_service.send_request(bob.id, alice.id)

    assert result['already_related'] is True
    rows = pair_rows(alice.id, bob.id)
    assert len(rows) == 1
    assert rows[0].requester_id == alice.id

def test_send_to_existing_friend_is_a_noop(alice, bob, pair_rows):
    befriend(alice, bob)

    assert social_graph_service.send_request(bob.id, alice.id)['already_related'] is True
    assert pair_rows(alice.id, bob.id)[0].status == RelationshipStatus.ACCEPTED

def test_send_accepts_string_ids(alice, bob, pair_rows):
    social_graph_service.send_request(str(alice.id), f' {bob.id} ')
    assert len(pair_rows(alice.id, bob.id)) == 1

@pytest.mark.parametrize('target', [None, '', '   ', 'bob', True, 2.7, 0, -3, '1e3', 10 ** 20, float('inf')])
def test_send_rejects_missing_or_malformed_target(alice, target):
    with pytest.raises(InvalidArgument):
        social_graph_service.send_request(alice.id, target)

def test_integral_float_id_is_accepted(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, float(bob.id))
    assert len(pair_rows(alice.id, bob.id)) == 1

def test_id_beyond_integer_column_range_is_invalid(alice):
    with pytest.raises(InvalidArgument):
        social_graph_service.send_request(alice.id, str(2 ** 63))
    with pytest.raises(InvalidArgument):
        social_graph_service.friend_count(10 ** 20)

def test_send_from_deleted_user_is_invalid(alice, bob):
    alice_id = alice.id
    db.session.delete(alice)
    db.session.commit()

    with pytest.raises(InvalidArgument):
        social_graph_service.send_request(alice_id, bob.id)
    assert Relationship.query.count() == 0

def test_send_to_self_is_invalid(alice):
    with pytest.raises(InvalidArgument):
        social_graph_service.send_request(alice.id, alice.id)
    assert Relationship.query.count() == 0

def test_send_to_unknown_user_is_invalid(alice):
    with pytest.raises(InvalidArgument):
        social_graph_service.send_request(alice.id, 9999)

def test_invalid_argument_is_a_value_error(alice):
    with pytest.raises(ValueError):
        social_graph_service.send_request(alice.id, None)

def test_concurrent_insert_is_reported_as_already_related(alice, bob, pair_rows, monkeypatch):
    # bob's request lands between alice's existence check and her insert
    db.session.add(Relationship(requester_id=bob.id, addressee_id=alice.id))
    db.session.commit()

    real_find_pair = social_graph_service._find_pair
    calls = []

    def stale_then_real(user_a, user_b):
        calls.append((user_a, user_b))
        if len(calls) == 1:
            return None
        return real_find_pair(user_a, user_b)

    monkeypatch.setattr(social_graph_service, '_find_pair', stale_then_real)

    result = social_graph_service.send_request(alice.id, bob.id)

    assert result == {'ok': True, 'already_related': True}
    assert len(calls) == 2
    rows = pair_rows(alice.id, bob.id)
    assert len(rows) == 1
    assert rows[0].requester_id == bob.id


# Accept / reject / cancel / unfriend

def test_accept_makes_both_users_friends(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)

    assert social_graph_service.accept_request(bob.id, alice.id) == {'ok': True}

    row = pair_rows(alice.id, bob.id)[0]
    assert row.status == RelationshipStatus.ACCEPTED
    assert row.responded_at is not None
    assert [f['user_id'] for f in social_graph_service.list_friends(alice.id)] == [bob.id]
    assert [f['user_id'] for f in social_graph_service.list_friends(bob.id)] == [alice.id]

def test_requester_cannot_accept_own_request(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)

    assert social_graph_service.accept_request(alice.id, bob.id) == {'ok': True}

    assert pair_rows(alice.id, bob.id)[0].status == RelationshipStatus.PENDING

def test_accept_without_request_is_a_noop(alice, bob, pair_rows):
    assert social_graph_service.accept_request(bob.id, alice.id) == {'ok': True}
    assert pair_rows(alice.id, bob.id) == []

def test_accept_twice_is_a_noop(alice, bob, pair_rows):
    befriend(alice, bob)

    assert social_graph_service.accept_request(bob.id, alice.id) == {'ok': True}
    assert pair_rows(alice.id, bob.id)[0].status == RelationshipStatus.ACCEPTED

def test_accept_requires_requester(bob):
    with pytest.raises(InvalidArgument):
        social_graph_service.accept_request(bob.id, None)

def test_reject_deletes_and_allows_new_request(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)

    assert social_graph_service.reject_request(bob.id, alice.id) == {'ok': True}
    assert pair_rows(alice.id, bob.id) == []

    assert social_graph_service.send_request(alice.id, bob.id) == {'ok': True}
    assert len(pair_rows(alice.id, bob.id)) == 1

def test_reject_leaves_accepted_friendship_alone(alice, bob, pair_rows):
    befriend(alice, bob)

    social_graph_service.reject_request(bob.id, alice.id)

    assert pair_rows(alice.id, bob.id)[0].status == RelationshipStatus.ACCEPTED

def test_cancel_by_requester_deletes(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)

    assert social_graph_service.cancel_request(alice.id, bob.id) == {'ok': True}
    assert pair_rows(alice.id, bob.id) == []

def test_cancel_by_addressee_is_a_noop(alice, bob, pair_rows):
    social_graph_service.send_request(bob.id, alice.id)

    # alice is the addressee, not the requester
    assert social_graph_service.cancel_request(alice.id, bob.id) == {'ok': True}

    rows = pair_rows(alice.id, bob.id)
    assert len(rows) == 1
    assert rows[0].status == RelationshipStatus.PENDING

def test_cancel_requires_addressee(alice):
    with pytest.raises(InvalidArgument):
        social_graph_service.cancel_request(alice.id, '')

def test_unfriend_works_from_either_side(alice, bob, carol, pair_rows):
    befriend(alice, bob)
    befriend(carol, alice)

    social_graph_service.unfriend(bob.id, alice.id)
    social_graph_service.unfriend(alice.id, carol.id)

    assert pair_rows(alice.id, bob.id) == []
    assert pair_rows(alice.id, carol.id) == []
    assert social_graph_service.list_friends(alice.id) == []
    assert social_graph_service.list_friends(bob.id) == []

def test_unfriend_does_not_touch_pending_request(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)

    assert social_graph_service.unfriend(bob.id, alice.id) == {'ok': True}
    assert len(pair_rows(alice.id, bob.id)) == 1

def test_full_lifecycle_scenario(alice, bob, pair_rows):
    social_graph_service.send_request(alice.id, bob.id)
    rows = pair_rows(alice.id, bob.id)
    assert len(rows) == 1 and rows[0].requester_id == alice.id

    social_graph_service.accept_request(bob.id, alice.id)
    assert pair_rows(alice.id, bob.id)[0].status == RelationshipStatus.ACCEPTED
    assert social_graph_service.friend_count(alice.id) == 1
    assert social_graph_service.friend_count(bob.id) == 1

    social_graph_service.unfriend(alice.id, bob.id)
    assert pair_rows(alice.id, bob.id) == []
    assert social_graph_service.friend_count(alice.id) == 0


# Queries

def test_list_friends_is_sorted_with_counts(make_user, alice, bob, carol):
    dave = make_user('Dave')
    befriend(alice, carol)
    befriend(bob, alice)
    befriend(alice, dave)
    befriend(carol, bob)
    # pending requests never count
    social_graph_service.send_request(dave.id, bob.id)

    friends = social_graph_service.list_friends(alice.id)

    assert friends == [
        {'user_id': dave.id, 'username': 'Dave', 'friend_count': 1},
        {'user_id': bob.id, 'username': 'bob', 'friend_count': 2},
        {'user_id': carol.id, 'username': 'carol', 'friend_count': 2},
    ]

def test_list_pending_splits_sent_and_received(alice, bob, carol):
    social_graph_service.send_request(alice.id, bob.id)
    social_graph_service.send_request(carol.id, alice.id)

    pending = social_graph_service.list_pending(alice.id)

    assert pending == {
        'sent': [{'user_id': bob.id, 'username': 'bob'}],
        'received': [{'user_id': carol.id, 'username': 'carol'}],
    }
    assert social_graph_service.list_pending(bob.id)['received'] == [{'user_id': alice.id, 'username': 'alice'}]

def test_list_pending_ignores_friends(alice, bob):
    befriend(alice, bob)
    assert social_graph_service.list_pending(alice.id) == {'sent': [], 'received': []}

def test_friend_count_matches_accepted_rows(alice, bob, carol):
    befriend(alice, bob)
    befriend(carol, alice)
    social_graph_service.send_request(bob.id, carol.id)

    for user in (alice, bob, carol):
        accepted = Relationship.query.filter(
            Relationship.status == RelationshipStatus.ACCEPTED,
            db.or_(Relationship.requester_id == user.id, Relationship.addressee_id == user.id)
        ).count()
        assert social_graph_service.friend_count(user.id) == accepted

    assert social_graph_service.friend_count(alice.id) == 2
    assert social_graph_service.friend_count(bob.id) == 1

def test_search_excludes_self_and_related_users(make_user, alice, bob, carol):
    amy = make_user('amanda')
    al = make_user('al_green')
    befriend(alice, bob)
    social_graph_service.send_request(alice.id, carol.id)
    social_graph_service.send_request(amy.id, alice.id)

    results = social_graph_service.search_candidates('A', alice.id)

    assert results == [{'user_id': al.id, 'username': 'al_green'}]

def test_search_is_case_insensitive_substring(make_user, alice):
    make_user('TheBeatlesFan')
    make_user('beatnik')

    names = [u['username'] for u in social_graph_service.search_candidates('beat', alice.id)]

    assert sorted(names) == sorted(['TheBeatlesFan', 'beatnik'])

def test_search_treats_wildcards_literally(make_user, alice):
    make_user('a_b')
    make_user('axb')

    names = [u['username'] for u in social_graph_service.search_candidates('_', alice.id)]

    assert names == ['a_b']

def test_search_returns_at_most_ten(make_user, alice):
    for i in range(15):
        make_user(f'listener{i:02d}')

    results = social_graph_service.search_candidates('listener', alice.id)

    assert len(results) == 10
    assert results[0]['username'] == 'listener00'

@pytest.mark.parametrize('query', ['', '   ', None])
def test_blank_search_skips_storage(alice, statement_counter, query):
    assert social_graph_service.search_candidates(query, alice.id) == []
    assert statement_counter == []

def test_relationship_status(alice, bob, carol):
    assert social_graph_service.relationship_status(alice.id, alice.id) == 'self'
    assert social_graph_service.relationship_status(alice.id, bob.id) == 'none'

    social_graph_service.send_request(alice.id, bob.id)
    assert social_graph_service.relationship_status(alice.id, bob.id) == 'request_sent'
    assert social_graph_service.relationship_status(bob.id, alice.id) == 'request_received'

    social_graph_service.accept_request(bob.id, alice.id)
    assert social_graph_service.relationship_status(alice.id, bob.id) == 'friends'
    assert social_graph_service.are_friends(bob.id, alice.id)
    assert not social_graph_service.are_friends(bob.id, carol.id)

def test_friend_ids(alice, bob, carol):
    befriend(alice, bob)
    befriend(carol, alice)

    assert sorted(social_graph_service.friend_ids(alice.id)) == sorted([bob.id, carol.id])
    assert social_graph_service.friend_ids(bob.id) == [alice.id]


# Storage

def test_self_relationship_rejected_by_schema(alice):
    from sqlalchemy.exc import IntegrityError

    db.session.add(Relationship(requester_id=alice.id, addressee_id=alice.id))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()

def test_relationship_to_unknown_user_rejected_by_schema(bob):
    from sqlalchemy.exc import IntegrityError

    db.session.add(Relationship(requester_id=9999, addressee_id=bob.id))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()

def test_deleting_user_row_cascades_relationships(alice, bob, carol):
    from sqlalchemy import delete
    from models import User

    befriend(alice, bob)
    social_graph_service.send_request(carol.id, alice.id)
    befriend(bob, carol)

    db.session.execute(delete(User).where(User.id == alice.id))
    db.session.commit()

    remaining = Relationship.query.all()
    assert len(remaining) == 1
    assert {remaining[0].requester_id, remaining[0].addressee_id} == {bob.id, carol.id}

def test_storage_errors_become_storage_failure(alice, bob):
    social_graph_service.send_request(alice.id, bob.id)
    Relationship.__table__.drop(db.engine)

    with pytest.raises(StorageFailure):
        social_graph_service.accept_request(bob.id, alice.id)

    with pytest.raises(StorageFailure):
        social_graph_service.send_request(bob.id, alice.id)
