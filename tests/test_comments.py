import pytest

from slangdict.context import ANONYMOUS, AuthContext
from slangdict.errors import (
    AuthenticationRequired,
    InvalidArgument,
    NotFound,
    PermissionDenied,
)
from slangdict.models import UserRole
from slangdict.services import comments as comment_service
from slangdict.services.comments import build_comment_tree


def _node(comment_id, parent_id=None):
    return {"id": comment_id, "parent_id": parent_id, "content": f"c{comment_id}"}


def test_build_comment_tree_nests_replies():
    flat = [_node(1), _node(2, 1), _node(3), _node(4, 2), _node(5, 1)]

    roots = build_comment_tree(flat)

    assert [root["id"] for root in roots] == [1, 3]
    assert [reply["id"] for reply in roots[0]["replies"]] == [2, 5]
    assert [reply["id"] for reply in roots[0]["replies"][0]["replies"]] == [4]
    assert roots[1]["replies"] == []


def test_build_comment_tree_promotes_orphans():
    roots = build_comment_tree([_node(7, 99), _node(8, 7)])
    assert [root["id"] for root in roots] == [7]
    assert roots[0]["replies"][0]["id"] == 8


def test_build_comment_tree_does_not_mutate_input():
    flat = [_node(1), _node(2, 1)]
    build_comment_tree(flat)
    assert "replies" not in flat[0]


def test_add_comment_and_reply(make_user, make_term):
    alice = make_user("alice")
    bob = make_user("bob")
    term_id, _ = make_term()

    parent = comment_service.add_comment(alice, term_id, "  Πολύ καλό  ")
    reply = comment_service.add_comment(bob, term_id, "Συμφωνώ", parent_id=parent["id"])

    assert parent["content"] == "Πολύ καλό"
    assert (parent["upvotes"], parent["downvotes"]) == (0, 0)
    assert reply["parent_id"] == parent["id"]

    thread = comment_service.get_comment_thread(term_id)
    assert thread["count"] == 2
    assert thread["comments"][0]["replies"][0]["id"] == reply["id"]


def test_add_comment_rejects_parent_from_other_term(make_user, make_term, make_comment):
    alice = make_user("alice")
    first_term, _ = make_term(term="μπρο", slug="1")
    second_term, _ = make_term(term="γαμάτο", slug="2")
    foreign_parent = make_comment(first_term, alice)

    with pytest.raises(InvalidArgument) as excinfo:
        comment_service.add_comment(alice, second_term, "reply", parent_id=foreign_parent)
    assert excinfo.value.error_type == "invalid_parent"


def test_add_comment_validation(make_user, make_term):
    alice = make_user("alice")
    term_id, _ = make_term()

    with pytest.raises(AuthenticationRequired):
        comment_service.add_comment(None, term_id, "hello")
    with pytest.raises(InvalidArgument):
        comment_service.add_comment(alice, term_id, "   ")
    with pytest.raises(InvalidArgument):
        comment_service.add_comment(alice, term_id, "x" * 5001)
    with pytest.raises(NotFound):
        comment_service.add_comment(alice, 404, "hello")
    with pytest.raises(InvalidArgument):
        comment_service.add_comment(alice, term_id, "hello", parent_id=12345)


def test_author_can_soft_delete(make_user, make_term, make_comment):
    alice = make_user("alice")
    bob = make_user("bob")
    term_id, _ = make_term()
    parent_id = make_comment(term_id, alice, content="parent")
    reply_id = make_comment(term_id, bob, content="reply", parent_id=parent_id)

    result = comment_service.soft_delete_comment(parent_id, AuthContext(user_id=alice))
    again = comment_service.soft_delete_comment(parent_id, AuthContext(user_id=alice))

    assert result["status"] == "deleted"
    assert again["status"] == "already_deleted"

    thread = comment_service.get_comment_thread(term_id)
    root = thread["comments"][0]
    assert root["id"] == parent_id
    assert root["is_deleted"] is True
    assert root["content"] is None
    assert root["replies"][0]["id"] == reply_id
    assert root["replies"][0]["content"] == "reply"


def test_moderator_can_delete_others_comment(make_user, make_term, make_comment):
    alice = make_user("alice")
    term_id, _ = make_term()
    comment_id = make_comment(term_id, alice)

    moderator = AuthContext(user_id="mod", role=UserRole.moderator)
    result = comment_service.soft_delete_comment(comment_id, moderator)
    assert result["status"] == "deleted"


def test_other_user_cannot_delete(make_user, make_term, make_comment):
    alice = make_user("alice")
    term_id, _ = make_term()
    comment_id = make_comment(term_id, alice)

    with pytest.raises(PermissionDenied) as excinfo:
        comment_service.soft_delete_comment(comment_id, AuthContext(user_id="bob"))
    assert excinfo.value.kind == "forbidden"
    with pytest.raises(AuthenticationRequired):
        comment_service.soft_delete_comment(comment_id, ANONYMOUS)
    with pytest.raises(NotFound):
        comment_service.soft_delete_comment(999, AuthContext(user_id="alice"))


def test_list_comments_requires_term(server_db):
    with pytest.raises(NotFound):
        comment_service.list_comments(1)
