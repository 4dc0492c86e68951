"""Tests for the privileged command handlers."""

import asyncio

import pytest

from debate_engine.database import DatabaseManager
from debate_engine.types import SuggestionState
from tests.fakes import ReplyRecorder
from web.auth_database import AuthDatabaseManager
from web.auth_utils import ModeratorIdentity
from web.event_router import PrivilegedEventRouter
from web.persistence import PersistenceGateway


def call(handler, ctx, payload=None) -> ReplyRecorder:
    reply = ReplyRecorder()
    asyncio.run(handler(ctx, payload, reply))
    return reply


def create_debate(router, ctx, title="T", description="D") -> int:
    return call(router.new_debate, ctx, {"title": title, "description": description}).value


def test_new_debate_is_listed_and_resolvable(router, alice, persistence) -> None:
    debate_id = create_debate(router, alice)

    assert isinstance(debate_id, int)
    assert persistence.saved == [debate_id]

    debates = call(router.get_debates, alice).value
    assert {"debateId": debate_id, "title": "T", "description": "D", "closed": False} in debates

    assert call(router.get_debate_questions, alice, debate_id).value == []
    assert call(router.get_debate_suggestions, alice, debate_id).value == []


def test_new_debate_ids_are_unique(router, alice, bob) -> None:
    ids = [create_debate(router, alice), create_debate(router, bob), create_debate(router, alice)]

    assert len(set(ids)) == 3


def test_new_debate_rejects_bad_payloads(router, alice, store) -> None:
    assert call(router.new_debate, alice, {"title": "T"}).value == -1
    assert call(router.new_debate, alice, {"title": 3, "description": "D"}).value == -1
    assert call(router.new_debate, alice, {"title": "x" * 21, "description": "D"}).value == -1
    assert call(router.new_debate, alice, "not an object").value == -1

    assert len(store.debates) == 0
    assert store.sessions.tracked("alice") == set()


def test_new_debate_survives_persistence_failure(router, alice, persistence, store) -> None:
    persistence.fail_saves = True

    debate_id = create_debate(router, alice)

    assert debate_id != -1
    debate = store.debates.lookup(debate_id)
    assert debate is not None
    assert debate.is_open
    assert debate_id in store.sessions.tracked("alice")


def test_new_debate_tolerates_close_during_persistence(router, alice, persistence, store) -> None:
    async def scenario():
        persistence.save_gate = asyncio.Event()
        create_reply = ReplyRecorder()
        creating = asyncio.create_task(
            router.new_debate(alice, {"title": "T", "description": "D"}, create_reply)
        )
        await asyncio.sleep(0)

        (debate_id,) = store.sessions.tracked("alice")
        debate = store.debates.lookup(debate_id)

        close_reply = ReplyRecorder()
        await router.close_debate(alice, debate_id, close_reply)

        persistence.save_gate.set()
        await creating
        return debate_id, debate, create_reply, close_reply

    debate_id, debate, create_reply, close_reply = asyncio.run(scenario())

    assert close_reply.value is True
    assert create_reply.value == debate_id
    assert not debate.is_open
    assert store.debates.lookup(debate_id) is None
    assert store.sessions.tracked("alice") == set()


def test_non_callable_reply_aborts_silently(router, alice, store) -> None:
    asyncio.run(router.new_debate(alice, {"title": "T", "description": "D"}, None))
    asyncio.run(router.get_debates(alice, None, "not a function"))

    assert len(store.debates) == 0


def test_close_debate_removes_from_both_registries(router, alice, store, persistence) -> None:
    debate_id = create_debate(router, alice)

    assert call(router.close_debate, alice, debate_id).value is True

    assert store.debates.lookup(debate_id) is None
    assert debate_id not in store.sessions.tracked("alice")
    assert persistence.ended == [debate_id]
    assert call(router.get_debate_questions, alice, debate_id).value == -1


def test_close_unknown_debate_replies_false(router, alice, persistence) -> None:
    assert call(router.close_debate, alice, 42).value is False
    assert call(router.close_debate, alice, {"debateId": 1}).value is False
    assert persistence.ended == []


def test_close_debate_replies_persistence_result(router, alice, persistence, store) -> None:
    first = create_debate(router, alice)
    second = create_debate(router, alice)

    persistence.end_result = False
    assert call(router.close_debate, alice, first).value is False

    persistence.fail_ends = True
    assert call(router.close_debate, alice, second).value is False

    # In-memory close is never rolled back
    assert len(store.debates) == 0


def test_close_by_other_moderator_untracks_creator(router, alice, bob, store) -> None:
    debate_id = create_debate(router, alice)

    assert call(router.close_debate, bob, debate_id).value is True

    assert debate_id not in store.sessions.tracked("alice")
    assert all(d["debateId"] != debate_id for d in call(router.get_debates, alice).value)


def test_new_question_scenario(router, alice) -> None:
    debate_id = create_debate(router, alice)

    question_id = call(
        router.new_question,
        alice,
        {"debateId": debate_id, "title": "Q", "answers": ["a", "b"], "isOpenQuestion": False},
    ).value

    assert isinstance(question_id, int)
    questions = call(router.get_debate_questions, alice, debate_id).value
    assert questions == [
        {"id": question_id, "title": "Q", "answers": ["a", "b"], "isOpenQuestion": False}
    ]


def test_open_question_drops_answers(router, alice) -> None:
    debate_id = create_debate(router, alice)

    call(
        router.new_question,
        alice,
        {"debateId": debate_id, "title": "Why?", "answers": ["a", 3, None], "isOpenQuestion": True},
    )

    (question,) = call(router.get_debate_questions, alice, debate_id).value
    assert question["answers"] == []
    assert question["isOpenQuestion"] is True


@pytest.mark.parametrize(
    "payload",
    [
        {"debateId": "0", "title": "Q", "answers": []},
        {"debateId": 0, "title": 5, "answers": []},
        {"debateId": 0, "title": "Q", "answers": "a,b"},
        {"debateId": 0, "title": "Q", "answers": ["a", "b", "c", "d"]},
        {"debateId": 0, "title": "Q"},
        None,
    ],
)
def test_new_question_invalid_payloads(router, alice, payload) -> None:
    create_debate(router, alice)

    assert call(router.new_question, alice, payload).value == -1


def test_new_question_unknown_debate(router, alice) -> None:
    reply = call(router.new_question, alice, {"debateId": 99, "title": "Q", "answers": []})

    assert reply.value == -1


def test_read_commands_reject_non_integer_ids(router, alice) -> None:
    debate_id = create_debate(router, alice)

    assert call(router.get_debate_questions, alice, str(debate_id)).value == -1
    assert call(router.get_debate_suggestions, alice, True).value == -1
    assert call(router.get_debate_suggestions, alice, 1234).value == -1


def test_suggestion_approval_flow(router, alice, store) -> None:
    debate_id = create_debate(router, alice)
    debate = store.debates.lookup(debate_id)
    first = debate.question_suggestion.submit("Is this fair?")
    second = debate.question_suggestion.submit("What about costs?")

    decision = {"suggestionId": first.id, "debateId": debate_id}
    assert call(router.approve_question, alice, decision).value is True
    assert call(router.approve_question, alice, decision).value is False
    assert call(router.reject_question, alice, decision).value is False

    assert call(router.reject_question, alice, {"suggestionId": second.id, "debateId": debate_id}).value is True
    assert second.state is SuggestionState.REJECTED

    assert call(router.get_debate_suggestions, alice, debate_id).value == [
        {"id": first.id, "suggestion": "Is this fair?"}
    ]


def test_approve_unknown_suggestion(router, alice) -> None:
    debate_id = create_debate(router, alice)

    reply = call(router.approve_question, alice, {"suggestionId": 999, "debateId": debate_id})

    assert reply.value is False


def test_suggestion_commands_failures(router, alice) -> None:
    debate_id = create_debate(router, alice)

    assert call(router.approve_question, alice, {"suggestionId": 0, "debateId": 77}).value is False
    assert call(router.reject_question, alice, {"suggestionId": "0", "debateId": debate_id}).value is False
    assert call(router.reject_question, alice, None).value is False


def test_ban_user(router, alice) -> None:
    debate_id = create_debate(router, alice)

    assert call(router.ban_user, alice, {"uuid": "u-1", "debateId": debate_id}).value is True
    assert call(router.ban_user, alice, {"uuid": "u-1", "debateId": debate_id + 1}).value is False
    assert call(router.ban_user, alice, {"uuid": 5, "debateId": debate_id}).value is False


def test_get_debates_merges_stored_discussions(router, alice, persistence) -> None:
    debate_id = create_debate(router, alice, title="Live")
    persistence.discussions["alice"] = [
        {"id": debate_id, "title": "Live", "description": "D", "finish_time": None},
        {"id": 500, "title": "Old", "description": "Done", "finish_time": "2026-01-01T10:00:00"},
    ]

    debates = call(router.get_debates, alice).value

    assert debates == [
        {"debateId": debate_id, "title": "Live", "description": "D", "closed": False},
        {"debateId": 500, "title": "Old", "description": "Done", "closed": True},
    ]


def test_moderator_reconnect_keeps_tracked_debates(router, alice, store) -> None:
    debate_id = create_debate(router, alice)

    new_connection = object()
    reconnected = router.attach(alice.identity, new_connection, "socket-alice-2")

    assert store.sessions.get("alice").connection is new_connection
    assert store.sessions.tracked("alice") == {debate_id}
    assert [d["debateId"] for d in call(router.get_debates, reconnected).value] == [debate_id]


def test_dispatch_unknown_event(router, alice) -> None:
    reply = ReplyRecorder()

    assert asyncio.run(router.dispatch(alice, "dropTables", None, reply)) is False
    assert reply.values == []


def test_dispatch_routes_by_event_name(router, alice) -> None:
    reply = ReplyRecorder()

    assert asyncio.run(router.dispatch(alice, "newDebate", {"title": "T", "description": "D"}, reply)) is True
    assert isinstance(reply.value, int)


def test_dispatch_replies_sentinel_when_handler_fails(router, alice) -> None:
    async def broken(ctx, payload, reply):
        raise RuntimeError("boom")

    router.handlers["closeDebate"] = broken
    router.handlers["newQuestion"] = broken
    close_reply = ReplyRecorder()
    question_reply = ReplyRecorder()

    asyncio.run(router.dispatch(alice, "closeDebate", 1, close_reply))
    asyncio.run(router.dispatch(alice, "newQuestion", {}, question_reply))

    assert close_reply.value is False
    assert question_reply.value == -1


def test_dispatch_never_replies_twice(router, alice) -> None:
    async def replies_then_fails(ctx, payload, reply):
        await reply(7)
        raise RuntimeError("boom")

    router.handlers["newDebate"] = replies_then_fails
    reply = ReplyRecorder()

    asyncio.run(router.dispatch(alice, "newDebate", None, reply))

    assert reply.value == 7


def test_debates_carry_suggestion_limit(router, alice, store, limits) -> None:
    debate = store.debates.lookup(create_debate(router, alice))

    assert debate.question_suggestion.max_length == limits.max_suggestion_length

    with pytest.raises(ValueError):
        debate.question_suggestion.submit("x" * (limits.max_suggestion_length + 1))


class HeldSaveGateway(PersistenceGateway):
    """Gateway whose discussion inserts wait until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.release = asyncio.Event()

    async def save_discussion(self, debate) -> bool:
        await self.release.wait()
        return await super().save_discussion(debate)


def test_close_during_save_is_stored_as_closed(tmp_path, store, hub, limits) -> None:
    db_path = tmp_path / "moderation.db"
    discussions = DatabaseManager(db_path)
    gateway = HeldSaveGateway(discussions, AuthDatabaseManager(db_path), timeout=2.0)
    db_router = PrivilegedEventRouter(store, gateway, hub, limits)
    ctx = db_router.attach(ModeratorIdentity("alice", 1), object(), "socket-alice")

    async def scenario():
        create_reply = ReplyRecorder()
        creating = asyncio.create_task(
            db_router.new_debate(ctx, {"title": "T", "description": "D"}, create_reply)
        )
        await asyncio.sleep(0)

        (debate_id,) = store.sessions.tracked("alice")
        close_reply = ReplyRecorder()
        await db_router.close_debate(ctx, debate_id, close_reply)

        gateway.release.set()
        await creating

        listing = ReplyRecorder()
        await db_router.get_debates(ctx, None, listing)
        return debate_id, create_reply, close_reply, listing

    debate_id, create_reply, close_reply, listing = asyncio.run(scenario())

    assert create_reply.value == debate_id
    # Nothing was stored yet when the close marker ran
    assert close_reply.value is False
    assert listing.value == [{"debateId": debate_id, "title": "T", "description": "D", "closed": True}]
    (row,) = discussions.get_discussions_admin("alice")
    assert row["finish_time"] is not None
