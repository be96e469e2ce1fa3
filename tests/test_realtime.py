import asyncio
import time

import anyio
import pytest
from starlette.websockets import WebSocketDisconnect

from career_connect.api.routes import realtime_routes
from career_connect.schemas.schemas import MAX_MESSAGE_LENGTH
from career_connect.services.conversation_service import ConversationService
from career_connect.services.message_service import MessageService
from career_connect.services.realtime import (
    MESSAGE_CREATED, REQUEST_CREATED, RealtimeBroker, conversation_topic, get_broker, interview_topic
)


# ============================================================
# BROKER
# ============================================================

@pytest.mark.anyio
async def test_events_arrive_in_publish_order():
    broker = RealtimeBroker()
    subscription = broker.subscribe("conversation:1")

    for i in range(5):
        assert broker.publish("conversation:1", MESSAGE_CREATED, {"n": i}) == 1

    with anyio.fail_after(1):
        received = [await subscription.next_event() for _ in range(5)]

    assert [e.payload["n"] for e in received] == [0, 1, 2, 3, 4]
    assert {e.type for e in received} == {MESSAGE_CREATED}
    assert {e.topic for e in received} == {"conversation:1"}


@pytest.mark.anyio
async def test_topics_are_isolated():
    broker = RealtimeBroker()
    first = broker.subscribe("conversation:1")
    second = broker.subscribe("conversation:2")

    broker.publish("conversation:2", MESSAGE_CREATED, {"n": 2})

    with anyio.fail_after(1):
        event = await second.next_event()
    assert event.payload == {"n": 2}
    assert first._queue.empty()


@pytest.mark.anyio
async def test_every_subscriber_of_a_topic_receives_the_event():
    broker = RealtimeBroker()
    a = broker.subscribe("interview_requests:7")
    b = broker.subscribe("interview_requests:7")

    assert broker.publish("interview_requests:7", REQUEST_CREATED, {"id": 1}) == 2

    with anyio.fail_after(1):
        assert (await a.next_event()).payload == {"id": 1}
        assert (await b.next_event()).payload == {"id": 1}


@pytest.mark.anyio
async def test_close_stops_delivery_immediately():
    broker = RealtimeBroker()
    subscription = broker.subscribe("conversation:1")
    broker.publish("conversation:1", MESSAGE_CREATED, {"n": 1})

    subscription.close()

    assert await subscription.next_event() is None
    assert broker.publish("conversation:1", MESSAGE_CREATED, {"n": 2}) == 0
    assert broker.subscriber_count("conversation:1") == 0


@pytest.mark.anyio
async def test_close_wakes_a_waiting_consumer():
    broker = RealtimeBroker()
    subscription = broker.subscribe("conversation:1")
    waiter = asyncio.ensure_future(subscription.next_event())
    await asyncio.sleep(0)

    subscription.close()

    assert await asyncio.wait_for(waiter, 1) is None


@pytest.mark.anyio
async def test_async_iteration_ends_on_close():
    broker = RealtimeBroker()
    subscription = broker.subscribe("conversation:1")
    broker.publish("conversation:1", MESSAGE_CREATED, {"n": 1})

    received = []
    with anyio.fail_after(1):
        async for event in subscription:
            received.append(event.payload["n"])
            subscription.close()

    assert received == [1]


@pytest.mark.anyio
async def test_publish_from_another_thread():
    broker = RealtimeBroker()
    subscription = broker.subscribe("conversation:3")

    delivered = await anyio.to_thread.run_sync(
        broker.publish, "conversation:3", MESSAGE_CREATED, {"from": "worker"}
    )

    assert delivered == 1
    with anyio.fail_after(1):
        event = await subscription.next_event()
    assert event.payload == {"from": "worker"}


@pytest.mark.anyio
async def test_appended_message_is_published_after_commit(student, job_giver):
    broker = RealtimeBroker()
    conversation_id, _ = ConversationService().find_or_create(student.participant, job_giver.id)
    subscription = broker.subscribe(conversation_topic(conversation_id))

    message = MessageService(broker=broker).append(conversation_id, student.participant, "live")

    with anyio.fail_after(1):
        event = await subscription.next_event()
    assert event.type == MESSAGE_CREATED
    assert event.payload["id"] == message.id
    assert event.payload["content"] == "live"
    assert event.payload["sender_id"] == student.id


# ============================================================
# WEBSOCKETS
# ============================================================

def _open_conversation(client, student, job_giver) -> int:
    return client.post(
        "/api/conversations", json={"participant_id": job_giver.id}, headers=student.headers
    ).json()["conversation_id"]


def _wait_for_no_subscribers(topic: str, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if get_broker().subscriber_count(topic) == 0:
            return True
        time.sleep(0.01)
    return False


def test_socket_receives_messages_posted_over_http(client, student, job_giver):
    conversation_id = _open_conversation(client, student, job_giver)

    with client.websocket_connect(f"/api/ws/conversations/{conversation_id}?token={job_giver.token}") as ws:
        client.post(
            f"/api/conversations/{conversation_id}/messages", json={"content": "one"}, headers=student.headers
        )
        client.post(
            f"/api/conversations/{conversation_id}/messages", json={"content": "two"}, headers=student.headers
        )
        first = ws.receive_json()
        second = ws.receive_json()

    assert first["type"] == "message.created"
    assert first["topic"] == f"conversation:{conversation_id}"
    assert [first["payload"]["content"], second["payload"]["content"]] == ["one", "two"]
    assert _wait_for_no_subscribers(conversation_topic(conversation_id))


def test_text_frames_are_appended_as_messages(client, student, job_giver):
    conversation_id = _open_conversation(client, student, job_giver)

    with client.websocket_connect(f"/api/ws/conversations/{conversation_id}?token={student.token}") as ws:
        ws.send_text("sent over the socket")
        echoed = ws.receive_json()

        ws.send_text("   ")
        error = ws.receive_json()

    assert echoed["payload"]["content"] == "sent over the socket"
    assert echoed["payload"]["sender_id"] == student.id
    assert error["type"] == "error"
    assert error["error"] == "invalid_request"

    history = client.get(f"/api/conversations/{conversation_id}/messages", headers=job_giver.headers).json()
    assert [m["content"] for m in history] == ["sent over the socket"]


def test_socket_with_bad_token_is_refused(client, student, job_giver):
    conversation_id = _open_conversation(client, student, job_giver)

    with pytest.raises(WebSocketDisconnect) as refused:
        with client.websocket_connect(f"/api/ws/conversations/{conversation_id}?token=garbage"):
            pass
    assert refused.value.code == 1008

    with pytest.raises(WebSocketDisconnect) as refused:
        with client.websocket_connect(f"/api/ws/conversations/{conversation_id}"):
            pass
    assert refused.value.code == 1008


def test_socket_refuses_non_participants(client, make_participant, student, job_giver):
    outsider = make_participant("Otto Outsider", "student")
    conversation_id = _open_conversation(client, student, job_giver)

    for path in (f"/api/ws/conversations/{conversation_id}", "/api/ws/conversations/424242"):
        with pytest.raises(WebSocketDisconnect) as refused:
            with client.websocket_connect(f"{path}?token={outsider.token}"):
                pass
        assert refused.value.code == 1008

    assert get_broker().subscriber_count(conversation_topic(conversation_id)) == 0


def test_interview_request_socket_receives_created_event(client, student, job_giver):
    with client.websocket_connect(f"/api/ws/interview-requests?token={student.token}") as ws:
        created = client.post(
            "/api/interview-requests",
            json={"student_id": student.id, "message": "Would you like to interview?"},
            headers=job_giver.headers,
        ).json()
        event = ws.receive_json()

    assert event["type"] == "interview_request.created"
    assert event["topic"] == f"interview_requests:{student.id}"
    assert event["payload"]["id"] == created["id"]
    assert event["payload"]["status"] == "pending"
    assert event["payload"]["actions"] == ["accept", "reject"]
    assert _wait_for_no_subscribers(interview_topic(student.id))


def test_interview_request_socket_receives_updates(client, student, job_giver):
    request_id = client.post(
        "/api/interview-requests",
        json={"student_id": student.id, "message": "Interview next week?"},
        headers=job_giver.headers,
    ).json()["id"]

    with client.websocket_connect(f"/api/ws/interview-requests?token={job_giver.token}") as ws:
        client.put(
            f"/api/interview-requests/{request_id}/status", json={"status": "accepted"}, headers=student.headers
        )
        event = ws.receive_json()

    assert event["type"] == "interview_request.updated"
    assert event["payload"]["status"] == "accepted"
    assert event["payload"]["actions"] == []


def test_oversized_text_frame_is_rejected(client, student, job_giver):
    conversation_id = _open_conversation(client, student, job_giver)

    with client.websocket_connect(f"/api/ws/conversations/{conversation_id}?token={student.token}") as ws:
        ws.send_text("x" * (MAX_MESSAGE_LENGTH + 1))
        error = ws.receive_json()

    assert error["type"] == "error"
    assert error["error"] == "invalid_request"
    assert client.get(f"/api/conversations/{conversation_id}/messages", headers=student.headers).json() == []


class _DisconnectingSocket:
    """Accepts, then reports the client gone on the first receive."""

    async def accept(self):
        pass

    async def receive_text(self):
        for _ in range(3):
            await asyncio.sleep(0)
        raise WebSocketDisconnect(1000)


@pytest.mark.anyio
async def test_forwarder_is_finished_when_socket_handler_returns(monkeypatch, student):
    forwarders = []

    async def forward(websocket, subscription):
        forwarders.append(asyncio.current_task())
        await asyncio.sleep(3600)

    monkeypatch.setattr(realtime_routes, "_forward", forward)

    await realtime_routes._serve(_DisconnectingSocket(), student.participant, "conversation:99")

    assert len(forwarders) == 1
    assert forwarders[0].done() and forwarders[0].cancelled()
    assert get_broker().subscriber_count("conversation:99") == 0
