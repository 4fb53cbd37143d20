#!/usr/bin/env python3
"""
Тесты обмена с challenge
"""
import asyncio

import pytest

from a2s_query.codec.packet_codec import build_request
from a2s_query.errors import ProtocolMismatch, MalformedResponse, TransportFailure
from a2s_query.models.types import RequestKind
from a2s_query.query_client.challenge_negotiator import ChallengeNegotiator, NegotiationState
from fake_transport import FakeTransport

TOKEN = b'\x4b\xa1\x02\x9c'
CHALLENGE = b'\xFF\xFF\xFF\xFFA' + TOKEN
FINAL = b'\xFF\xFF\xFF\xFFD\x00'


def test_reply_without_challenge_is_final():
    transport = FakeTransport([FINAL])
    negotiator = ChallengeNegotiator(transport, "127.0.0.1", 27015)
    request = build_request(RequestKind.PLAYER)

    result = asyncio.run(negotiator.negotiate(request))

    assert result == FINAL
    assert transport.sent == [(request, "127.0.0.1", 27015)]
    assert negotiator.state is NegotiationState.DONE


def test_challenge_is_resent_with_token():
    transport = FakeTransport([CHALLENGE, FINAL])
    negotiator = ChallengeNegotiator(transport, "10.0.0.5", 27016)
    request = build_request(RequestKind.INFO)

    result = asyncio.run(negotiator.negotiate(request))

    assert result == FINAL
    assert len(transport.sent) == 2
    assert transport.sent[0][0] == request
    assert transport.sent[1][0] == request + TOKEN
    assert transport.sent[1][1:] == ("10.0.0.5", 27016)


def test_second_challenge_is_mismatch():
    transport = FakeTransport([CHALLENGE, CHALLENGE])
    negotiator = ChallengeNegotiator(transport, "127.0.0.1", 27015)

    with pytest.raises(ProtocolMismatch):
        asyncio.run(negotiator.negotiate(build_request(RequestKind.RULES)))
    assert len(transport.sent) == 2
    assert negotiator.state is NegotiationState.AWAITING_FINAL_REPLY


def test_short_first_reply_is_malformed():
    transport = FakeTransport([b'\xFF\xFF'])
    negotiator = ChallengeNegotiator(transport, "127.0.0.1", 27015)

    with pytest.raises(MalformedResponse):
        asyncio.run(negotiator.negotiate(build_request(RequestKind.PING)))


def test_transport_failure_propagates():
    failure = TransportFailure("сеть недоступна")
    transport = FakeTransport([failure])
    negotiator = ChallengeNegotiator(transport, "127.0.0.1", 27015)

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(negotiator.negotiate(build_request(RequestKind.INFO)))
    assert exc_info.value is failure


def test_reply_to_other_request_is_skipped():
    stale_info = b'\xFF\xFF\xFF\xFFI\x11'
    ping_reply = b'\xFF\xFF\xFF\xFFj'
    transport = FakeTransport([stale_info, ping_reply])
    negotiator = ChallengeNegotiator(transport, "127.0.0.1", 27015)

    result = asyncio.run(negotiator.negotiate(build_request(RequestKind.PING), RequestKind.PING.reply_type))

    assert result == ping_reply
    assert transport.peers == [("127.0.0.1", 27015), ("127.0.0.1", 27015)]


def test_unknown_reply_type_is_returned_for_checking():
    unknown = b'\xFF\xFF\xFF\xFF\x99'
    transport = FakeTransport([unknown])
    negotiator = ChallengeNegotiator(transport, "127.0.0.1", 27015)

    result = asyncio.run(negotiator.negotiate(build_request(RequestKind.INFO), RequestKind.INFO.reply_type))

    assert result == unknown
