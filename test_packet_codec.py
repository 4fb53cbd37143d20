#!/usr/bin/env python3
"""
Тесты сборки запросов и разбора ответов A2S
"""
import struct

import pytest

from a2s_query.codec.byte_reader import ByteReader
from a2s_query.codec.packet_codec import (
    build_request, response_type, check_response_type, decode_info_response,
    encode_info_response, decode_response,
)
from a2s_query.errors import MalformedResponse, ProtocolMismatch, UnsupportedDecoding
from a2s_query.models.types import RequestKind, ServerInfo, ServerType, Environment

INFO_BODY = (
        b'\xFF\xFF\xFF\xFFI' +
        b'\x11' +  # Версия протокола (17)
        b'My Server\x00' +
        b'de_dust2\x00' +
        b'cstrike\x00' +
        b'Counter-Strike\x00' +
        struct.pack('<H', 240) +
        b'\x0c\x20\x02' +  # Игроки, максимум, боты
        b'd' +
        b'l' +
        b'\x00' +
        b'\x01' +
        b'1.0.0.70\x00'
)


def make_info(**overrides):
    values = dict(
        protocol=17, name="My Server", map="de_dust2", folder="cstrike", game="Counter-Strike",
        app_id=240, players=12, max_players=32, bots=2, server_type=ServerType.DEDICATED,
        environment=Environment.LINUX, visibility=False, vac=True, version="1.0.0.70", edf=0,
    )
    values.update(overrides)
    return ServerInfo(**values)


@pytest.mark.parametrize("kind", list(RequestKind))
def test_build_request_is_deterministic(kind):
    first = build_request(kind)
    assert first == build_request(kind)
    assert first.startswith(b'\xFF\xFF\xFF\xFF')
    assert first[4] == kind.header


def test_build_info_request_bytes():
    expected = bytes.fromhex(
        "FFFFFFFF54536F7572636520456E67696E6520517565727900"
    )
    assert build_request(RequestKind.INFO) == expected


def test_build_short_requests():
    assert build_request(RequestKind.PLAYER) == b'\xFF\xFF\xFF\xFF\x55'
    assert build_request(RequestKind.RULES) == b'\xFF\xFF\xFF\xFF\x56'
    assert build_request(RequestKind.PING) == b'\xFF\xFF\xFF\xFF\x69'


def test_decode_mandatory_fields():
    info = decode_info_response(INFO_BODY + b'\x00')
    assert info.protocol == 17
    assert info.name == "My Server"
    assert info.map == "de_dust2"
    assert info.folder == "cstrike"
    assert info.game == "Counter-Strike"
    assert info.app_id == 240
    assert (info.players, info.max_players, info.bots) == (12, 32, 2)
    assert info.server_type is ServerType.DEDICATED
    assert info.environment is Environment.LINUX
    assert info.visibility is False
    assert info.vac is True
    assert info.version == "1.0.0.70"
    assert info.edf == 0


def test_decode_port_only():
    info = decode_info_response(INFO_BODY + b'\x80' + struct.pack('<H', 27015))
    assert info.port == 27015
    assert info.steam_id is None
    assert info.spectator_port is None
    assert info.spectator_name is None
    assert info.keywords is None
    assert info.game_id is None
    assert set(info.to_dict()) >= {"port"}
    assert "steam_id" not in info.to_dict()


def test_decode_follows_fixed_field_order():
    # 0x91 = порт | Steam ID | Game ID: читаются порт, затем Steam ID, затем Game ID
    data = (INFO_BODY + b'\x91' +
            struct.pack('<H', 27015) +
            struct.pack('<Q', 90263762545778710) +
            struct.pack('<Q', 730))
    info = decode_info_response(data)
    assert info.port == 27015
    assert info.steam_id == 90263762545778710
    assert info.game_id == 730
    assert info.keywords is None


def test_decode_all_optional_fields():
    data = (INFO_BODY + b'\xF1' +
            struct.pack('<H', 27015) +
            struct.pack('<Q', 1) +
            struct.pack('<H', 27020) + b'SourceTV\x00' +
            b'secure,casual\x00' +
            struct.pack('<Q', 730))
    info = decode_info_response(data)
    assert info.spectator_port == 27020
    assert info.spectator_name == "SourceTV"
    assert info.keywords == "secure,casual"
    assert info.game_id == 730


def test_decode_unknown_type_codes_use_defaults():
    data = bytearray(INFO_BODY + b'\x00')
    type_offset = data.index(b'1.0.0.70') - 4
    data[type_offset] = 0x70
    data[type_offset + 1] = 0x6D
    info = decode_info_response(bytes(data))
    assert info.server_type is ServerType.SOURCE_TV
    assert info.environment is Environment.MAC


def test_decode_is_idempotent_and_round_trips():
    info = make_info(edf=0xB1, port=27015, steam_id=42, keywords="ctf", game_id=440,
                     server_type=ServerType.SOURCE_TV, environment=Environment.WINDOWS, visibility=True)
    data = encode_info_response(info)
    assert decode_info_response(data) == decode_info_response(data)
    assert decode_info_response(data) == info
    assert encode_info_response(decode_info_response(data)) == data


def test_truncated_string_is_malformed():
    with pytest.raises(MalformedResponse) as exc_info:
        decode_info_response(b'\xFF\xFF\xFF\xFFI\x11My Ser')
    assert exc_info.value.offset == 6


def test_truncated_optional_field_is_malformed():
    with pytest.raises(MalformedResponse) as exc_info:
        decode_info_response(INFO_BODY + b'\x80\x87')
    assert exc_info.value.width == 2


def test_missing_edf_byte_is_malformed():
    with pytest.raises(MalformedResponse):
        decode_info_response(INFO_BODY)


def test_short_buffer_has_no_response_type():
    with pytest.raises(MalformedResponse):
        response_type(b'\xFF\xFF\xFF\xFF')


def test_unknown_response_type_is_mismatch():
    with pytest.raises(ProtocolMismatch) as exc_info:
        check_response_type(b'\xFF\xFF\xFF\xFF\x99', 0x49)
    assert exc_info.value.actual == 0x99
    assert exc_info.value.expected == 0x49


def test_split_packet_is_mismatch():
    with pytest.raises(ProtocolMismatch):
        check_response_type(b'\xFE\xFF\xFF\xFFI\x00\x00\x00\x00', 0x49)


def test_decode_response_dispatch():
    assert decode_response(RequestKind.INFO, INFO_BODY + b'\x00').name == "My Server"
    with pytest.raises(ProtocolMismatch):
        decode_response(RequestKind.INFO, b'\xFF\xFF\xFF\xFF\x99')
    for kind in (RequestKind.PLAYER, RequestKind.RULES):
        with pytest.raises(UnsupportedDecoding) as exc_info:
            decode_response(kind, b'\xFF\xFF\xFF\xFFD\x00')
        assert exc_info.value.kind is kind


def test_byte_reader_bounds():
    reader = ByteReader(b'\x01\x02\x03')
    assert reader.read_u16_le() == 0x0201
    assert reader.remaining == 1
    with pytest.raises(MalformedResponse) as exc_info:
        reader.read_u64_le()
    assert (exc_info.value.offset, exc_info.value.width) == (2, 8)
    assert reader.read_u8() == 3
    assert reader.remaining == 0


@pytest.mark.parametrize("edf, missing", [
    (0x80, "port"),
    (0x10, "steam_id"),
    (0x40, "spectator_port, spectator_name"),
    (0x20, "keywords"),
    (0x01, "game_id"),
])
def test_encode_requires_flagged_fields(edf, missing):
    with pytest.raises(ValueError, match=missing):
        encode_info_response(make_info(edf=edf))


def test_invalid_utf8_is_replaced():
    data = INFO_BODY.replace(b'My Server', b'My \xff Server') + b'\x00'
    assert decode_info_response(data).name == "My \ufffd Server"
