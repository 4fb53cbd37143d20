# a2s_query/codec/packet_codec.py
"""
Сборка запросов и разбор ответов протокола A2S. Чистые функции, без ввода-вывода.
"""
import struct

from a2s_query.codec.byte_reader import ByteReader
from a2s_query.constants import (
    PACKET_HEADER, SPLIT_PACKET_HEADER, RESPONSE_TYPE_OFFSET, S2A_INFO,
    EDF_PORT, EDF_STEAM_ID, EDF_SPECTATOR, EDF_KEYWORDS, EDF_GAME_ID,
)
from a2s_query.errors import MalformedResponse, ProtocolMismatch, UnsupportedDecoding
from a2s_query.models.types import RequestKind, ServerInfo, ServerType, Environment


def build_request(kind: RequestKind) -> bytes:
    """
    Формирует пакет запроса: FF FF FF FF + заголовок (+ хвост для A2S_INFO).
    """
    return PACKET_HEADER + struct.pack('B', kind.header) + kind.payload


def response_type(data: bytes) -> int:
    """Возвращает тип ответа (байт по смещению 4)."""
    if len(data) <= RESPONSE_TYPE_OFFSET:
        raise MalformedResponse(RESPONSE_TYPE_OFFSET, 1, f"Ответ слишком короткий: {len(data)} байт")
    return data[RESPONSE_TYPE_OFFSET]


def check_response_type(data: bytes, expected: int):
    """
    Проверяет тип ответа.
    :raises ProtocolMismatch: если тип не совпал или пришёл разбитый пакет.
    """
    actual = response_type(data)
    if data[:4] == SPLIT_PACKET_HEADER:
        raise ProtocolMismatch(expected, actual, "Разбитые на части ответы не поддерживаются")
    if data[:4] != PACKET_HEADER:
        raise ProtocolMismatch(expected, actual, f"Неизвестный префикс пакета: {data[:4].hex()}")
    if actual != expected:
        raise ProtocolMismatch(expected, actual)


def _read_port(reader, values):
    values['port'] = reader.read_u16_le()


def _read_steam_id(reader, values):
    values['steam_id'] = reader.read_u64_le()


def _read_spectator(reader, values):
    values['spectator_port'] = reader.read_u16_le()
    values['spectator_name'] = reader.read_cstring()


def _read_keywords(reader, values):
    values['keywords'] = reader.read_cstring()


def _read_game_id(reader, values):
    values['game_id'] = reader.read_u64_le()


# Порядок разбора необязательных полей фиксирован и не зависит от значения бита
EDF_FIELDS = (
    (EDF_PORT, _read_port),
    (EDF_STEAM_ID, _read_steam_id),
    (EDF_SPECTATOR, _read_spectator),
    (EDF_KEYWORDS, _read_keywords),
    (EDF_GAME_ID, _read_game_id),
)


def decode_info_response(data: bytes) -> ServerInfo:
    """
    Разбирает ответ A2S_INFO (тип 0x49).
    :param data: Полный пакет вместе с префиксом FF FF FF FF и байтом типа.
    :return: ServerInfo
    :raises MalformedResponse: если поле выходит за границы буфера.
    """
    reader = ByteReader(data, offset=RESPONSE_TYPE_OFFSET + 1)
    protocol = reader.read_u8()
    name = reader.read_cstring()
    map_name = reader.read_cstring()
    folder = reader.read_cstring()
    game = reader.read_cstring()
    app_id = reader.read_u16_le()
    players = reader.read_u8()
    max_players = reader.read_u8()
    bots = reader.read_u8()
    server_type = ServerType.from_byte(reader.read_u8())
    environment = Environment.from_byte(reader.read_u8())
    visibility = reader.read_u8() != 0
    vac = reader.read_u8() != 0
    version = reader.read_cstring()
    edf = reader.read_u8()

    optional = {}
    for bit, read_field in EDF_FIELDS:
        if edf & bit:
            read_field(reader, optional)

    return ServerInfo(
        protocol=protocol,
        name=name,
        map=map_name,
        folder=folder,
        game=game,
        app_id=app_id,
        players=players,
        max_players=max_players,
        bots=bots,
        server_type=server_type,
        environment=environment,
        visibility=visibility,
        vac=vac,
        version=version,
        edf=edf,
        **optional
    )


# Поля, обязательные при выставленном бите EDF
EDF_FIELD_NAMES = (
    (EDF_PORT, ('port',)),
    (EDF_STEAM_ID, ('steam_id',)),
    (EDF_SPECTATOR, ('spectator_port', 'spectator_name')),
    (EDF_KEYWORDS, ('keywords',)),
    (EDF_GAME_ID, ('game_id',)),
)


def _cstring(value):
    return value.encode('utf-8') + b'\x00'


def encode_info_response(info: ServerInfo) -> bytes:
    """
    Собирает пакет ответа A2S_INFO из ServerInfo. Необязательные поля пишутся
    по битам info.edf в том же порядке, в котором их читает decode_info_response.
    :raises ValueError: если бит EDF выставлен, а его поле не заполнено.
    """
    for bit, names in EDF_FIELD_NAMES:
        missing = [name for name in names if info.edf & bit and getattr(info, name) is None]
        if missing:
            raise ValueError(f"Бит EDF 0x{bit:02X} выставлен, но не заполнено поле: {', '.join(missing)}")

    response = (
            PACKET_HEADER +
            struct.pack('B', S2A_INFO) +
            struct.pack('B', info.protocol) +
            _cstring(info.name) +
            _cstring(info.map) +
            _cstring(info.folder) +
            _cstring(info.game) +
            struct.pack('<H', info.app_id) +
            struct.pack('BBB', info.players, info.max_players, info.bots) +
            struct.pack('B', info.server_type.to_byte()) +
            struct.pack('B', info.environment.to_byte()) +
            struct.pack('B', int(info.visibility)) +
            struct.pack('B', int(info.vac)) +
            _cstring(info.version) +
            struct.pack('B', info.edf)
    )
    if info.edf & EDF_PORT:
        response += struct.pack('<H', info.port)
    if info.edf & EDF_STEAM_ID:
        response += struct.pack('<Q', info.steam_id)
    if info.edf & EDF_SPECTATOR:
        response += struct.pack('<H', info.spectator_port) + _cstring(info.spectator_name)
    if info.edf & EDF_KEYWORDS:
        response += _cstring(info.keywords)
    if info.edf & EDF_GAME_ID:
        response += struct.pack('<Q', info.game_id)
    return response


def decode_response(kind: RequestKind, data: bytes):
    """
    Разбор ответа по типу запроса. Тела A2S_PLAYER и A2S_RULES (и ответ на пинг)
    не разбираются.
    """
    if kind is RequestKind.INFO:
        check_response_type(data, S2A_INFO)
        return decode_info_response(data)
    raise UnsupportedDecoding(kind)
