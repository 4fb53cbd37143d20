# a2s_query/models/types.py
from dataclasses import dataclass, fields
from enum import Enum
from typing import Optional

from a2s_query.constants import (
    A2S_INFO_HEADER, A2S_PLAYER_HEADER, A2S_RULES_HEADER, A2A_PING_HEADER, A2S_INFO_PAYLOAD,
    S2A_INFO, S2A_PLAYER, S2A_RULES, A2A_ACK,
    SERVER_TYPE_DEDICATED, SERVER_TYPE_LISTEN, SERVER_TYPE_SOURCE_TV,
    ENVIRONMENT_LINUX, ENVIRONMENT_WINDOWS, ENVIRONMENT_MAC,
)


class RequestKind(Enum):
    """Тип запроса: (байт заголовка, хвост пакета, тип ответа)"""
    INFO = (A2S_INFO_HEADER, A2S_INFO_PAYLOAD, S2A_INFO)
    PLAYER = (A2S_PLAYER_HEADER, b'', S2A_PLAYER)
    RULES = (A2S_RULES_HEADER, b'', S2A_RULES)
    PING = (A2A_PING_HEADER, b'', A2A_ACK)

    @property
    def header(self) -> int:
        return self.value[0]

    @property
    def payload(self) -> bytes:
        return self.value[1]

    @property
    def reply_type(self) -> int:
        return self.value[2]


class ServerType(Enum):
    DEDICATED = "dedicated"
    LISTEN = "listen"
    SOURCE_TV = "SourceTV"

    @classmethod
    def from_byte(cls, value: int) -> "ServerType":
        # Всё нераспознанное считается SourceTV
        if value == SERVER_TYPE_DEDICATED:
            return cls.DEDICATED
        if value == SERVER_TYPE_LISTEN:
            return cls.LISTEN
        return cls.SOURCE_TV

    def to_byte(self) -> int:
        return {
            ServerType.DEDICATED: SERVER_TYPE_DEDICATED,
            ServerType.LISTEN: SERVER_TYPE_LISTEN,
            ServerType.SOURCE_TV: SERVER_TYPE_SOURCE_TV,
        }[self]


class Environment(Enum):
    LINUX = "linux"
    WINDOWS = "windows"
    MAC = "mac"

    @classmethod
    def from_byte(cls, value: int) -> "Environment":
        # Всё нераспознанное считается mac
        if value == ENVIRONMENT_LINUX:
            return cls.LINUX
        if value == ENVIRONMENT_WINDOWS:
            return cls.WINDOWS
        return cls.MAC

    def to_byte(self) -> int:
        return {
            Environment.LINUX: ENVIRONMENT_LINUX,
            Environment.WINDOWS: ENVIRONMENT_WINDOWS,
            Environment.MAC: ENVIRONMENT_MAC,
        }[self]


@dataclass(frozen=True)
class ServerInfo:
    """Разобранный ответ A2S_INFO. Необязательные поля равны None, если их бит EDF не выставлен."""
    protocol: int
    name: str
    map: str
    folder: str
    game: str
    app_id: int
    players: int
    max_players: int
    bots: int
    server_type: ServerType
    environment: Environment
    visibility: bool
    vac: bool
    version: str
    edf: int
    port: Optional[int] = None
    steam_id: Optional[int] = None
    spectator_port: Optional[int] = None
    spectator_name: Optional[str] = None
    keywords: Optional[str] = None
    game_id: Optional[int] = None

    def to_dict(self):
        """Словарь только с присутствующими полями"""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            result[f.name] = value
        return result
