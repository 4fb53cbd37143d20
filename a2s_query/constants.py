# a2s_query.constants

# Префикс любого одиночного пакета (-1 в little-endian)
PACKET_HEADER = b'\xFF\xFF\xFF\xFF'
# Префикс разбитого на части ответа (-2), не поддерживается
SPLIT_PACKET_HEADER = b'\xFE\xFF\xFF\xFF'

# Заголовки запросов
A2S_INFO_HEADER = 0x54
A2S_PLAYER_HEADER = 0x55
A2S_RULES_HEADER = 0x56
A2A_PING_HEADER = 0x69

# Хвост запроса A2S_INFO
A2S_INFO_PAYLOAD = b'Source Engine Query\x00'

# Типы ответов (байт по смещению 4)
RESPONSE_TYPE_OFFSET = 4
S2C_CHALLENGE = 0x41
S2A_INFO = 0x49
S2A_PLAYER = 0x44
S2A_RULES = 0x45
A2A_ACK = 0x6A
# Известные типы ответов: ответ из этого набора не на свой запрос пришёл от прошлого запроса
KNOWN_REPLY_TYPES = frozenset((S2A_INFO, S2A_PLAYER, S2A_RULES, A2A_ACK))

# Extra Data Flags
EDF_PORT = 0x80
EDF_STEAM_ID = 0x10
EDF_SPECTATOR = 0x40
EDF_KEYWORDS = 0x20
EDF_GAME_ID = 0x01

# Коды типа сервера и платформы
SERVER_TYPE_DEDICATED = 0x64  # 'd'
SERVER_TYPE_LISTEN = 0x6C  # 'l'
SERVER_TYPE_SOURCE_TV = 0x70  # 'p'
ENVIRONMENT_LINUX = 0x6C  # 'l'
ENVIRONMENT_WINDOWS = 0x77  # 'w'
ENVIRONMENT_MAC = 0x6D  # 'm'

DEFAULT_QUERY_PORT = 27015
DEFAULT_TIMEOUT = 5.0
