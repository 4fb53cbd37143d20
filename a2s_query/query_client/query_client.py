# a2s_query/query_client/query_client.py
import asyncio

from a2s_query.codec.packet_codec import build_request, check_response_type, decode_info_response, decode_response
from a2s_query.config import Config
from a2s_query.constants import S2A_INFO, A2A_ACK, DEFAULT_QUERY_PORT, DEFAULT_TIMEOUT
from a2s_query.errors import QueryError, QueryTimeout
from a2s_query.logger import LoggerMixin
from a2s_query.models.types import RequestKind, ServerInfo
from a2s_query.query_client.challenge_negotiator import ChallengeNegotiator

# Значение по умолчанию для timeout: взять из конфига
_CONFIG_TIMEOUT = object()


class QueryClient(LoggerMixin):
    """
    Клиент запросов A2S к одному серверу.
    Запросы на одном клиенте выполняются строго по очереди: транспорт отдаёт
    датаграмму одному ожидающему, поэтому для параллельных запросов нужны
    разные транспорты.
    """

    def __init__(self, transport, host, port=DEFAULT_QUERY_PORT, config=None, logger=None):
        """
        :param transport: Транспорт с методами send(data, host, port) и receive().
        :param host: Адрес сервера.
        :param port: Query-порт сервера.
        :param config: Экземпляр Config (берётся QUERY.TIMEOUT).
        """
        super().__init__(logger=logger)
        self.transport = transport
        self.host = host
        self.port = port
        self.timeout = config.query_timeout if config else DEFAULT_TIMEOUT
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, transport, server_id, config=None, logger=None):
        """Создаёт клиент для сервера из секции SERVERS конфига."""
        config = config or Config()
        server_config = config.get_server(server_id)
        if not server_config:
            raise ValueError(f"Конфигурация для сервера с ID {server_id} не найдена в конфиге.")
        return cls(transport, server_config.get("HOST", "127.0.0.1"),
                   server_config.get("PORT", DEFAULT_QUERY_PORT), config=config, logger=logger)

    async def _exchange(self, kind, timeout):
        if timeout is _CONFIG_TIMEOUT:
            timeout = self.timeout
        request = build_request(kind)
        negotiator = ChallengeNegotiator(self.transport, self.host, self.port, logger=self.logger)
        async with self._lock:
            try:
                return await asyncio.wait_for(negotiator.negotiate(request, kind.reply_type), timeout)
            except asyncio.TimeoutError:
                raise QueryTimeout(f"{self.host}:{self.port}: нет ответа на {kind.name} за {timeout} с")

    async def fetch_raw(self, kind: RequestKind, timeout=_CONFIG_TIMEOUT) -> bytes:
        """
        Отправляет запрос любого типа и возвращает ответ без разбора.
        Для A2S_PLAYER и A2S_RULES это единственный поддерживаемый способ.
        """
        self.logger.info(f"Запрос {kind.name} к {self.host}:{self.port}")
        try:
            return await self._exchange(kind, timeout)
        except QueryError as e:
            self.logger.warning(f"Запрос {kind.name} к {self.host}:{self.port} не удался: {e}")
            raise

    async def fetch_info(self, timeout=_CONFIG_TIMEOUT) -> ServerInfo:
        """Запрашивает A2S_INFO и возвращает разобранный ServerInfo."""
        payload = await self.fetch_raw(RequestKind.INFO, timeout)
        try:
            check_response_type(payload, S2A_INFO)
            info = decode_info_response(payload)
        except QueryError as e:
            self.logger.warning(f"Ответ A2S_INFO от {self.host}:{self.port} не разобран: {e}")
            raise
        self.logger.debug(f"{self.host}:{self.port}: {info}")
        return info

    async def ping(self, timeout=_CONFIG_TIMEOUT) -> float:
        """A2A_PING: возвращает время ответа сервера в секундах."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        payload = await self.fetch_raw(RequestKind.PING, timeout)
        elapsed = loop.time() - started
        check_response_type(payload, A2A_ACK)
        return elapsed

    @staticmethod
    def decode(kind: RequestKind, payload: bytes):
        """Разбор ответа, полученного через fetch_raw()."""
        return decode_response(kind, payload)
