# a2s_query/transport/udp_transport.py
import asyncio
import socket
from abc import ABC, abstractmethod
from enum import Enum

import asyncio_dgram

from a2s_query.errors import TransportFailure, QueryCancelled
from a2s_query.logger import LoggerMixin


class Transport(ABC):
    """
    Контракт транспорта, с которым работает ядро запросов:
    одна попытка отправки на host:port и приём датаграмм по одной в порядке прихода.
    """

    @abstractmethod
    async def send(self, data: bytes, host: str, port: int):
        """:raises TransportFailure: если отправка не удалась."""

    @abstractmethod
    async def receive(self, peer=None) -> bytes:
        """
        :param peer: (host, port) сервера; датаграммы с других адресов отбрасываются.
        :raises TransportFailure: если приём не удался или транспорт закрыт.
        """

    async def discard_stale(self) -> int:
        """Выбрасывает уже пришедшие, но не прочитанные датаграммы. Возвращает их количество."""
        return 0


class TransportState(Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    CLOSED = "closed"


class UdpTransport(LoggerMixin, Transport):
    """
    UDP-транспорт поверх asyncio_dgram. Одновременно ждать ответа может только
    один потребитель; close() снимает ожидание и завершает его QueryCancelled.
    """

    def __init__(self, bind_host="0.0.0.0", bind_port=0, logger=None):
        super().__init__(logger=logger)
        self.bind_host = bind_host
        self.bind_port = bind_port
        self.state = TransportState.UNBOUND
        self._stream = None
        self._pending = None
        self._receiving = False
        self._peers = {}

    async def open(self):
        if self.state is not TransportState.UNBOUND:
            raise TransportFailure(f"Транспорт нельзя открыть в состоянии {self.state.value}")
        try:
            self._stream = await asyncio_dgram.bind((self.bind_host, self.bind_port))
        except OSError as e:
            raise TransportFailure(f"Не удалось занять {self.bind_host}:{self.bind_port}: {e}") from e
        self.state = TransportState.BOUND
        self.logger.debug(f"Транспорт слушает на {self.sockname}")
        return self

    @property
    def sockname(self):
        return self._stream.sockname if self._stream else None

    def _ensure_bound(self):
        if self.state is not TransportState.BOUND:
            raise TransportFailure(f"Транспорт в состоянии {self.state.value}, обмен невозможен")

    def _ensure_idle(self):
        if self._receiving:
            raise TransportFailure("Ответа уже ждёт другой запрос на этом транспорте")

    async def _resolve(self, host, port):
        """Все адреса (ip, port), с которых может ответить host:port."""
        key = (host, port)
        if key not in self._peers:
            loop = asyncio.get_running_loop()
            try:
                infos = await loop.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
            except OSError as e:
                raise TransportFailure(f"Не удалось определить адрес {host}:{port}: {e}") from e
            self._peers[key] = {(info[4][0], info[4][1]) for info in infos}
        return self._peers[key]

    async def send(self, data, host, port):
        self._ensure_bound()
        try:
            await self._stream.send(data, (host, port))
        except (OSError, asyncio_dgram.TransportClosed) as e:
            raise TransportFailure(f"Ошибка отправки на {host}:{port}: {e}") from e
        self.logger.debug(f"Отправлено на {host}:{port}: {data}")

    async def _recv_datagram(self):
        if self.state is TransportState.CLOSED:
            raise QueryCancelled("Транспорт закрыт во время ожидания ответа")
        self._pending = asyncio.ensure_future(self._stream.recv())
        try:
            return await self._pending
        except asyncio.CancelledError:
            # Ожидание снял close(), а не отмена вызывающей задачи
            if self.state is TransportState.CLOSED and not _current_task_cancelling():
                raise QueryCancelled("Транспорт закрыт во время ожидания ответа")
            raise
        except (OSError, asyncio_dgram.TransportClosed) as e:
            if self.state is TransportState.CLOSED:
                raise QueryCancelled("Транспорт закрыт во время ожидания ответа") from e
            raise TransportFailure(f"Ошибка приёма: {e}") from e
        finally:
            self._pending = None

    async def receive(self, peer=None):
        self._ensure_bound()
        self._ensure_idle()
        self._receiving = True
        try:
            allowed = await self._resolve(*peer) if peer else None
            while True:
                data, addr = await self._recv_datagram()
                if allowed is None or (addr[0], addr[1]) in allowed:
                    self.logger.debug(f"Получено от {addr[0]}:{addr[1]}: {data}")
                    return data
                self.logger.warning(
                    f"Отброшена датаграмма от {addr[0]}:{addr[1]}, ожидался ответ от {peer[0]}:{peer[1]}")
        finally:
            self._receiving = False

    async def discard_stale(self):
        """
        Выбрасывает датаграммы, которые уже лежат в очереди: ответы на прошлые
        запросы, пришедшие после их таймаута. Вызывается перед новым запросом.
        """
        self._ensure_bound()
        self._ensure_idle()
        self._receiving = True
        try:
            return await self._drain()
        finally:
            self._receiving = False

    async def _drain(self):
        dropped = 0
        while True:
            self._pending = reader = asyncio.ensure_future(self._stream.recv())
            try:
                # Из непустой очереди recv() отдаёт датаграмму без ожидания
                await asyncio.sleep(0)
                if self.state is TransportState.CLOSED:
                    raise QueryCancelled("Транспорт закрыт во время очистки очереди")
                if not reader.done():
                    reader.cancel()
                    await asyncio.gather(reader, return_exceptions=True)
                    return dropped
                data, addr = reader.result()
            except OSError as e:
                # Ошибка (например ICMP port unreachable) относится к прошлому запросу
                self.logger.debug(f"Отброшена ошибка приёма прошлого запроса: {e}")
                continue
            except asyncio_dgram.TransportClosed as e:
                raise QueryCancelled("Транспорт закрыт во время очистки очереди") from e
            finally:
                if not reader.done():
                    reader.cancel()
                self._pending = None
            dropped += 1
            self.logger.debug(f"Отброшен запоздавший ответ от {addr[0]}:{addr[1]}: {data}")

    def close(self):
        if self.state is TransportState.CLOSED:
            return
        self.state = TransportState.CLOSED
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        if self._stream:
            self._stream.close()
            self.logger.debug("Соединение asyncio_dgram закрыто.")

    async def __aenter__(self):
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb):
        self.close()


def _current_task_cancelling():
    task = asyncio.current_task()
    return bool(task and task.cancelling())
