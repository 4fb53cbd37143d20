# fake_transport.py
"""Транспорт-заглушка для тестов: отдаёт заданные ответы и запоминает отправленное."""
import asyncio

from a2s_query.transport.udp_transport import Transport


class FakeTransport(Transport):

    def __init__(self, replies=()):
        self.replies = list(replies)
        self.sent = []
        self.peers = []
        self._arrived = None

    def deliver(self, reply):
        """Ответ, пришедший позже (например, уже после таймаута запроса)."""
        self.replies.append(reply)
        if self._arrived:
            self._arrived.set()

    async def send(self, data, host, port):
        self.sent.append((data, host, port))

    async def receive(self, peer=None):
        self.peers.append(peer)
        while not self.replies:
            # Сервер пока молчит
            self._arrived = asyncio.Event()
            await self._arrived.wait()
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply
