# a2s_query/query_client/challenge_negotiator.py
from enum import Enum

from a2s_query.codec.packet_codec import response_type
from a2s_query.constants import S2C_CHALLENGE, RESPONSE_TYPE_OFFSET, KNOWN_REPLY_TYPES
from a2s_query.errors import ProtocolMismatch
from a2s_query.logger import LoggerMixin


class NegotiationState(Enum):
    AWAITING_FIRST_REPLY = "awaiting_first_reply"
    AWAITING_FINAL_REPLY = "awaiting_final_reply"
    DONE = "done"


class ChallengeNegotiator(LoggerMixin):
    """
    Отправляет запрос и, если сервер ответил challenge (0x41), повторяет его
    с токеном из ответа. Поддерживается ровно один круг challenge.
    """

    def __init__(self, transport, host, port, logger=None):
        super().__init__(logger=logger)
        self.transport = transport
        self.host = host
        self.port = port
        self.state = None

    def _set_state(self, state):
        self.state = state
        self.logger.debug(f"{self.host}:{self.port}: {state.value}")

    async def _receive(self, reply_type):
        """
        Ждёт ответ сервера. Если известен тип ответа на наш запрос, ответы
        другого известного типа (на прошлые запросы) пропускаются.
        """
        while True:
            reply = await self.transport.receive(peer=(self.host, self.port))
            actual = response_type(reply)
            if reply_type is None or actual in (reply_type, S2C_CHALLENGE) or actual not in KNOWN_REPLY_TYPES:
                return reply
            self.logger.warning(
                f"{self.host}:{self.port}: пропущен запоздавший ответ типа 0x{actual:02X}, "
                f"ожидался 0x{reply_type:02X}")

    async def negotiate(self, request: bytes, reply_type=None) -> bytes:
        """
        :param request: Исходный пакет запроса.
        :param reply_type: Тип ответа на этот запрос (RequestKind.reply_type).
        :return: Итоговый ответ сервера (ещё не разобранный).
        :raises ProtocolMismatch: если сервер прислал challenge повторно.
        """
        dropped = await self.transport.discard_stale()
        if dropped:
            self.logger.warning(f"{self.host}:{self.port}: отброшено запоздавших датаграмм: {dropped}")

        self._set_state(NegotiationState.AWAITING_FIRST_REPLY)
        await self.transport.send(request, self.host, self.port)
        reply = await self._receive(reply_type)

        if response_type(reply) == S2C_CHALLENGE:
            # Токен не разбираем: он возвращается серверу как есть
            token = reply[RESPONSE_TYPE_OFFSET + 1:]
            self.logger.debug(f"{self.host}:{self.port}: получен challenge {token.hex()}")
            self._set_state(NegotiationState.AWAITING_FINAL_REPLY)
            await self.transport.send(request + token, self.host, self.port)
            reply = await self._receive(reply_type)

            if reply[RESPONSE_TYPE_OFFSET] == S2C_CHALLENGE:
                raise ProtocolMismatch(
                    None, S2C_CHALLENGE,
                    f"{self.host}:{self.port}: сервер повторно прислал challenge"
                )

        self._set_state(NegotiationState.DONE)
        return reply
