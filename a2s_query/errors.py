# a2s_query/errors.py


class QueryError(Exception):
    """Базовая ошибка запроса к серверу"""


class TransportFailure(QueryError):
    """Отправка или приём датаграммы не удались на уровне сети"""


class QueryCancelled(TransportFailure):
    """Транспорт закрыт, пока запрос ждал ответа"""


class QueryTimeout(TransportFailure):
    """Ответ не пришёл за отведённое время"""


class ProtocolMismatch(QueryError):
    """Тип ответа не совпал с ожидаемым"""

    def __init__(self, expected, actual, message=None):
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"Ожидался тип ответа 0x{expected:02X}, получен 0x{actual:02X}")


class MalformedResponse(QueryError):
    """Чтение вышло за границы буфера или строка не завершена нулём"""

    def __init__(self, offset, width, message=None):
        self.offset = offset
        self.width = width
        super().__init__(message or f"Некорректный ответ: нужно {width} байт по смещению {offset}")


class UnsupportedDecoding(QueryError):
    """Разбор тела ответа для этого типа запроса не реализован"""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Разбор ответа на {kind.name} не поддерживается, используйте fetch_raw()")
