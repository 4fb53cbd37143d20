# a2s_query/codec/byte_reader.py
import struct

from a2s_query.errors import MalformedResponse


class ByteReader:
    """
    Курсор по буферу ответа. Каждое чтение проверяет границы и сдвигает курсор;
    выход за конец буфера даёт MalformedResponse со смещением и шириной поля.
    """

    def __init__(self, data, offset=0):
        self.data = bytes(data)
        self.offset = offset

    @property
    def remaining(self):
        return len(self.data) - self.offset

    def _unpack(self, fmt):
        width = struct.calcsize(fmt)
        if self.remaining < width:
            raise MalformedResponse(self.offset, width)
        value, = struct.unpack_from(fmt, self.data, self.offset)
        self.offset += width
        return value

    def read_u8(self):
        return self._unpack('<B')

    def read_u16_le(self):
        return self._unpack('<H')

    def read_u64_le(self):
        return self._unpack('<Q')

    def read_cstring(self):
        """
        Читает строку UTF-8 до нулевого байта. Курсор встаёт за терминатор.
        :raises MalformedResponse: если терминатора нет до конца буфера.
        """
        end = self.data.find(b'\x00', self.offset)
        if end == -1:
            raise MalformedResponse(
                self.offset, self.remaining + 1,
                f"Строка по смещению {self.offset} не завершена нулевым байтом"
            )
        # Битые байты UTF-8 становятся U+FFFD, encode_info_response их уже не восстановит
        value = self.data[self.offset:end].decode('utf-8', errors='replace')
        self.offset = end + 1
        return value
