# a2s_query/config.py

import json
import os

from a2s_query.constants import DEFAULT_TIMEOUT

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "config.json")


class Config:

    def __init__(self, config_path=None):
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Конфигурационный файл не найден: {self.config_path}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Ошибка парсинга JSON в конфиге: {e}")

    @classmethod
    def from_dict(cls, data):
        """Конфиг без файла (для тестов и встраивания)."""
        config = cls.__new__(cls)
        config.config_path = None
        config._config = dict(data)
        return config

    def get(self, key, default=None):
        """
        Общий безопасный доступ к любому полю.
        Поддерживает вложенные ключи через точку (например, "LOG.LEVEL_FILE_LOG").
        """
        keys = key.split('.')
        value = self._config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default

    def get_server(self, server_id):
        """Получить конфиг сервера по ID"""
        servers = self._config.get("SERVERS", {})
        return servers.get(str(server_id))

    @property
    def query_timeout(self):
        """Таймаут ожидания ответа в секундах (None - ждать бесконечно)"""
        return self._config.get("QUERY", {}).get("TIMEOUT", DEFAULT_TIMEOUT)
