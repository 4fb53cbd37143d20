# a2s_query/logger.py

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from a2s_query.config import Config
from a2s_query.singleton import Singleton

APP_LOGGER_NAME = "app"
LOG_FORMAT = "[%(asctime)s][%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ANSI цвета
COLORS = {
    'DEBUG': '\033[36m',  # Cyan
    'INFO': '\033[32m',  # Green
    'WARNING': '\033[33m',  # Yellow
    'ERROR': '\033[31m',  # Red
    'CRITICAL': '\033[1;31m',  # Bold red
    'RESET': '\033[0m'
}


class ColoredFormatter(logging.Formatter):

    def format(self, record):
        color = COLORS.get(record.levelname, COLORS['RESET'])
        # Подменяем формат только на время форматирования
        orig_fmt = self._style._fmt
        try:
            self._style._fmt = f"{color}{orig_fmt}{COLORS['RESET']}"
            return super().format(record)
        finally:
            self._style._fmt = orig_fmt


class Logger(Singleton):
    """
    Единый логгер приложения. Настраивает обработчики логгера "app":
      logger = Logger(config)
      logger.info("Hello")
    Классы библиотеки пишут в дочерние логгеры "app.<Класс>" через LoggerMixin,
    и без вызова Logger() их записи уходят в корневой логгер.
    """

    def __init__(self, config=None, *args, **kwargs):
        # Защита от повторной инициализации
        if hasattr(self, '_initialized'):
            return

        config = config or Config()
        log_file = config.get("LOG.LOG_FILE", "./logs/app.log")
        level_file = config.get("LOG.LEVEL_FILE_LOG", "INFO")
        level_console = config.get("LOG.LEVEL_CONSOLE_LOG", "INFO")
        main_level = config.get("LOG.MAIN_LEVEL_LOG", "INFO")

        # Создаём папку логов
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        self._logger = logging.getLogger(APP_LOGGER_NAME)
        self._logger.setLevel(getattr(logging, main_level))
        self._logger.propagate = False

        # Обработчики добавляем только один раз
        if not self._logger.handlers:
            self._add_handlers(log_file, level_file, level_console)

        self._initialized = True

    def _add_handlers(self, log_file, level_file, level_console):
        file_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        console_formatter = ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        file_handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=14,  # 2 недели
            encoding="utf-8"
        )
        file_handler.setLevel(getattr(logging, level_file))
        file_handler.setFormatter(file_formatter)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, level_console))
        console_handler.setFormatter(console_formatter)

        self._logger.addHandler(file_handler)
        self._logger.addHandler(console_handler)

    def debug(self, msg, *args, **kwargs):
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self._logger.critical(msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        self._logger.exception(msg, *args, **kwargs)

    def get_logger(self) -> logging.Logger:
        return self._logger


class LoggerMixin:
    """Даёт классу self.logger - дочерний логгер "app.<ИмяКласса>"."""

    def __init__(self, *args, logger=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.logger = logger or logging.getLogger(f"{APP_LOGGER_NAME}.{type(self).__name__}")
