# a2s_query/singleton.py


class Singleton:
    """
    Базовый класс: все вызовы конструктора возвращают один и тот же экземпляр.
    Повторный __init__ подкласс должен отсекать сам (см. Logger).
    """
    _instances = {}

    def __new__(cls, *args, **kwargs):
        if cls not in cls._instances:
            cls._instances[cls] = super().__new__(cls)
        return cls._instances[cls]
