__all__ = ("CacheError", "ParseError")


class CacheError(Exception): ...


class ParseError(CacheError): ...
