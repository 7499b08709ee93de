from querykit.utils import logging, serializers, statements

__all__ = ("logging", "serializers", "statements")
