"""Typed errors raised by the service layer.

Routes never build error payloads by hand for domain failures: services raise
``ServiceError`` and the handler registered in ``backend.main`` turns the
error kind into an HTTP status.
"""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    NOT_FOUND = 'not_found'
    UNAUTHORIZED = 'unauthorized'
    VALIDATION = 'validation'


ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
}


class ServiceError(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES[self.kind]

    @classmethod
    def not_found(cls, message: str) -> 'ServiceError':
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def unauthorized(cls, message: str) -> 'ServiceError':
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def validation(cls, message: str) -> 'ServiceError':
        return cls(ErrorKind.VALIDATION, message)

    def __repr__(self) -> str:
        return f'ServiceError({self.kind.value!r}, {self.message!r})'
