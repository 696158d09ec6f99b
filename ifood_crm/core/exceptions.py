"""
Application exceptions.
Every error the CLI reports to the user derives from AppError.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Cliente não encontrado", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class BusinessRuleViolationException(AppError):
    """Business logic violation error."""
    def __init__(self, message: str = "Operação inválida", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class SpreadsheetDecodeError(AppError):
    """The spreadsheet bytes could not be read as a table."""
    def __init__(self, message: str = "Arquivo Excel inválido ou corrompido", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ImportInProgressError(BusinessRuleViolationException):
    """A second import was started while another one is still running."""
    def __init__(self, message: str = "Já existe uma importação em andamento", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


def error_payload(exc: AppError) -> Dict[str, Any]:
    """Serialize an application error for structured logs and CLI output."""
    return {
        "code": exc.__class__.__name__,
        "message": exc.message,
        "details": exc.details,
    }
