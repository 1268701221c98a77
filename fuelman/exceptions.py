"""
Exceptions for Fuelman.

All errors are FuelError with a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Error with a machine-readable code, a message and context data.

    Subclasses provide ``_default_messages`` keyed by code.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")


class FuelError(BaseError):
    """
    Structured exception for fuel ledger operations.

    Usage:
        try:
            fuel.sell(t1, Decimal('2500'), to_vehicle='ABC-1234')
        except FuelError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Só tem {e.available} L disponível")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'VALIDATION': 'Dados inválidos',
        'NOT_FOUND': 'Registro não encontrado',
        'INSUFFICIENT_STOCK': 'Volume solicitado maior que o saldo disponível',
        'CAPACITY_EXCEEDED': 'Capacidade do tanque de destino excedida',
        'OPENING_MISSING': 'Leitura de abertura não registrada para a data',
        'CONCURRENT_CONFLICT': 'Modificação concorrente detectada, tente novamente',
    }

    RETRYABLE_CODES = frozenset({'CONCURRENT_CONFLICT'})

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    @property
    def retryable(self) -> bool:
        """Can the caller simply try again?"""
        return self.code in self.RETRYABLE_CODES

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }
