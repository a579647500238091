from __future__ import annotations


class DomainError(ValueError):
    """Erro de regra de negócio; a mensagem vai direto pro usuário."""


class DomainValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class ScheduleError(DomainValidationError):
    pass


class PaymentValidationError(DomainValidationError):
    pass
