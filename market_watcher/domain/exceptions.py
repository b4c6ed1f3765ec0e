from __future__ import annotations


class DomainError(Exception):
    """Base para erros de dominio."""


class InvalidWindowError(DomainError):
    """Janela de tempo fora dos limites aceitos."""


class UnsupportedNetworkError(DomainError):
    """Rede solicitada nao e suportada."""


class MalformedEventError(DomainError):
    """Evento PoolInitialized com campos insuficientes."""


class UpstreamUnavailableError(DomainError):
    """Nao foi possivel obter o bloco atual da rede; tente novamente."""
