"""Shared Kernel Domain Layer"""

from src.service.shared_kernel.domain.domain_event import MqDomainEvent

__all__ = ['MqDomainEvent']
