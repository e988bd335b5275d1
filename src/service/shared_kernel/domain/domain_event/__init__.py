"""Shared Kernel Domain Events"""

from src.service.shared_kernel.domain.domain_event.mq_domain_event import MqDomainEvent

__all__ = ['MqDomainEvent']
