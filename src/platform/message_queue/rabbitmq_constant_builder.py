from src.platform.config.core_setting import settings


class RabbitMqTopologyBuilder:
    """
    RabbitMQ Naming Unified Builder

    Exchanges:  {domain}.events (topic), {domain}.events.deadletter (direct)
    Queues:     {domain}.notifications, {domain}.notifications.deadletter
    Routing:    {domain}.{event_type_name_lowercased}
    """

    # ====== Exchanges =======
    @staticmethod
    def event_exchange() -> str:
        return settings.RABBITMQ_EXCHANGE

    @staticmethod
    def dead_letter_exchange() -> str:
        return settings.RABBITMQ_DEAD_LETTER_EXCHANGE

    # ====== Queues =======
    @staticmethod
    def notification_queue() -> str:
        return settings.RABBITMQ_NOTIFICATION_QUEUE

    @staticmethod
    def dead_letter_queue(*, queue_name: str) -> str:
        """Parking queue bound to the dead-letter exchange for one consumer queue"""
        return f'{queue_name}.deadletter'

    # ====== Routing Keys =======
    @staticmethod
    def routing_key(*, event_type_name: str, domain: str | None = None) -> str:
        """
        Exact routing key for an event type name.

        Example: 'TodoCreatedEvent' -> 'todo.todocreatedevent'
        """
        return f'{domain or settings.RABBITMQ_ROUTING_DOMAIN}.{event_type_name.lower()}'
