from prometheus_client import Counter, Gauge, Histogram


class NotificationMetrics:
    """
    Notification Pipeline Metrics Collector

    Tracks the publish side (RabbitMQ publisher with retry), the consume side
    (ack / requeue / dead-letter outcomes) and the websocket fan-out.
    """

    def __init__(self):
        # ========== Publisher Metrics ==========
        self.events_published = Counter(
            'todo_events_published_total',
            'Events accepted by the broker',
            ['event_type'],
        )

        self.publish_retries = Counter(
            'todo_event_publish_retries_total',
            'Publish attempts that failed and were retried',
            ['event_type'],
        )

        self.publish_failures = Counter(
            'todo_event_publish_failures_total',
            'Events dropped after the retry budget was exhausted',
            ['event_type'],
        )

        # ========== Consumer Metrics ==========
        self.messages_consumed = Counter(
            'todo_consumer_messages_total',
            'Consumed messages by outcome',
            ['event_type', 'outcome'],  # outcome: acked/requeued/dead_lettered
        )

        self.processing_duration = Histogram(
            'todo_consumer_processing_duration_seconds',
            'Message processing duration',
            ['event_type'],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
        )

        # ========== WebSocket Metrics ==========
        self.websocket_connections = Gauge(
            'todo_websocket_connections',
            'Currently connected realtime clients',
        )

        self.websocket_push_failures = Counter(
            'todo_websocket_push_failures_total',
            'Per-connection push failures during broadcast',
        )

    # ========== Helper Methods ==========

    def record_published(self, *, event_type: str) -> None:
        self.events_published.labels(event_type=event_type).inc()

    def record_publish_retry(self, *, event_type: str) -> None:
        self.publish_retries.labels(event_type=event_type).inc()

    def record_publish_failure(self, *, event_type: str) -> None:
        self.publish_failures.labels(event_type=event_type).inc()

    def record_consumed(self, *, event_type: str, outcome: str, duration: float) -> None:
        self.messages_consumed.labels(event_type=event_type, outcome=outcome).inc()
        self.processing_duration.labels(event_type=event_type).observe(duration)


# Global metrics instance
metrics = NotificationMetrics()
