"""
Service context for log lines.

Identifies which process role (api, consumer) and which container or pid wrote a line, so
publisher and consumer logs for the same event can be told apart.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'todo-notification-service')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Container hostnames are short ids; fall back to the pid locally
    instance = os.getenv('HOSTNAME', '')[:12] or str(os.getpid())

    return f'{service_name}@{deploy_env}:{instance}'
