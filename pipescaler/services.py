"""
Service container: builds the concrete clients and the control loop from config.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

from .aggregator import StatusAggregator
from .clients import (
    AlertSink, AppServiceComputeService, ArmClient, AzureTokenProvider,
    HDInsightClusterService, HttpAlertSink, LivyJobEngineService, LoggingAlertSink,
    StorageQueueService,
)
from .clients.http import HttpClient
from .config import PipeScalerConfig
from .executor import ActionExecutor
from .operator import ControlLoop

LOG = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything one running process needs"""
    config: PipeScalerConfig
    control_loop: ControlLoop
    alert_sink: AlertSink
    http_clients: List[HttpClient] = field(default_factory=list)

    async def close(self) -> None:
        for client in self.http_clients:
            try:
                await client.close()
            except Exception as e:
                LOG.warning(f"Error closing {type(client).__name__}: {e}")


def build_services(config: PipeScalerConfig) -> ServiceContainer:
    timeout = config.loop.http_timeout_seconds

    tokens = AzureTokenProvider(config.azure, timeout=timeout)
    arm = ArmClient(config.azure.resource_manager_url, config.azure.subscription_id, tokens, timeout=timeout)
    queue = StorageQueueService(config.queue, tokens, timeout=timeout)
    livy = LivyJobEngineService(config.cluster, timeout=timeout)
    compute = AppServiceComputeService(config.compute, arm)
    cluster = HDInsightClusterService(config.cluster, arm)
    http_clients: List[HttpClient] = [tokens, arm, queue, livy]

    if config.alert.url:
        alert_sink = HttpAlertSink(config.alert.url, timeout=timeout)
        http_clients.append(alert_sink)
    else:
        LOG.warning("ALERT_URL not set, alerts will only be logged")
        alert_sink = LoggingAlertSink()

    control_loop = ControlLoop(
        aggregator=StatusAggregator(queue, compute, cluster, livy),
        executor=ActionExecutor(compute, cluster, dry_run=config.loop.dry_run),
        alert_sink=alert_sink,
        idle_window=timedelta(minutes=config.loop.idle_window_minutes),
    )
    return ServiceContainer(config=config, control_loop=control_loop,
                            alert_sink=alert_sink, http_clients=http_clients)
