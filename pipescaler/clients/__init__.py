from .base import AlertSink, ClusterService, ComputeService, JobEngineService, QueueService
from .alerts import HttpAlertSink, LoggingAlertSink
from .arm import ArmClient
from .auth import AzureTokenProvider
from .cluster import HDInsightClusterService
from .compute import AppServiceComputeService
from .livy import LivyJobEngineService
from .queue import StorageQueueService

__all__ = [
    'AlertSink', 'ClusterService', 'ComputeService', 'JobEngineService', 'QueueService',
    'HttpAlertSink', 'LoggingAlertSink', 'ArmClient', 'AzureTokenProvider',
    'HDInsightClusterService', 'AppServiceComputeService', 'LivyJobEngineService',
    'StorageQueueService',
]
