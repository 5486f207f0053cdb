"""anfsample: Azure NetApp Files management operations sample."""

from .clients import BaseANFClient, InMemoryANFClient, get_client
from .config import SampleConfig, load_config
from .contracts import AzureResource, StageRecord, StageStatus, WorkflowState
from .workflow import PROVISIONING_SEQUENCE, ProvisioningWorkflow, run_sample

__version__ = "0.1.0"
__all__ = [
    "AzureResource",
    "BaseANFClient",
    "InMemoryANFClient",
    "PROVISIONING_SEQUENCE",
    "ProvisioningWorkflow",
    "SampleConfig",
    "StageRecord",
    "StageStatus",
    "WorkflowState",
    "get_client",
    "load_config",
    "run_sample",
]
