"""Workflow API client.

Keeps locally defined workflows registered with a workflow API:
- settings loaded from the environment / `.env`
- structured logging
- create / update / reuse of remote workflows, decided by step digests
- job submission against the resolved workflow identifiers
"""

__version__ = "0.1.0"

from wf_client.config import WfClientSettings
from wf_client.jobs import JobRequest
from wf_client.service import WfClient

__all__ = ["__version__", "JobRequest", "WfClient", "WfClientSettings"]
