"""Local workflow definitions: models, loading, canonical form and digests."""

from wf_client.definitions.models import StepDefinition, WorkflowDefinition

__all__ = ["StepDefinition", "WorkflowDefinition"]
