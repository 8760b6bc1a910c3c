"""Two-step greeting workflow.

Step bodies are plain functions; their source text is what gets registered.
"""

from wf_client.definitions import StepDefinition, WorkflowDefinition

VERSION = "1.0.0"


def hi(job):
    name = job["params"].get("name") or "Stranger"
    return f"Hi there, {name}"


def hello(job):
    return "Hello again"


def on_error(job):
    raise RuntimeError("Error executing job")


workflow = WorkflowDefinition(
    name="say",
    version=VERSION,
    timeout=20,
    chain=(
        StepDefinition(name="say.hi", timeout=10, retry=1, body=hi),
        StepDefinition(name="say.hello", timeout=10, retry=1, body=hello),
    ),
    onerror=(StepDefinition(name="On error", body=on_error),),
)
