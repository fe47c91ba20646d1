"""Pulumi Infrastructure Tests Configuration."""

import json
import os
from typing import Any

import pulumi
import pytest

# Set test environment variables
os.environ.setdefault("PULUMI_CONFIG_PASSPHRASE", "test-passphrase")
os.environ.setdefault("PULUMI_SKIP_UPDATE_CHECK", "true")

PROJECT_ID = "gke-test-project"
REGION = "us-central1"
ENVIRONMENT = "gke-test"


class GkeInfraMocks(pulumi.runtime.Mocks):
    """Engine replacement that records the inputs of every declared resource."""

    def __init__(self) -> None:
        super().__init__()
        self.resources: dict[str, Any] = {}

    def new_resource(self, args: pulumi.runtime.MockResourceArgs) -> tuple:
        outputs = dict(args.inputs)

        # Provider computed attributes the program reads back
        if "accountId" in args.inputs:
            email = f"{args.inputs['accountId']}@{PROJECT_ID}.iam.gserviceaccount.com"
            outputs["email"] = email
            outputs["name"] = f"projects/{PROJECT_ID}/serviceAccounts/{email}"
        if args.typ.endswith("/cluster:Cluster"):
            outputs["endpoint"] = "203.0.113.10"
            outputs["masterAuth"] = {
                **args.inputs.get("masterAuth", {}),
                "clusterCaCertificate": "bW9jay1jYQ==",
            }
        if args.typ.endswith("/repository:Repository"):
            outputs["name"] = args.inputs["repositoryId"]
        if args.typ.endswith("/bucket:Bucket"):
            outputs["url"] = f"gs://{args.inputs['name']}"

        self.resources[args.name] = args
        return [f"{args.name}_id", outputs]

    def call(self, args: pulumi.runtime.MockCallArgs) -> dict:
        return {}

    def inputs(self, name: str) -> dict:
        return self.resources[name].inputs


def set_stack_config(monkeypatch: pytest.MonkeyPatch, **values: str) -> None:
    """Replace the stack configuration seen by pulumi.Config."""
    config = {
        "gcp:project": PROJECT_ID,
        "gcp:region": REGION,
        "gke-infra:environment": ENVIRONMENT,
        "gke-infra:master_authorized_cidr": "198.51.100.0/24",
    }
    for key, value in values.items():
        config[key if ":" in key else f"gke-infra:{key}"] = value
    monkeypatch.setenv("PULUMI_CONFIG", json.dumps(config))


@pytest.fixture(autouse=True)
def mocks(monkeypatch: pytest.MonkeyPatch) -> GkeInfraMocks:
    """Fresh mocked engine and default stack configuration for every test."""
    set_stack_config(monkeypatch)
    engine_mocks = GkeInfraMocks()
    pulumi.runtime.set_mocks(engine_mocks, project="gke-infra", stack="test", preview=False)
    return engine_mocks


@pytest.fixture
def settings(mocks: GkeInfraMocks) -> dict:
    """Settings loaded from the default test stack configuration."""
    from pulumi_gke_gcp.config import gke_config_gcp

    return gke_config_gcp.load_settings()
