"""Backend state management for GCP - Cloud Storage bucket holding the remote Pulumi state"""

import pulumi
import pulumi_gcp as gcp
from pulumi import Config, Output


def backend_url(bucket_name: str, prefix: str) -> str:
    """Remote state location in the form `pulumi login` expects"""
    prefix = prefix.strip("/")
    return f"gs://{bucket_name}/{prefix}" if prefix else f"gs://{bucket_name}"


def create_state_bucket(settings: dict, bucket_name: str, deployer_sa=None, depends_on: list = None) -> dict:
    """Create the versioned state bucket and grant the deployer object access"""
    gcp_project = settings["gcp_project"]

    # Create Cloud Storage bucket for Pulumi state
    state_bucket = gcp.storage.Bucket(
        "backend-state-bucket",
        name=bucket_name,
        location=settings["gcp_region"],
        storage_class="STANDARD",
        uniform_bucket_level_access=True,
        public_access_prevention="enforced",
        force_destroy=False,
        versioning=gcp.storage.BucketVersioningArgs(
            enabled=True,
        ),
        lifecycle_rules=[
            gcp.storage.BucketLifecycleRuleArgs(
                action=gcp.storage.BucketLifecycleRuleActionArgs(
                    type="Delete",
                ),
                condition=gcp.storage.BucketLifecycleRuleConditionArgs(
                    num_newer_versions=10,
                    with_state="ARCHIVED",
                ),
            ),
        ],
        labels={
            **settings["labels"],
            "purpose": "state-storage",
        },
        project=gcp_project,
        opts=pulumi.ResourceOptions(protect=True, depends_on=depends_on or []),
    )

    bindings = []
    if deployer_sa is not None:
        bindings.append(
            gcp.storage.BucketIAMMember(
                "state-bucket-deployer",
                bucket=state_bucket.name,
                role="roles/storage.objectAdmin",
                member=Output.concat("serviceAccount:", deployer_sa.email),
            )
        )

    return {
        "state_bucket": state_bucket,
        "bindings": bindings,
    }


def deploy(settings: dict, iam: dict = None, depends_on: list = None) -> dict:
    """Deploy shared backend state infrastructure for GCP"""

    # Configuration
    config = Config()

    state_bucket_name = config.get("state_bucket") or "gke-infra-pulumi-state"
    state_prefix = config.get("state_prefix") or "gke"

    deployer_sa = iam["accounts"]["deployer"] if iam else None
    resources = create_state_bucket(settings, state_bucket_name, deployer_sa, depends_on)

    # Export outputs
    outputs = {
        "state_bucket_name": resources["state_bucket"].name,
        "state_bucket_url": resources["state_bucket"].url,
        "backend_url": backend_url(state_bucket_name, state_prefix),
    }

    # Export to Pulumi stack outputs
    for key, value in outputs.items():
        pulumi.export(f"shared_gcp_{key}", value)

    return resources
