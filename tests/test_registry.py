"""Tests for the Artifact Registry repository."""

import pulumi

from conftest import ENVIRONMENT, GkeInfraMocks, PROJECT_ID, REGION
from pulumi_gke_gcp.iam import gke_iam_gcp
from pulumi_gke_gcp.registry import gke_registry_gcp


class TestRegistryConfiguration:
    """Test registry repository configuration."""

    def test_registry_url_format(self) -> None:
        assert gke_registry_gcp.registry_url("europe-west1", "proj", "images") == (
            "europe-west1-docker.pkg.dev/proj/images"
        )

    @pulumi.runtime.test
    def test_repository_is_docker(self, mocks: GkeInfraMocks, settings: dict) -> None:
        iam = gke_iam_gcp.create_service_accounts(settings)
        registry = gke_registry_gcp.create_registry(settings, iam["accounts"]["deployer"])

        def check(_):
            inputs = mocks.inputs("gke-images-repo")
            assert inputs["repositoryId"] == f"{ENVIRONMENT}-images"
            assert inputs["format"] == "DOCKER"
            assert inputs["location"] == REGION
            assert inputs["labels"]["managed-by"] == "pulumi"

        return registry["repository"].id.apply(check)

    @pulumi.runtime.test
    def test_cleanup_policies(self, mocks: GkeInfraMocks, settings: dict) -> None:
        iam = gke_iam_gcp.create_service_accounts(settings)
        registry = gke_registry_gcp.create_registry(settings, iam["accounts"]["deployer"])

        def check(_):
            policies = {p["id"]: p for p in mocks.inputs("gke-images-repo")["cleanupPolicies"]}

            untagged = policies["delete-untagged"]
            assert untagged["action"] == "DELETE"
            assert untagged["condition"] == {"olderThan": "604800s", "tagState": "UNTAGGED"}

            recent = policies["keep-recent"]
            assert recent["action"] == "KEEP"
            assert recent["mostRecentVersions"] == {"keepCount": 10}

        return registry["repository"].id.apply(check)

    @pulumi.runtime.test
    def test_deployer_can_push(self, mocks: GkeInfraMocks, settings: dict) -> None:
        iam = gke_iam_gcp.create_service_accounts(settings)
        registry = gke_registry_gcp.create_registry(settings, iam["accounts"]["deployer"])

        def check(_):
            inputs = mocks.inputs("gke-images-repo-writer")
            assert inputs["role"] == "roles/artifactregistry.writer"
            assert inputs["repository"] == f"{ENVIRONMENT}-images"
            assert inputs["member"] == (
                f"serviceAccount:{ENVIRONMENT}-deployer@{PROJECT_ID}.iam.gserviceaccount.com"
            )

        return registry["writer"].id.apply(check)

    @pulumi.runtime.test
    def test_registry_url_output(self, mocks: GkeInfraMocks, settings: dict) -> None:
        iam = gke_iam_gcp.create_service_accounts(settings)
        registry = gke_registry_gcp.create_registry(settings, iam["accounts"]["deployer"])

        def check(url):
            assert url == f"{REGION}-docker.pkg.dev/{PROJECT_ID}/{ENVIRONMENT}-images"

        return registry["registry_url"].apply(check)
