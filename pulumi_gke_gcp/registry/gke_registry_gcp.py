"""Container image registry for the GKE platform - Artifact Registry repository and writer access"""

import pulumi
import pulumi_gcp as gcp
from pulumi import Output

from pulumi_gke_gcp.iam.gke_iam_gcp import service_account_member


def registry_url(region: str, project: str, repository_id: str) -> str:
    return f"{region}-docker.pkg.dev/{project}/{repository_id}"


def create_registry(settings: dict, deployer_sa, depends_on: list = None) -> dict:
    """Create the Docker repository and let the deployer push to it"""
    gcp_project = settings["gcp_project"]
    gcp_region = settings["gcp_region"]

    repository = gcp.artifactregistry.Repository(
        "gke-images-repo",
        location=gcp_region,
        repository_id=settings["registry_id"],
        format="DOCKER",
        description=f"Container images for {settings['environment']}",
        labels=settings["labels"],
        cleanup_policies=[
            gcp.artifactregistry.RepositoryCleanupPolicyArgs(
                id="delete-untagged",
                action="DELETE",
                condition=gcp.artifactregistry.RepositoryCleanupPolicyConditionArgs(
                    older_than="604800s",  # 7 days
                    tag_state="UNTAGGED",
                ),
            ),
            gcp.artifactregistry.RepositoryCleanupPolicyArgs(
                id="keep-recent",
                action="KEEP",
                most_recent_versions=gcp.artifactregistry.RepositoryCleanupPolicyMostRecentVersionsArgs(
                    keep_count=10,
                ),
            ),
        ],
        project=gcp_project,
        opts=pulumi.ResourceOptions(depends_on=depends_on or []),
    )

    writer = gcp.artifactregistry.RepositoryIamMember(
        "gke-images-repo-writer",
        project=gcp_project,
        location=repository.location,
        repository=repository.name,
        role="roles/artifactregistry.writer",
        member=service_account_member(deployer_sa),
    )

    url = Output.all(repository.location, repository.repository_id).apply(
        lambda args: registry_url(args[0], gcp_project, args[1])
    )

    return {
        "repository": repository,
        "writer": writer,
        "registry_url": url,
    }


def deploy(settings: dict, iam: dict, depends_on: list = None) -> dict:
    """Deploy the registry layer and export its URL"""
    resources = create_registry(settings, iam["accounts"]["deployer"], depends_on)

    pulumi.export("gke_registry_name", resources["repository"].name)
    pulumi.export("gke_registry_url", resources["registry_url"])

    return resources
