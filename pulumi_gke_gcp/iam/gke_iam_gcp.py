"""GKE IAM Layer for GCP - service accounts, project role bindings and Workload Identity"""

import pulumi
import pulumi_gcp as gcp
from pulumi import Output

from pulumi_gke_gcp.config.gke_config_gcp import (
    ADMIN_SA_ROLES,
    DEPLOYER_SA_ROLES,
    NODES_SA_ROLES,
    WORKLOAD_SA_ROLES,
)

# account key -> (display name, project roles)
SERVICE_ACCOUNTS = {
    "nodes": ("GKE node service account", NODES_SA_ROLES),
    "deployer": ("CI deployer service account", DEPLOYER_SA_ROLES),
    "workload": ("Workload Identity service account", WORKLOAD_SA_ROLES),
    "admin": ("Cluster admin service account", ADMIN_SA_ROLES),
}


def service_account_member(account: gcp.serviceaccount.Account) -> Output:
    return Output.concat("serviceAccount:", account.email)


def workload_identity_member(settings: dict) -> str:
    """IAM member string for the Kubernetes service account of the workloads"""
    return (
        f"serviceAccount:{settings['workload_pool']}"
        f"[{settings['workload_namespace']}/{settings['workload_ksa']}]"
    )


def create_service_accounts(settings: dict, depends_on: list = None) -> dict:
    """Create the four platform service accounts and grant their project roles"""
    environment = settings["environment"]
    gcp_project = settings["gcp_project"]

    accounts = {}
    bindings = {}
    for key, (display_name, roles) in SERVICE_ACCOUNTS.items():
        account = gcp.serviceaccount.Account(
            f"gke-{key}-sa",
            account_id=f"{environment}-{key}",
            display_name=f"{display_name} for {environment}",
            project=gcp_project,
            opts=pulumi.ResourceOptions(depends_on=depends_on or []),
        )
        accounts[key] = account

        bindings[key] = [
            gcp.projects.IAMMember(
                f"gke-{key}-sa-{idx}",
                project=gcp_project,
                role=role,
                member=service_account_member(account),
            )
            for idx, role in enumerate(roles)
        ]

    return {
        "accounts": accounts,
        "bindings": bindings,
    }


def bind_workload_identity(settings: dict, workload_sa: gcp.serviceaccount.Account, cluster):
    """Allow the workload Kubernetes service account to impersonate the workload GSA

    The identity pool only exists once a Workload Identity enabled cluster is
    up, so the binding waits for the cluster.
    """
    return gcp.serviceaccount.IAMMember(
        "gke-workload-identity-binding",
        service_account_id=workload_sa.name,
        role="roles/iam.workloadIdentityUser",
        member=workload_identity_member(settings),
        opts=pulumi.ResourceOptions(depends_on=[cluster]),
    )


def deploy(settings: dict, depends_on: list = None) -> dict:
    """Deploy the IAM layer and export service account emails"""
    resources = create_service_accounts(settings, depends_on)

    for key, account in resources["accounts"].items():
        pulumi.export(f"gke_{key}_sa_email", account.email)

    return resources
