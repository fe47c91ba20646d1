"""GKE Platform Infrastructure - Pulumi Python program for Google Cloud

Provisions a Google Kubernetes Engine platform in dependency order:

- Project APIs (Compute, Container, IAM, Artifact Registry, Storage)
- VPC network with a VPC-native subnet, Cloud NAT and firewall rules
- Service accounts for nodes, CI deployer, workloads and cluster admins
- Private regional GKE cluster with system and workload node pools
- Artifact Registry repository for container images
- Kubernetes service account bound through Workload Identity (optional)
- Cloud Storage bucket for the remote state backend (optional, bootstrap)
"""

import pulumi
from pulumi import Config

from pulumi_gke_gcp.cluster import gke_cluster_gcp
from pulumi_gke_gcp.config import gke_config_gcp
from pulumi_gke_gcp.iam import gke_iam_gcp
from pulumi_gke_gcp.k8s import gke_k8s_gcp
from pulumi_gke_gcp.network import gke_network_gcp
from pulumi_gke_gcp.registry import gke_registry_gcp
from pulumi_gke_gcp.services import gke_services_gcp
from pulumi_shared_gcp import backend_state_gcp

# Get configuration
config = Config()

# Deployment flags
deploy_k8s_bindings = config.get_bool("deploy_k8s_bindings")
if deploy_k8s_bindings is None:
    deploy_k8s_bindings = True
deploy_backend_state = config.get_bool("deploy_backend_state") or False


def run_layer(name: str, fn, *args, **kwargs):
    """Run one layer, logging it and reporting the layer name on failure"""
    pulumi.log.info(f"Declaring {name} layer")
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        pulumi.log.error(f"{name} layer failed: {e}")
        raise


settings = run_layer("config", gke_config_gcp.load_settings)

# Layer 0: Project APIs
services = run_layer("services", gke_services_gcp.enable_services, settings)

# Layer 1: Network (VPC, subnet, NAT, firewall)
network = run_layer("network", gke_network_gcp.deploy, settings, depends_on=services)

# Layer 2: IAM (service accounts and role bindings)
iam = run_layer("iam", gke_iam_gcp.deploy, settings, depends_on=services)

# Layer 3: GKE cluster and node pools
cluster = run_layer("cluster", gke_cluster_gcp.deploy, settings, network, iam)
workload_identity = run_layer(
    "workload identity",
    gke_iam_gcp.bind_workload_identity,
    settings,
    iam["accounts"]["workload"],
    cluster["gke_cluster"],
)

# Layer 4: Container registry
registry = run_layer("registry", gke_registry_gcp.deploy, settings, iam, depends_on=services)

# Layer 5: Kubernetes side of Workload Identity
k8s_bindings = None
if deploy_k8s_bindings:
    k8s_bindings = run_layer("k8s bindings", gke_k8s_gcp.deploy, settings, cluster, iam)

# Bootstrap: remote state bucket
backend_state = None
if deploy_backend_state:
    backend_state = run_layer(
        "backend state", backend_state_gcp.deploy, settings, iam, depends_on=services
    )

pulumi.export("gcp_project", settings["gcp_project"])
pulumi.export("gcp_region", settings["gcp_region"])
pulumi.export("environment", settings["environment"])
pulumi.export("deployed_layers", {
    "services": True,
    "network": True,
    "iam": True,
    "cluster": True,
    "registry": True,
    "k8s_bindings": deploy_k8s_bindings,
    "backend_state": deploy_backend_state,
})
