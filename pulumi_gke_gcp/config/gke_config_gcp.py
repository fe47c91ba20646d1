"""GKE Platform Configuration - stack settings, fixed CIDR ranges and IAM role lists"""

import pulumi
from pulumi import Config

# Subnet and secondary ranges for VPC-native pods and services
SUBNET_CIDR = "10.0.0.0/20"
PODS_RANGE_NAME = "pods"
PODS_CIDR = "10.4.0.0/14"
SERVICES_RANGE_NAME = "services"
SERVICES_CIDR = "10.8.0.0/20"
MASTER_CIDR = "172.16.0.0/28"

# Firewall source ranges
INTERNAL_CIDR = "10.0.0.0/8"
HEALTH_CHECK_CIDRS = ["35.191.0.0/16", "130.211.0.0/22"]
IAP_CIDR = "35.235.240.0/20"

NODES_SA_ROLES = [
    "roles/logging.logWriter",
    "roles/monitoring.metricWriter",
    "roles/monitoring.viewer",
    "roles/stackdriver.resourceMetadata.writer",
    "roles/artifactregistry.reader",
]

DEPLOYER_SA_ROLES = [
    "roles/container.developer",
]

WORKLOAD_SA_ROLES = [
    "roles/storage.objectViewer",
    "roles/cloudtrace.agent",
    "roles/secretmanager.secretAccessor",
]

ADMIN_SA_ROLES = [
    "roles/container.admin",
    "roles/compute.viewer",
    "roles/iam.serviceAccountUser",
]

REQUIRED_APIS = [
    "compute.googleapis.com",
    "container.googleapis.com",
    "iam.googleapis.com",
    "artifactregistry.googleapis.com",
    "cloudresourcemanager.googleapis.com",
    "storage.googleapis.com",
]

RELEASE_CHANNELS = ("RAPID", "REGULAR", "STABLE", "EXTENDED")

NODE_POOL_DEFAULTS = {
    "system": {
        "name": "system-pool",
        "machine_type": "e2-standard-4",
        "min_node_count": 1,
        "max_node_count": 3,
        "disk_size_gb": 100,
        "spot": False,
    },
    "workload": {
        "name": "workload-pool",
        "machine_type": "n2-standard-8",
        "min_node_count": 0,
        "max_node_count": 10,
        "disk_size_gb": 200,
        "spot": True,
    },
}


def validate_node_bounds(pool: str, min_count: int, max_count: int):
    """Reject node count bounds the autoscaler would refuse"""
    if min_count < 0:
        raise pulumi.RunError(f"{pool}_min_node_count must not be negative, got {min_count}")
    if max_count < 1:
        raise pulumi.RunError(f"{pool}_max_node_count must be at least 1, got {max_count}")
    if min_count > max_count:
        raise pulumi.RunError(
            f"{pool}_min_node_count ({min_count}) exceeds {pool}_max_node_count ({max_count})"
        )


def _node_pool_settings(config: Config, pool: str) -> dict:
    defaults = NODE_POOL_DEFAULTS[pool]

    min_count = config.get_int(f"{pool}_min_node_count")
    max_count = config.get_int(f"{pool}_max_node_count")
    spot = config.get_bool(f"{pool}_spot")

    settings = {
        "name": defaults["name"],
        "machine_type": config.get(f"{pool}_machine_type") or defaults["machine_type"],
        "min_node_count": defaults["min_node_count"] if min_count is None else min_count,
        "max_node_count": defaults["max_node_count"] if max_count is None else max_count,
        "disk_size_gb": config.get_int(f"{pool}_disk_size_gb") or defaults["disk_size_gb"],
        "spot": defaults["spot"] if spot is None else spot,
    }
    validate_node_bounds(pool, settings["min_node_count"], settings["max_node_count"])
    return settings


def load_settings() -> dict:
    """Read stack configuration into one flat settings mapping"""

    # Configuration
    config = Config()
    gcp_config = Config("gcp")

    # Get GCP project and region
    gcp_project = gcp_config.require("project")
    gcp_region = gcp_config.get("region") or "us-central1"

    # Environment configuration
    environment = config.get("environment") or "gke-dev"

    release_channel = (config.get("release_channel") or "REGULAR").upper()
    if release_channel not in RELEASE_CHANNELS:
        raise pulumi.RunError(
            f"release_channel must be one of {', '.join(RELEASE_CHANNELS)}, got {release_channel}"
        )

    master_authorized_cidr = config.get("master_authorized_cidr") or "0.0.0.0/0"
    if master_authorized_cidr == "0.0.0.0/0":
        pulumi.log.warn("Cluster control plane endpoint is reachable from all networks")

    return {
        "gcp_project": gcp_project,
        "gcp_region": gcp_region,
        "environment": environment,
        "cluster_name": config.get("cluster_name") or f"{environment}-cluster",
        "release_channel": release_channel,
        "master_authorized_cidr": master_authorized_cidr,
        "maintenance_start_time": config.get("maintenance_start_time") or "03:00",
        "workload_pool": f"{gcp_project}.svc.id.goog",
        "workload_namespace": config.get("workload_namespace") or "apps",
        "workload_ksa": config.get("workload_ksa") or "workload",
        "registry_id": config.get("registry_id") or f"{environment}-images",
        "node_pools": {
            pool: _node_pool_settings(config, pool) for pool in NODE_POOL_DEFAULTS
        },
        "labels": {
            "environment": environment,
            "managed-by": "pulumi",
        },
    }
