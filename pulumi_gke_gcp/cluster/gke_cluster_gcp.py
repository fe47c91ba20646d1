"""GKE Cluster Layer for GCP - private VPC-native cluster with system and workload node pools"""

import json

import pulumi
import pulumi_gcp as gcp
from pulumi import Output

from pulumi_gke_gcp.config.gke_config_gcp import MASTER_CIDR, PODS_RANGE_NAME, SERVICES_RANGE_NAME

CLUSTER_COMPONENTS = [
    "SYSTEM_COMPONENTS",
    "WORKLOADS",
    "APISERVER",
    "CONTROLLER_MANAGER",
    "SCHEDULER",
]


def create_cluster(settings: dict, network: dict, iam: dict) -> gcp.container.Cluster:
    """Create the regional GKE control plane without a default node pool

    The default pool exists briefly during creation, so it runs as the nodes
    service account rather than the Compute Engine default account.
    """
    gcp_project = settings["gcp_project"]
    nodes_sa = iam["accounts"]["nodes"]

    return gcp.container.Cluster(
        "gke-cluster",
        name=settings["cluster_name"],
        location=settings["gcp_region"],
        initial_node_count=1,
        remove_default_node_pool=True,
        node_config=gcp.container.ClusterNodeConfigArgs(
            service_account=nodes_sa.email,
            oauth_scopes=[
                "https://www.googleapis.com/auth/cloud-platform",
            ],
        ),
        deletion_protection=False,
        network=network["vpc_network"].name,
        subnetwork=network["subnetwork"].name,
        networking_mode="VPC_NATIVE",
        ip_allocation_policy=gcp.container.ClusterIpAllocationPolicyArgs(
            cluster_secondary_range_name=PODS_RANGE_NAME,
            services_secondary_range_name=SERVICES_RANGE_NAME,
        ),
        master_auth=gcp.container.ClusterMasterAuthArgs(
            client_certificate_config=gcp.container.ClusterMasterAuthClientCertificateConfigArgs(
                issue_client_certificate=False,
            ),
        ),
        master_authorized_networks_config=gcp.container.ClusterMasterAuthorizedNetworksConfigArgs(
            cidr_blocks=[
                gcp.container.ClusterMasterAuthorizedNetworksConfigCidrBlockArgs(
                    cidr_block=settings["master_authorized_cidr"],
                    display_name="Authorized networks",
                ),
            ],
        ),
        private_cluster_config=gcp.container.ClusterPrivateClusterConfigArgs(
            enable_private_nodes=True,
            enable_private_endpoint=False,
            master_ipv4_cidr_block=MASTER_CIDR,
        ),
        workload_identity_config=gcp.container.ClusterWorkloadIdentityConfigArgs(
            workload_pool=settings["workload_pool"],
        ),
        release_channel=gcp.container.ClusterReleaseChannelArgs(
            channel=settings["release_channel"],
        ),
        maintenance_policy=gcp.container.ClusterMaintenancePolicyArgs(
            daily_maintenance_window=gcp.container.ClusterMaintenancePolicyDailyMaintenanceWindowArgs(
                start_time=settings["maintenance_start_time"],
            ),
        ),
        enable_shielded_nodes=True,
        addons_config=gcp.container.ClusterAddonsConfigArgs(
            http_load_balancing=gcp.container.ClusterAddonsConfigHttpLoadBalancingArgs(
                disabled=False,
            ),
            horizontal_pod_autoscaling=gcp.container.ClusterAddonsConfigHorizontalPodAutoscalingArgs(
                disabled=False,
            ),
        ),
        logging_config=gcp.container.ClusterLoggingConfigArgs(
            enable_components=CLUSTER_COMPONENTS,
        ),
        monitoring_config=gcp.container.ClusterMonitoringConfigArgs(
            enable_components=CLUSTER_COMPONENTS,
            managed_prometheus=gcp.container.ClusterMonitoringConfigManagedPrometheusArgs(
                enabled=True,
            ),
        ),
        resource_labels=settings["labels"],
        project=gcp_project,
    )


def create_node_pools(settings: dict, cluster: gcp.container.Cluster, nodes_sa) -> dict:
    """Create one node pool per entry in the node pool settings"""
    node_pools = {}
    for key, pool in settings["node_pools"].items():
        node_pools[key] = gcp.container.NodePool(
            f"gke-{pool['name']}",
            name=pool["name"],
            cluster=cluster.name,
            location=settings["gcp_region"],
            initial_node_count=pool["min_node_count"],
            autoscaling=gcp.container.NodePoolAutoscalingArgs(
                min_node_count=pool["min_node_count"],
                max_node_count=pool["max_node_count"],
            ),
            management=gcp.container.NodePoolManagementArgs(
                auto_repair=True,
                auto_upgrade=True,
            ),
            node_config=gcp.container.NodePoolNodeConfigArgs(
                spot=pool["spot"],
                machine_type=pool["machine_type"],
                disk_size_gb=pool["disk_size_gb"],
                disk_type="pd-balanced",
                service_account=nodes_sa.email,
                oauth_scopes=[
                    "https://www.googleapis.com/auth/cloud-platform",
                ],
                labels={
                    **settings["labels"],
                    "node-pool": key,
                },
                metadata={
                    "disable-legacy-endpoints": "true",
                },
                workload_metadata_config=gcp.container.NodePoolNodeConfigWorkloadMetadataConfigArgs(
                    mode="GKE_METADATA",
                ),
                shielded_instance_config=gcp.container.NodePoolNodeConfigShieldedInstanceConfigArgs(
                    enable_secure_boot=True,
                    enable_integrity_monitoring=True,
                ),
            ),
            project=settings["gcp_project"],
        )

    return node_pools


def render_kubeconfig(name: str, endpoint: str, ca_certificate: str) -> str:
    """Render a kubeconfig that authenticates through gke-gcloud-auth-plugin"""
    return json.dumps({
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{
            "name": name,
            "cluster": {
                "server": f"https://{endpoint}",
                "certificate-authority-data": ca_certificate,
            },
        }],
        "contexts": [{
            "name": name,
            "context": {
                "cluster": name,
                "user": name,
            },
        }],
        "current-context": name,
        "users": [{
            "name": name,
            "user": {
                "exec": {
                    "apiVersion": "client.authentication.k8s.io/v1beta1",
                    "command": "gke-gcloud-auth-plugin",
                    "installHint": "Install gke-gcloud-auth-plugin for kubectl authentication",
                    "provideClusterInfo": True,
                },
            },
        }],
    })


def build_kubeconfig(cluster: gcp.container.Cluster) -> Output:
    return Output.all(
        cluster.name,
        cluster.endpoint,
        cluster.master_auth.cluster_ca_certificate,
    ).apply(lambda args: render_kubeconfig(args[0], args[1], args[2]))


def deploy(settings: dict, network: dict, iam: dict) -> dict:
    """Deploy the cluster layer on top of the network and IAM layers"""
    gke_cluster = create_cluster(settings, network, iam)
    node_pools = create_node_pools(settings, gke_cluster, iam["accounts"]["nodes"])
    kubeconfig = build_kubeconfig(gke_cluster)

    # Export outputs
    outputs = {
        "cluster_name": gke_cluster.name,
        "cluster_endpoint": gke_cluster.endpoint,
        "cluster_location": gke_cluster.location,
        "workload_identity_pool": settings["workload_pool"],
        "node_pool_names": [pool.name for pool in node_pools.values()],
        "kubeconfig": Output.secret(kubeconfig),
    }

    # Export to Pulumi stack outputs
    for key, value in outputs.items():
        pulumi.export(f"gke_{key}", value)

    return {
        "gke_cluster": gke_cluster,
        "node_pools": node_pools,
        "kubeconfig": kubeconfig,
    }
