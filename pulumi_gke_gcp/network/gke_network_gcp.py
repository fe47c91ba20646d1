"""GKE Network Layer for GCP - VPC, subnet with secondary ranges, Cloud NAT and firewall rules"""

import pulumi
import pulumi_gcp as gcp

from pulumi_gke_gcp.config.gke_config_gcp import (
    HEALTH_CHECK_CIDRS,
    IAP_CIDR,
    INTERNAL_CIDR,
    MASTER_CIDR,
    PODS_CIDR,
    PODS_RANGE_NAME,
    SERVICES_CIDR,
    SERVICES_RANGE_NAME,
    SUBNET_CIDR,
)


def create_firewall_rules(settings: dict, vpc_network: gcp.compute.Network) -> dict:
    """Declare the fixed set of ingress rules for the cluster network"""
    environment = settings["environment"]
    gcp_project = settings["gcp_project"]

    rules = {}

    # Node, pod and service traffic inside the private range
    rules["allow-internal"] = gcp.compute.Firewall(
        "gke-allow-internal",
        name=f"{environment}-allow-internal",
        network=vpc_network.id,
        direction="INGRESS",
        allows=[
            gcp.compute.FirewallAllowArgs(protocol="tcp", ports=["0-65535"]),
            gcp.compute.FirewallAllowArgs(protocol="udp", ports=["0-65535"]),
            gcp.compute.FirewallAllowArgs(protocol="icmp"),
        ],
        source_ranges=[INTERNAL_CIDR],
        priority=1000,
        project=gcp_project,
    )

    # Google load balancer health checks
    rules["allow-health-checks"] = gcp.compute.Firewall(
        "gke-allow-health-checks",
        name=f"{environment}-allow-health-checks",
        network=vpc_network.id,
        direction="INGRESS",
        allows=[
            gcp.compute.FirewallAllowArgs(protocol="tcp", ports=["80", "443", "8080"]),
        ],
        source_ranges=HEALTH_CHECK_CIDRS,
        priority=1000,
        project=gcp_project,
    )

    # Private control plane reaching admission webhooks and kubelets
    rules["allow-master-webhooks"] = gcp.compute.Firewall(
        "gke-allow-master-webhooks",
        name=f"{environment}-allow-master-webhooks",
        network=vpc_network.id,
        direction="INGRESS",
        allows=[
            gcp.compute.FirewallAllowArgs(protocol="tcp", ports=["443", "8443", "9443", "10250"]),
        ],
        source_ranges=[MASTER_CIDR],
        priority=1000,
        project=gcp_project,
    )

    # SSH through Identity-Aware Proxy only
    rules["allow-iap-ssh"] = gcp.compute.Firewall(
        "gke-allow-iap-ssh",
        name=f"{environment}-allow-iap-ssh",
        network=vpc_network.id,
        direction="INGRESS",
        allows=[
            gcp.compute.FirewallAllowArgs(protocol="tcp", ports=["22"]),
        ],
        source_ranges=[IAP_CIDR],
        priority=1000,
        project=gcp_project,
    )

    return rules


def create_network(settings: dict, depends_on: list = None) -> dict:
    """Create VPC network, subnet and NAT for the GKE cluster"""
    environment = settings["environment"]
    gcp_project = settings["gcp_project"]
    gcp_region = settings["gcp_region"]

    opts = pulumi.ResourceOptions(depends_on=depends_on or [])

    # Create VPC network for the cluster
    vpc_network = gcp.compute.Network(
        "gke-vpc",
        name=f"{environment}-vpc",
        auto_create_subnetworks=False,
        routing_mode="REGIONAL",
        description=f"VPC network for {environment}",
        project=gcp_project,
        opts=opts,
    )

    # Create subnetwork with secondary ranges for GKE
    subnetwork = gcp.compute.Subnetwork(
        "gke-subnet",
        name=f"{environment}-subnet",
        network=vpc_network.id,
        ip_cidr_range=SUBNET_CIDR,
        region=gcp_region,
        private_ip_google_access=True,
        secondary_ip_ranges=[
            gcp.compute.SubnetworkSecondaryIpRangeArgs(
                range_name=PODS_RANGE_NAME,
                ip_cidr_range=PODS_CIDR,
            ),
            gcp.compute.SubnetworkSecondaryIpRangeArgs(
                range_name=SERVICES_RANGE_NAME,
                ip_cidr_range=SERVICES_CIDR,
            ),
        ],
        project=gcp_project,
    )

    # Create Cloud Router for NAT
    router = gcp.compute.Router(
        "gke-cloud-router",
        name=f"{environment}-router",
        network=vpc_network.id,
        region=gcp_region,
        project=gcp_project,
    )

    # Create Cloud NAT for outbound internet access from private nodes
    nat = gcp.compute.RouterNat(
        "gke-cloud-nat",
        name=f"{environment}-nat",
        router=router.name,
        region=gcp_region,
        nat_ip_allocate_option="AUTO_ONLY",
        source_subnetwork_ip_ranges_to_nat="ALL_SUBNETWORKS_ALL_IP_RANGES",
        log_config=gcp.compute.RouterNatLogConfigArgs(
            enable=True,
            filter="ERRORS_ONLY",
        ),
        project=gcp_project,
    )

    firewall_rules = create_firewall_rules(settings, vpc_network)

    return {
        "vpc_network": vpc_network,
        "subnetwork": subnetwork,
        "router": router,
        "nat": nat,
        "firewall_rules": firewall_rules,
    }


def deploy(settings: dict, depends_on: list = None) -> dict:
    """Deploy the network layer and export its identifiers"""
    resources = create_network(settings, depends_on)

    outputs = {
        "vpc_network_id": resources["vpc_network"].id,
        "vpc_network_name": resources["vpc_network"].name,
        "subnetwork_id": resources["subnetwork"].id,
        "subnetwork_name": resources["subnetwork"].name,
    }

    # Export to Pulumi stack outputs
    for key, value in outputs.items():
        pulumi.export(f"gke_{key}", value)

    return resources
