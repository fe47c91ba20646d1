"""Tests for the Kubernetes side of Workload Identity."""

import pulumi

from conftest import ENVIRONMENT, GkeInfraMocks, PROJECT_ID
from pulumi_gke_gcp.cluster import gke_cluster_gcp
from pulumi_gke_gcp.iam import gke_iam_gcp
from pulumi_gke_gcp.k8s import gke_k8s_gcp
from pulumi_gke_gcp.network import gke_network_gcp


class TestWorkloadBindings:
    """Test the workload namespace and annotated Kubernetes service account."""

    @pulumi.runtime.test
    def test_service_account_annotation(self, mocks: GkeInfraMocks, settings: dict) -> None:
        network = gke_network_gcp.create_network(settings)
        iam = gke_iam_gcp.create_service_accounts(settings)
        gke_cluster = gke_cluster_gcp.create_cluster(settings, network, iam)
        cluster = {
            "gke_cluster": gke_cluster,
            "node_pools": gke_cluster_gcp.create_node_pools(settings, gke_cluster, iam["accounts"]["nodes"]),
            "kubeconfig": gke_cluster_gcp.build_kubeconfig(gke_cluster),
        }

        bindings = gke_k8s_gcp.create_workload_bindings(settings, cluster, iam)

        def check(_):
            namespace = mocks.inputs("gke-workload-namespace")["metadata"]
            assert namespace["name"] == "apps"

            metadata = mocks.inputs("gke-workload-ksa")["metadata"]
            assert metadata["name"] == "workload"
            assert metadata["namespace"] == "apps"
            assert metadata["annotations"] == {
                "iam.gke.io/gcp-service-account": (
                    f"{ENVIRONMENT}-workload@{PROJECT_ID}.iam.gserviceaccount.com"
                ),
            }

        return pulumi.Output.all(
            bindings["namespace"].id,
            bindings["service_account"].id,
        ).apply(check)
