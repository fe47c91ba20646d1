"""Kubernetes side of Workload Identity - workload namespace and annotated service account"""

import pulumi
import pulumi_kubernetes as k8s

WORKLOAD_IDENTITY_ANNOTATION = "iam.gke.io/gcp-service-account"


def create_workload_bindings(settings: dict, cluster: dict, iam: dict) -> dict:
    """
    Create the Kubernetes resources that complete the Workload Identity binding.

    Args:
        settings: Stack settings from the config layer
        cluster: Outputs from the cluster layer
        iam: Outputs from the IAM layer
    """
    namespace_name = settings["workload_namespace"]
    ksa_name = settings["workload_ksa"]
    workload_sa = iam["accounts"]["workload"]

    # Create Kubernetes provider using the GKE cluster, only once node pools can schedule
    k8s_provider = k8s.Provider(
        "gke-k8s-provider",
        kubeconfig=cluster["kubeconfig"],
        opts=pulumi.ResourceOptions(depends_on=list(cluster["node_pools"].values())),
    )

    namespace = k8s.core.v1.Namespace(
        "gke-workload-namespace",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=namespace_name,
            labels={
                "app.kubernetes.io/managed-by": "pulumi",
            },
        ),
        opts=pulumi.ResourceOptions(provider=k8s_provider),
    )

    service_account = k8s.core.v1.ServiceAccount(
        "gke-workload-ksa",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=ksa_name,
            namespace=namespace_name,
            annotations={
                WORKLOAD_IDENTITY_ANNOTATION: workload_sa.email,
            },
        ),
        opts=pulumi.ResourceOptions(provider=k8s_provider, depends_on=[namespace]),
    )

    return {
        "k8s_provider": k8s_provider,
        "namespace": namespace,
        "service_account": service_account,
    }


def deploy(settings: dict, cluster: dict, iam: dict) -> dict:
    """Deploy the Kubernetes binding layer"""
    resources = create_workload_bindings(settings, cluster, iam)

    pulumi.export("gke_workload_ksa", f"{settings['workload_namespace']}/{settings['workload_ksa']}")

    return resources
