"""Project APIs required by the GKE platform"""

import pulumi
import pulumi_gcp as gcp

from pulumi_gke_gcp.config.gke_config_gcp import REQUIRED_APIS


def enable_services(settings: dict) -> list:
    """Enable the Google Cloud APIs every other layer depends on"""
    services = []
    for api in REQUIRED_APIS:
        services.append(
            gcp.projects.Service(
                f"api-{api.split('.')[0]}",
                service=api,
                project=settings["gcp_project"],
                disable_on_destroy=False,
            )
        )

    pulumi.log.info(f"Enabling {len(services)} project APIs in {settings['gcp_project']}")
    return services
