"""
Object builders for the cluster objects of a core instance.

Every builder is pure: it returns a kubernetes.client model and performs
no API calls. Names derive from the core instance name so the objects of
one instance can be found without a lookup.
"""

from kubernetes import client

DEFAULT_CORE_IMAGE = "ghcr.io/calyptia/core"

CLUSTER_ROLE_SUFFIX = "-cluster-role"
SERVICE_ACCOUNT_SUFFIX = "-service-account"
CLUSTER_ROLE_BINDING_SUFFIX = "-cluster-role-binding"
DEPLOYMENT_SUFFIX = "-deployment"

# Permissions the core workload needs to run pipelines in the cluster.
CLUSTER_ROLE_API_GROUPS = ["", "apps"]
CLUSTER_ROLE_RESOURCES = [
    "namespaces",
    "deployments",
    "replicasets",
    "pods",
    "services",
    "configmaps",
    "deployments/scale",
    "secrets",
]
CLUSTER_ROLE_VERBS = [
    "get",
    "list",
    "create",
    "delete",
    "patch",
    "update",
    "watch",
    "deletecollection",
]

ENV_AGGREGATOR_NAME = "AGGREGATOR_NAME"
ENV_PROJECT_TOKEN = "PROJECT_TOKEN"
ENV_CLOUD_URL = "AGGREGATOR_FLUENTBIT_CLOUD_URL"


def cluster_role_name(instance_name: str) -> str:
    return instance_name + CLUSTER_ROLE_SUFFIX


def service_account_name(instance_name: str) -> str:
    return instance_name + SERVICE_ACCOUNT_SUFFIX


def cluster_role_binding_name(instance_name: str) -> str:
    return instance_name + CLUSTER_ROLE_BINDING_SUFFIX


def deployment_name(instance_name: str) -> str:
    return instance_name + DEPLOYMENT_SUFFIX


def build_namespace(name: str) -> client.V1Namespace:
    return client.V1Namespace(metadata=client.V1ObjectMeta(name=name))


def build_cluster_role(name: str, labels: dict[str, str]) -> client.V1ClusterRole:
    return client.V1ClusterRole(
        metadata=client.V1ObjectMeta(name=name, labels=dict(labels)),
        rules=[
            client.V1PolicyRule(
                api_groups=list(CLUSTER_ROLE_API_GROUPS),
                resources=list(CLUSTER_ROLE_RESOURCES),
                verbs=list(CLUSTER_ROLE_VERBS),
            )
        ],
    )


def build_service_account(name: str, labels: dict[str, str]) -> client.V1ServiceAccount:
    return client.V1ServiceAccount(metadata=client.V1ObjectMeta(name=name, labels=dict(labels)))


def build_cluster_role_binding(
    name: str,
    labels: dict[str, str],
    *,
    cluster_role: str,
    service_account: str,
    namespace: str,
) -> client.V1ClusterRoleBinding:
    """Bind a cluster role to a namespaced service account."""
    return client.V1ClusterRoleBinding(
        metadata=client.V1ObjectMeta(name=name, labels=dict(labels)),
        role_ref=client.V1RoleRef(
            api_group="rbac.authorization.k8s.io",
            kind="ClusterRole",
            name=cluster_role,
        ),
        subjects=[
            client.RbacV1Subject(
                kind="ServiceAccount",
                name=service_account,
                namespace=namespace,
            )
        ],
    )


def build_deployment(
    name: str,
    labels: dict[str, str],
    *,
    instance_name: str,
    service_account: str,
    image: str,
    project_token: str,
    cloud_url: str,
) -> client.V1Deployment:
    """
    Single-replica deployment running the core workload.

    The selector and pod template use the ownership labels, which is how
    the pods of a core instance are located later.
    """
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name=name, labels=dict(labels)),
        spec=client.V1DeploymentSpec(
            replicas=1,
            selector=client.V1LabelSelector(match_labels=dict(labels)),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=dict(labels)),
                spec=client.V1PodSpec(
                    service_account_name=service_account,
                    automount_service_account_token=True,
                    containers=[
                        client.V1Container(
                            name=instance_name,
                            image=image,
                            image_pull_policy="Always",
                            args=["-debug=true"],
                            env=[
                                client.V1EnvVar(name=ENV_AGGREGATOR_NAME, value=instance_name),
                                client.V1EnvVar(name=ENV_PROJECT_TOKEN, value=project_token),
                                client.V1EnvVar(name=ENV_CLOUD_URL, value=cloud_url),
                            ],
                        )
                    ],
                ),
            ),
        ),
    )
