"""
Cluster client capability used by the provisioning orchestrator.

ClusterClient is the narrow surface the orchestrator needs: create/read
for the five object kinds of a core instance, plus a deployment listing
used to find the workload of an existing core instance.
KubernetesClusterClient implements it on the official kubernetes client.

Methods are blocking, like the underlying client; async callers run them
in an executor.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.config import ConfigException

from calyptia_cli.errors import ClusterAPIError, ClusterObjectNotFoundError, ConfigError

DEFAULT_NAMESPACE = "default"


@runtime_checkable
class ClusterClient(Protocol):
    """Object-kind-scoped operations against a Kubernetes cluster."""

    def read_namespace(self, name: str) -> Any:
        """
        Read a namespace.

        Raises:
            ClusterObjectNotFoundError: If the namespace does not exist.
        """
        ...

    def create_namespace(self, body: client.V1Namespace) -> Any: ...

    def create_cluster_role(self, body: client.V1ClusterRole) -> Any: ...

    def create_service_account(self, namespace: str, body: client.V1ServiceAccount) -> Any: ...

    def create_cluster_role_binding(self, body: client.V1ClusterRoleBinding) -> Any: ...

    def create_deployment(self, namespace: str, body: client.V1Deployment) -> Any: ...

    def list_deployments(self, namespace: str, label_selector: str) -> list[Any]:
        """
        List deployments matching a label selector.

        Raises:
            ClusterAPIError: If the API server rejects the request.
        """
        ...


@dataclass(frozen=True)
class KubernetesClusterClient:
    """
    ClusterClient backed by kubernetes.client API objects.

    Create failures are raised as kubernetes.client.ApiException (the
    orchestrator wraps them with the failing step). Reads map a 404 on
    read_namespace to ClusterObjectNotFoundError and list failures to
    ClusterAPIError.
    """

    core: client.CoreV1Api
    rbac: client.RbacAuthorizationV1Api
    apps: client.AppsV1Api

    def read_namespace(self, name: str) -> client.V1Namespace:
        try:
            return self.core.read_namespace(name=name)
        except ApiException as exc:
            if exc.status == 404:
                raise ClusterObjectNotFoundError("Namespace", name) from exc
            raise

    def create_namespace(self, body: client.V1Namespace) -> client.V1Namespace:
        return self.core.create_namespace(body=body)

    def create_cluster_role(self, body: client.V1ClusterRole) -> client.V1ClusterRole:
        return self.rbac.create_cluster_role(body=body)

    def create_service_account(
        self, namespace: str, body: client.V1ServiceAccount
    ) -> client.V1ServiceAccount:
        return self.core.create_namespaced_service_account(namespace=namespace, body=body)

    def create_cluster_role_binding(
        self, body: client.V1ClusterRoleBinding
    ) -> client.V1ClusterRoleBinding:
        return self.rbac.create_cluster_role_binding(body=body)

    def create_deployment(self, namespace: str, body: client.V1Deployment) -> client.V1Deployment:
        return self.apps.create_namespaced_deployment(namespace=namespace, body=body)

    def list_deployments(self, namespace: str, label_selector: str) -> list[client.V1Deployment]:
        try:
            return self.apps.list_namespaced_deployment(
                namespace=namespace, label_selector=label_selector
            ).items
        except ApiException as exc:
            raise ClusterAPIError(
                f"list deployments in {namespace!r}", exc.status, exc.reason or str(exc)
            ) from exc


def load_cluster_client(
    *, kubeconfig: Optional[str] = None, context: Optional[str] = None
) -> KubernetesClusterClient:
    """Create a KubernetesClusterClient using kubeconfig/context.

    This is the single place where we load kubeconfig so the orchestrator
    stays independent of how the cluster is reached.
    """
    try:
        config.load_kube_config(config_file=kubeconfig, context=context)
    except ConfigException as e:
        raise ConfigError(f"could not load kubeconfig: {e}") from e

    return KubernetesClusterClient(
        core=client.CoreV1Api(),
        rbac=client.RbacAuthorizationV1Api(),
        apps=client.AppsV1Api(),
    )


def context_namespace(
    *, kubeconfig: Optional[str] = None, context: Optional[str] = None
) -> str:
    """Namespace configured on the selected kubeconfig context, or "default"."""
    try:
        contexts, active = config.list_kube_config_contexts(config_file=kubeconfig)
    except ConfigException as e:
        raise ConfigError(f"could not load kubeconfig: {e}") from e
    selected = active
    if context:
        selected = next((c for c in contexts if c.get("name") == context), None)
    namespace = ((selected or {}).get("context") or {}).get("namespace")
    return namespace or DEFAULT_NAMESPACE
