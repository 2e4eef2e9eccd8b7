"""
Provisioning of a core instance into a Kubernetes cluster.

Given a freshly registered core instance, the orchestrator creates its
cluster objects in dependency order:

    Namespace -> ClusterRole -> ServiceAccount -> ClusterRoleBinding -> Deployment

Each later object references an earlier one by name, so the sequence is
strictly sequential. The namespace is shared by every core instance of a
project and is only created when absent. The other objects are
unconditional creates: the first failure aborts the run with a
ProvisionStepError naming the step, and objects created before it are
left in place (re-running after a partial failure reports "already
exists" for them).

Blocking cluster calls run in the default executor (same pattern as the
other async wrappers in this package), so cancelling the awaiting task
skips the remaining steps without undoing completed ones.

There is intentionally no matching deprovisioning: deleting a core
instance through the cloud API leaves its cluster objects behind. They
can be found with OwnershipLabel.selector().
"""

import asyncio
import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from calyptia_cli.errors import ClusterObjectNotFoundError, ProvisionStepError
from calyptia_cli.k8s.cluster import ClusterClient
from calyptia_cli.k8s.labels import OwnershipLabel
from calyptia_cli.k8s.manifests import (
    DEFAULT_CORE_IMAGE,
    build_cluster_role,
    build_cluster_role_binding,
    build_deployment,
    build_namespace,
    build_service_account,
    cluster_role_binding_name,
    cluster_role_name,
    deployment_name,
    service_account_name,
)
from calyptia_cli.types import CreatedCoreInstance

logger = logging.getLogger(__name__)


class ProvisionStep(str, Enum):
    """
    Steps of a provisioning run, in execution order.

    Each value names the state reached when the step succeeds.
    """

    NAMESPACE_ENSURED = "NamespaceEnsured"
    CLUSTER_ROLE_CREATED = "ClusterRoleCreated"
    SERVICE_ACCOUNT_CREATED = "ServiceAccountCreated"
    CLUSTER_ROLE_BINDING_CREATED = "ClusterRoleBindingCreated"
    DEPLOYMENT_CREATED = "DeploymentCreated"


StepCallback = Callable[[ProvisionStep, str], None]
"""
Called with (step, object name) after each successful step. An exception
from the callback aborts the run as a ProvisionStepError for that step.
"""


@dataclass
class ProvisionedResourceSet:
    """
    Cluster objects materializing one core instance.

    Attributes:
        namespace: Shared namespace the namespaced objects live in.
        namespace_created: True if this run created the namespace.
        cluster_role: ClusterRole name.
        service_account: ServiceAccount name.
        cluster_role_binding: ClusterRoleBinding name.
        deployment: Deployment name.
        owner: Ownership labels stamped on every object but the namespace.
    """

    namespace: str
    namespace_created: bool
    cluster_role: str
    service_account: str
    cluster_role_binding: str
    deployment: str
    owner: OwnershipLabel


@dataclass
class ProvisioningOrchestrator:
    """
    Drives the ordered creation of a core instance's cluster objects.

    All dependencies are explicit; nothing is read from global state.

    Attributes:
        cluster: Cluster client capability.
        namespace: Namespace shared by the project's core instances.
        project_id: Cloud project owning the core instances.
        project_token: Token injected into the workload to call home.
        cloud_url: Cloud API base URL injected into the workload.
        image: Core workload image.
        on_step: Optional progress callback.

    Example:
        orchestrator = ProvisioningOrchestrator(
            cluster=load_cluster_client(),
            namespace="default",
            project_id=session.project_id,
            project_token=session.project_token,
            cloud_url=session.base_url,
        )
        resources = await orchestrator.provision(created)
    """

    cluster: ClusterClient
    namespace: str
    project_id: str
    project_token: str
    cloud_url: str
    image: str = DEFAULT_CORE_IMAGE
    on_step: StepCallback | None = None

    async def provision(self, instance: CreatedCoreInstance) -> ProvisionedResourceSet:
        """
        Create the cluster objects for a newly created core instance.

        Args:
            instance: Record returned by the cloud when the core instance
                was registered.

        Returns:
            Names of the objects making up the instance.

        Raises:
            ProvisionStepError: On the first failing step.
        """
        owner = OwnershipLabel(project_id=self.project_id, entity_id=instance.id)
        labels = owner.to_labels()
        completed: list[ProvisionStep] = []

        async def run_step(step: ProvisionStep, name: str, fn: Callable[..., Any], *args: Any) -> Any:
            loop = asyncio.get_running_loop()
            try:
                result = await loop.run_in_executor(None, functools.partial(fn, *args))
            except Exception as exc:
                logger.error("provisioning %s failed at %s: %s", instance.name, step.value, exc)
                raise ProvisionStepError(step, exc, completed) from exc

            completed.append(step)
            logger.info("%s: %s", step.value, name)
            if self.on_step is not None:
                try:
                    self.on_step(step, name)
                except Exception as exc:
                    # The step itself succeeded and stays in `completed`.
                    logger.error("progress callback failed after %s: %s", step.value, exc)
                    raise ProvisionStepError(step, exc, completed) from exc
            return result

        namespace_created = await run_step(
            ProvisionStep.NAMESPACE_ENSURED, self.namespace, self._ensure_namespace
        )

        role = cluster_role_name(instance.name)
        await run_step(
            ProvisionStep.CLUSTER_ROLE_CREATED,
            role,
            self.cluster.create_cluster_role,
            build_cluster_role(role, labels),
        )

        account = service_account_name(instance.name)
        await run_step(
            ProvisionStep.SERVICE_ACCOUNT_CREATED,
            account,
            self.cluster.create_service_account,
            self.namespace,
            build_service_account(account, labels),
        )

        binding = cluster_role_binding_name(instance.name)
        await run_step(
            ProvisionStep.CLUSTER_ROLE_BINDING_CREATED,
            binding,
            self.cluster.create_cluster_role_binding,
            build_cluster_role_binding(
                binding,
                labels,
                cluster_role=role,
                service_account=account,
                namespace=self.namespace,
            ),
        )

        deployment = deployment_name(instance.name)
        await run_step(
            ProvisionStep.DEPLOYMENT_CREATED,
            deployment,
            self.cluster.create_deployment,
            self.namespace,
            build_deployment(
                deployment,
                labels,
                instance_name=instance.name,
                service_account=account,
                image=self.image,
                project_token=self.project_token,
                cloud_url=self.cloud_url,
            ),
        )

        return ProvisionedResourceSet(
            namespace=self.namespace,
            namespace_created=namespace_created,
            cluster_role=role,
            service_account=account,
            cluster_role_binding=binding,
            deployment=deployment,
            owner=owner,
        )

    def _ensure_namespace(self) -> bool:
        """Create the shared namespace if absent. Returns True if created."""
        try:
            self.cluster.read_namespace(self.namespace)
            return False
        except ClusterObjectNotFoundError:
            logger.debug("namespace %s not found, creating it", self.namespace)

        self.cluster.create_namespace(build_namespace(self.namespace))
        return True
