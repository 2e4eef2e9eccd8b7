"""Tests for ProvisioningOrchestrator."""

import asyncio
import threading

import pytest

from calyptia_cli.errors import ClusterObjectNotFoundError, ProvisionStepError
from calyptia_cli.k8s.labels import OwnershipLabel
from calyptia_cli.k8s.provision import ProvisioningOrchestrator, ProvisionStep
from calyptia_cli.types import CreatedCoreInstance

PROJECT_ID = "proj-1"
CORE_ID = "0d3f5ee1-6a3a-4c2e-9b8b-9c7a1e2d3f40"


class FakeCluster:
    """Records every call; fail_on names the method that should raise."""

    def __init__(self, namespace_exists=True, fail_on=None):
        self.namespace_exists = namespace_exists
        self.fail_on = fail_on
        self.calls = []

    def _record(self, method, *args):
        if method == self.fail_on:
            raise RuntimeError(f"{method} exploded")
        self.calls.append((method, *args))
        return args[-1] if args else None

    def read_namespace(self, name):
        self.calls.append(("read_namespace", name))
        if not self.namespace_exists:
            raise ClusterObjectNotFoundError("Namespace", name)

    def create_namespace(self, body):
        return self._record("create_namespace", body)

    def create_cluster_role(self, body):
        return self._record("create_cluster_role", body)

    def create_service_account(self, namespace, body):
        return self._record("create_service_account", namespace, body)

    def create_cluster_role_binding(self, body):
        return self._record("create_cluster_role_binding", body)

    def create_deployment(self, namespace, body):
        return self._record("create_deployment", namespace, body)

    def list_deployments(self, namespace, label_selector):
        return []

    def methods(self):
        return [c[0] for c in self.calls]

    def body(self, method):
        return next(c[-1] for c in self.calls if c[0] == method)


@pytest.fixture
def instance():
    return CreatedCoreInstance(id=CORE_ID, name="demo")


def make_orchestrator(cluster, steps=None):
    return ProvisioningOrchestrator(
        cluster=cluster,
        namespace="calyptia",
        project_id=PROJECT_ID,
        project_token="payload.signature",
        cloud_url="https://cloud-api.calyptia.com",
        image="ghcr.io/calyptia/core:test",
        on_step=(lambda step, name: steps.append((step, name))) if steps is not None else None,
    )


class TestProvisionOrder:
    """Tests for the creation order of cluster objects."""

    @pytest.mark.asyncio
    async def test_existing_namespace_is_not_created(self, instance):
        cluster = FakeCluster(namespace_exists=True)
        resources = await make_orchestrator(cluster).provision(instance)

        assert cluster.methods() == [
            "read_namespace",
            "create_cluster_role",
            "create_service_account",
            "create_cluster_role_binding",
            "create_deployment",
        ]
        assert resources.namespace_created is False

    @pytest.mark.asyncio
    async def test_missing_namespace_is_created_first(self, instance):
        cluster = FakeCluster(namespace_exists=False)
        resources = await make_orchestrator(cluster).provision(instance)

        assert cluster.methods() == [
            "read_namespace",
            "create_namespace",
            "create_cluster_role",
            "create_service_account",
            "create_cluster_role_binding",
            "create_deployment",
        ]
        assert cluster.body("create_namespace").metadata.name == "calyptia"
        assert resources.namespace_created is True

    @pytest.mark.asyncio
    async def test_resource_names(self, instance):
        resources = await make_orchestrator(FakeCluster()).provision(instance)

        assert resources.namespace == "calyptia"
        assert resources.cluster_role == "demo-cluster-role"
        assert resources.service_account == "demo-service-account"
        assert resources.cluster_role_binding == "demo-cluster-role-binding"
        assert resources.deployment == "demo-deployment"
        assert resources.owner == OwnershipLabel(project_id=PROJECT_ID, entity_id=CORE_ID)

    @pytest.mark.asyncio
    async def test_step_callback_in_order(self, instance):
        steps = []
        await make_orchestrator(FakeCluster(), steps).provision(instance)

        assert steps == [
            (ProvisionStep.NAMESPACE_ENSURED, "calyptia"),
            (ProvisionStep.CLUSTER_ROLE_CREATED, "demo-cluster-role"),
            (ProvisionStep.SERVICE_ACCOUNT_CREATED, "demo-service-account"),
            (ProvisionStep.CLUSTER_ROLE_BINDING_CREATED, "demo-cluster-role-binding"),
            (ProvisionStep.DEPLOYMENT_CREATED, "demo-deployment"),
        ]


class TestProvisionFailure:
    """Tests for failures part-way through provisioning."""

    @pytest.mark.asyncio
    async def test_binding_failure_stops_before_deployment(self, instance):
        cluster = FakeCluster(fail_on="create_cluster_role_binding")
        steps = []

        with pytest.raises(ProvisionStepError) as exc_info:
            await make_orchestrator(cluster, steps).provision(instance)

        err = exc_info.value
        assert err.step == ProvisionStep.CLUSTER_ROLE_BINDING_CREATED
        assert err.completed == [
            ProvisionStep.NAMESPACE_ENSURED,
            ProvisionStep.CLUSTER_ROLE_CREATED,
            ProvisionStep.SERVICE_ACCOUNT_CREATED,
        ]
        assert isinstance(err.cause, RuntimeError)
        assert "ClusterRoleBindingCreated" in str(err)
        assert "create_deployment" not in cluster.methods()
        assert [s for s, _ in steps] == err.completed

    @pytest.mark.asyncio
    async def test_namespace_read_failure_is_reported(self, instance):
        """Errors other than not-found while reading the namespace abort the run."""
        cluster = FakeCluster()

        def broken_read(name):
            raise PermissionError("forbidden")

        cluster.read_namespace = broken_read

        with pytest.raises(ProvisionStepError) as exc_info:
            await make_orchestrator(cluster).provision(instance)

        assert exc_info.value.step == ProvisionStep.NAMESPACE_ENSURED
        assert exc_info.value.completed == []
        assert cluster.calls == []

    @pytest.mark.asyncio
    async def test_first_create_failure(self, instance):
        cluster = FakeCluster(fail_on="create_cluster_role")

        with pytest.raises(ProvisionStepError) as exc_info:
            await make_orchestrator(cluster).provision(instance)

        assert exc_info.value.step == ProvisionStep.CLUSTER_ROLE_CREATED
        assert cluster.methods() == ["read_namespace"]

    @pytest.mark.asyncio
    async def test_step_callback_failure_aborts_run(self, instance):
        """A failing progress callback stops the run after the step it reports."""
        cluster = FakeCluster()
        orchestrator = make_orchestrator(cluster)

        def on_step(step, name):
            if step == ProvisionStep.SERVICE_ACCOUNT_CREATED:
                raise ValueError("progress sink closed")

        orchestrator.on_step = on_step

        with pytest.raises(ProvisionStepError) as exc_info:
            await orchestrator.provision(instance)

        err = exc_info.value
        assert err.step == ProvisionStep.SERVICE_ACCOUNT_CREATED
        assert err.completed == [
            ProvisionStep.NAMESPACE_ENSURED,
            ProvisionStep.CLUSTER_ROLE_CREATED,
            ProvisionStep.SERVICE_ACCOUNT_CREATED,
        ]
        assert isinstance(err.cause, ValueError)
        assert "create_cluster_role_binding" not in cluster.methods()

    @pytest.mark.asyncio
    async def test_cancel_skips_remaining_steps(self, instance):
        """Cancelling while a step runs leaves the later steps unattempted."""
        cluster = FakeCluster()
        entered = threading.Event()
        release = threading.Event()

        def slow_cluster_role(body):
            entered.set()
            release.wait(timeout=5)
            cluster.calls.append(("create_cluster_role", body))

        cluster.create_cluster_role = slow_cluster_role
        task = asyncio.create_task(make_orchestrator(cluster).provision(instance))
        await asyncio.get_running_loop().run_in_executor(None, entered.wait, 5)

        task.cancel()
        try:
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            release.set()

        methods = cluster.methods()
        assert "create_service_account" not in methods
        assert "create_cluster_role_binding" not in methods
        assert "create_deployment" not in methods


class TestProvisionedObjects:
    """Tests for the content of the created objects."""

    @pytest.mark.asyncio
    async def test_owner_labels_on_every_object(self, instance):
        cluster = FakeCluster()
        await make_orchestrator(cluster).provision(instance)

        expected = {"calyptia_project_id": PROJECT_ID, "calyptia_aggregator_id": CORE_ID}
        for method in (
            "create_cluster_role",
            "create_service_account",
            "create_cluster_role_binding",
            "create_deployment",
        ):
            assert cluster.body(method).metadata.labels == expected, method

    @pytest.mark.asyncio
    async def test_namespaced_objects_use_shared_namespace(self, instance):
        cluster = FakeCluster()
        await make_orchestrator(cluster).provision(instance)

        namespaced = [c for c in cluster.calls if c[0] in ("create_service_account", "create_deployment")]
        assert [c[1] for c in namespaced] == ["calyptia", "calyptia"]

    @pytest.mark.asyncio
    async def test_binding_references_role_and_account(self, instance):
        cluster = FakeCluster()
        await make_orchestrator(cluster).provision(instance)

        binding = cluster.body("create_cluster_role_binding")
        assert binding.role_ref.kind == "ClusterRole"
        assert binding.role_ref.name == "demo-cluster-role"
        assert binding.subjects[0].kind == "ServiceAccount"
        assert binding.subjects[0].name == "demo-service-account"
        assert binding.subjects[0].namespace == "calyptia"

    @pytest.mark.asyncio
    async def test_deployment_spec(self, instance):
        cluster = FakeCluster()
        await make_orchestrator(cluster).provision(instance)

        deployment = cluster.body("create_deployment")
        labels = {"calyptia_project_id": PROJECT_ID, "calyptia_aggregator_id": CORE_ID}
        assert deployment.spec.replicas == 1
        assert deployment.spec.selector.match_labels == labels
        assert deployment.spec.template.metadata.labels == labels

        pod = deployment.spec.template.spec
        assert pod.service_account_name == "demo-service-account"
        container = pod.containers[0]
        assert container.name == "demo"
        assert container.image == "ghcr.io/calyptia/core:test"
        assert container.image_pull_policy == "Always"
        assert {e.name: e.value for e in container.env} == {
            "AGGREGATOR_NAME": "demo",
            "PROJECT_TOKEN": "payload.signature",
            "AGGREGATOR_FLUENTBIT_CLOUD_URL": "https://cloud-api.calyptia.com",
        }

    @pytest.mark.asyncio
    async def test_cluster_role_rules(self, instance):
        cluster = FakeCluster()
        await make_orchestrator(cluster).provision(instance)

        role = cluster.body("create_cluster_role")
        assert len(role.rules) == 1
        rule = role.rules[0]
        assert rule.api_groups == ["", "apps"]
        assert rule.resources == [
            "namespaces",
            "deployments",
            "replicasets",
            "pods",
            "services",
            "configmaps",
            "deployments/scale",
            "secrets",
        ]
        assert rule.verbs == [
            "get",
            "list",
            "create",
            "delete",
            "patch",
            "update",
            "watch",
            "deletecollection",
        ]

        binding = cluster.body("create_cluster_role_binding")
        assert binding.role_ref.api_group == "rbac.authorization.k8s.io"

    @pytest.mark.asyncio
    async def test_deployment_pod_settings(self, instance):
        cluster = FakeCluster()
        await make_orchestrator(cluster).provision(instance)

        pod = cluster.body("create_deployment").spec.template.spec
        assert pod.automount_service_account_token is True
        assert pod.containers[0].args == ["-debug=true"]
