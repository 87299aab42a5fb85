"""Main k3dterm application - widget composition and operation routing."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header
from textual.worker import Worker, WorkerState

from k3dterm.commands import (
    add_node_to_cluster,
    create_cluster_interactive,
    delete_cluster_by_name,
    delete_node_from_cluster,
    describe_result,
    replace_cluster,
)
from k3dterm.core.config import K3dConfig
from k3dterm.core.errorable import Errorable, Failed
from k3dterm.core.host import long_running
from k3dterm.core.k3d import ClusterCreateSettings, ClusterInfo, K3d
from k3dterm.core.log import show_output
from k3dterm.screens.confirm_delete import ConfirmDeleteScreen
from k3dterm.widgets.cluster_form import ClusterForm
from k3dterm.widgets.log_panel import LogPanel
from k3dterm.widgets.progress_panel import ProgressPanel

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Errorable[Any]]]


class K3dTerm(App):
    """Create, delete, grow and replace local k3s clusters with k3d."""

    TITLE = "k3dterm"
    SUB_TITLE = "Local Kubernetes clusters with k3d"
    CSS_PATH = "styles.tcss"

    BINDINGS = [
        Binding("ctrl+n", "create", "Create", show=True),
        Binding("ctrl+d", "delete", "Delete", show=True),
        Binding("ctrl+r", "replace", "Replace", show=True),
        Binding("ctrl+l", "list_clusters", "List", show=True),
        Binding("ctrl+k", "kubeconfig", "Kubeconfig", show=True),
        Binding("f5", "create_last", "Create last", show=True),
        Binding("f6", "replace_last", "Replace last", show=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(self, config: K3dConfig | None = None, k3d: K3d | None = None) -> None:
        super().__init__()
        self.config = config or K3dConfig.from_env()
        self._k3d = k3d
        self.last_result: Errorable[object] | None = None
        self.last_settings: ClusterCreateSettings | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main-content"):
            yield ClusterForm()
            yield ProgressPanel()
            yield LogPanel()
        yield Footer()

    @property
    def k3d(self) -> K3d:
        if self._k3d is None:
            self._k3d = K3d(self.config, log=self.query_one(LogPanel))
        return self._k3d

    @property
    def operation_running(self) -> bool:
        """True while a k3d operation is pending or running."""
        return any(
            worker.group == "k3d" and worker.state in (WorkerState.PENDING, WorkerState.RUNNING)
            for worker in self.workers
        )

    # === Operations ===

    def create_cluster(self, settings: ClusterCreateSettings) -> Worker | None:
        self.last_settings = settings
        return self._start(
            f'Creating cluster "{settings.name}"',
            lambda: create_cluster_interactive(
                self.k3d, settings, self.query_one(ProgressPanel), self.query_one(LogPanel)
            ),
            success=f'Created cluster "{settings.name}"',
            failure="Creating k3d cluster failed",
        )

    def delete_cluster(self, name: str) -> Worker | None:
        return self._start(
            f'Deleting cluster "{name}"',
            lambda: delete_cluster_by_name(self.k3d, name, self.query_one(ProgressPanel)),
            success=f'Deleted cluster "{name}"',
            failure=f'Deleting cluster "{name}" failed',
        )

    def replace_cluster(self, settings: ClusterCreateSettings) -> Worker | None:
        self.last_settings = settings
        return self._start(
            f'Replacing with cluster "{settings.name}"',
            lambda: replace_cluster(
                self.k3d, settings, self.query_one(ProgressPanel), self.query_one(LogPanel)
            ),
            success=f'Replaced with cluster "{settings.name}"',
            failure="Replacing k3d cluster failed",
        )

    def add_node(self, cluster: str, role: str) -> Worker | None:
        return self._start(
            f'Adding {role} to "{cluster}"',
            lambda: add_node_to_cluster(self.k3d, cluster, role, self.query_one(ProgressPanel)),
            failure=f'Adding {role} to "{cluster}" failed',
            then=lambda node: self._succeeded(f'"{node}" successfully added to "{cluster}"'),
        )

    def delete_node(self, cluster: str, role: str) -> Worker | None:
        return self._start(
            f'Deleting {role} from "{cluster}"',
            lambda: delete_node_from_cluster(self.k3d, cluster, role, self.query_one(ProgressPanel)),
            failure=f'Deleting {role} from "{cluster}" failed',
            then=lambda node: self._succeeded(f'"{node}" successfully deleted from "{cluster}"'),
        )

    def list_clusters(self) -> Worker | None:
        return self._start(
            "Listing clusters",
            lambda: long_running(
                "Getting existing clusters...", self.k3d.get_clusters, self.query_one(ProgressPanel)
            ),
            failure="Listing clusters failed",
            then=self._show_clusters,
        )

    def show_kubeconfig(self, name: str) -> Worker | None:
        return self._start(
            f'Kubeconfig of "{name}"',
            lambda: long_running(
                f'Getting kubeconfig of "{name}"...',
                lambda: self.k3d.get_kubeconfig(name),
                self.query_one(ProgressPanel),
            ),
            failure=f'Getting kubeconfig of "{name}" failed',
            then=lambda _: self.notify(f'Kubeconfig of "{name}" written to the log'),
        )

    def show_version(self) -> Worker | None:
        return self._start(
            "k3d version",
            self.k3d.version,
            failure="Getting the k3d version failed",
            then=self._show_version,
        )

    def request_delete(self, name: str) -> None:
        """Ask for confirmation, then delete."""

        def on_dismiss(confirmed: bool | None) -> None:
            if confirmed:
                self.delete_cluster(name)
            else:
                self.query_one(LogPanel).append(f'Deleting "{name}" cancelled.')

        self.push_screen(ConfirmDeleteScreen(name), on_dismiss)

    def _start(
        self,
        header: str,
        action: Action,
        success: str | None = None,
        failure: str = "Operation failed",
        then: Callable[[Any], None] | None = None,
    ) -> Worker | None:
        if self.operation_running:
            self.notify("Another k3d operation is still running", severity="warning")
            return None
        return self.run_worker(self._report(header, action, success, failure, then), group="k3d")

    async def _report(
        self,
        header: str,
        action: Action,
        success: str | None,
        failure: str,
        then: Callable[[Any], None] | None,
    ) -> None:
        log_panel = self.query_one(LogPanel)
        form = self.query_one(ClusterForm)
        show_output(log_panel, header, title="k3dterm")
        form.set_busy(True)
        try:
            result = await action()
        except Exception as e:
            logger.exception(failure)
            result = Failed([str(e) or type(e).__name__])
        finally:
            form.set_busy(False)

        self.last_result = result
        if isinstance(result, Failed):
            for error in result.error:
                log_panel.write_error(error)
            self.notify(describe_result(result, "", failure), severity="error")
            return
        if then is not None:
            then(result.result)
        if success:
            self._succeeded(success)

    def _succeeded(self, message: str) -> None:
        self.query_one(LogPanel).append(message)
        self.notify(message)

    def _show_clusters(self, clusters: list[ClusterInfo]) -> None:
        log_panel = self.query_one(LogPanel)
        if not clusters:
            log_panel.append("No k3d clusters running")
        for cluster in clusters:
            log_panel.append(
                f"{cluster.name}: servers {cluster.servers_running}/{cluster.servers_count}, "
                f"agents {cluster.agents_running}/{cluster.agents_count}"
            )

    def _show_version(self, version: str) -> None:
        first = version.splitlines()[0] if version else "k3d version unknown"
        self.sub_title = first

    # === Form ===

    def on_cluster_form_action_requested(self, event: ClusterForm.ActionRequested) -> None:
        name = event.settings.name
        if event.action == "create":
            self.create_cluster(event.settings)
        elif event.action == "delete":
            self.request_delete(name)
        elif event.action == "replace":
            self.replace_cluster(event.settings)
        elif event.action == "list":
            self.list_clusters()
        elif event.action == "kubeconfig":
            self.show_kubeconfig(name)
        elif event.action == "version":
            self.show_version()
        elif event.action in ClusterForm.NODE_ACTIONS:
            verb, role = event.action.split("-")
            if verb == "add":
                self.add_node(name, role)
            else:
                self.delete_node(name, role)

    # === Keybinding actions ===

    def action_create(self) -> None:
        self.create_cluster(self.query_one(ClusterForm).settings())

    def action_delete(self) -> None:
        self.request_delete(self.query_one(ClusterForm).settings().name)

    def action_replace(self) -> None:
        self.replace_cluster(self.query_one(ClusterForm).settings())

    def action_list_clusters(self) -> None:
        self.list_clusters()

    def action_kubeconfig(self) -> None:
        self.show_kubeconfig(self.query_one(ClusterForm).settings().name)

    def action_create_last(self) -> None:
        if self._recall_last():
            self.create_cluster(self.last_settings)

    def action_replace_last(self) -> None:
        if self._recall_last():
            self.replace_cluster(self.last_settings)

    def _recall_last(self) -> bool:
        if self.last_settings is None:
            self.notify("No cluster has been created yet", severity="warning")
            return False
        self.query_one(ClusterForm).load(self.last_settings)
        return True
