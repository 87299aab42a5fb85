"""Top panel - new cluster settings and lifecycle buttons."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Button, Input, Label

from k3dterm.core.k3d import ClusterCreateSettings

DEFAULT_CLUSTER_NAME = "k3d-default"


class ClusterForm(Widget):
    """Cluster name, node counts and image, plus the action buttons."""

    CLUSTER_ACTIONS = ("create", "delete", "replace", "list", "kubeconfig", "version")
    NODE_ACTIONS = ("add-agent", "add-server", "delete-agent", "delete-server")
    ACTIONS = CLUSTER_ACTIONS + NODE_ACTIONS

    class ActionRequested(Message):
        """Posted when one of the action buttons is pressed."""
        def __init__(self, action: str, settings: ClusterCreateSettings) -> None:
            super().__init__()
            self.action = action
            self.settings = settings

    def compose(self) -> ComposeResult:
        with Horizontal(id="form-fields"):
            with Vertical():
                yield Label("Cluster name")
                yield Input(value=DEFAULT_CLUSTER_NAME, id="cluster-name")
            with Vertical():
                yield Label("Servers")
                yield Input(value="1", type="integer", id="num-servers")
            with Vertical():
                yield Label("Agents")
                yield Input(value="0", type="integer", id="num-agents")
            with Vertical():
                yield Label("Image (optional)")
                yield Input(placeholder="rancher/k3s:latest", id="cluster-image")
        with Horizontal(classes="form-buttons"):
            yield Button("Create", variant="primary", id="create")
            yield Button("Delete", variant="error", id="delete")
            yield Button("Replace", variant="warning", id="replace")
            yield Button("List", id="list")
            yield Button("Kubeconfig", id="kubeconfig")
            yield Button("Version", id="version")
        with Horizontal(classes="form-buttons"):
            yield Button("Add agent", variant="success", id="add-agent")
            yield Button("Add server", variant="success", id="add-server")
            yield Button("Remove agent", variant="error", id="delete-agent")
            yield Button("Remove server", variant="error", id="delete-server")

    def settings(self) -> ClusterCreateSettings:
        """Read the current field values."""
        return ClusterCreateSettings(
            name=self.query_one("#cluster-name", Input).value.strip() or DEFAULT_CLUSTER_NAME,
            image=self.query_one("#cluster-image", Input).value.strip(),
            num_servers=_to_int(self.query_one("#num-servers", Input).value, 1),
            num_agents=_to_int(self.query_one("#num-agents", Input).value, 0),
        )

    def load(self, settings: ClusterCreateSettings) -> None:
        """Fill the fields from earlier settings."""
        self.query_one("#cluster-name", Input).value = settings.name
        self.query_one("#cluster-image", Input).value = settings.image
        self.query_one("#num-servers", Input).value = str(settings.num_servers)
        self.query_one("#num-agents", Input).value = str(settings.num_agents)

    def set_busy(self, busy: bool) -> None:
        """Disable the buttons while an operation is running."""
        for button in self.query(Button):
            button.disabled = busy

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id in self.ACTIONS:
            event.stop()
            self.post_message(self.ActionRequested(event.button.id, self.settings()))


def _to_int(value: str, default: int) -> int:
    try:
        return max(0, int(value))
    except ValueError:
        return default
