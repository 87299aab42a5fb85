"""Invocations of the k3d command line tool."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from k3dterm.core.command_runner import exec_obj, format_command
from k3dterm.core.config import K3dConfig
from k3dterm.core.errorable import Errorable
from k3dterm.core.log import LogChannel, LoggingChannel
from k3dterm.core.process_tracker import ProcessTracker

T = TypeVar("T")


@dataclass(frozen=True)
class ClusterCreateSettings:
    """Settings used for creating a cluster."""
    name: str
    image: str = ""
    num_servers: int = 1
    num_agents: int = 0

    def create_cluster_args(self) -> list[str]:
        args = [self.name]
        if self.num_servers > 0:
            args += ["--servers", str(self.num_servers)]
        if self.num_agents > 0:
            args += ["--agents", str(self.num_agents)]
        if self.image:
            args += ["--image", self.image]
        return args


@dataclass(frozen=True)
class NodeInfo:
    """One node container of a cluster."""
    name: str
    role: str = ""
    created: str | None = None


@dataclass(frozen=True)
class ClusterInfo:
    """A cluster as reported by ``k3d cluster list``."""
    name: str
    servers_count: int = 0
    servers_running: int = 0
    agents_count: int = 0
    agents_running: int = 0
    # oldest creation time among the nodes
    created: str | None = None
    nodes: tuple[NodeInfo, ...] = ()

    def nodes_with_role(self, role: str) -> list[NodeInfo]:
        return [n for n in self.nodes if n.role == role]


def parse_clusters(stdout: str) -> list[ClusterInfo]:
    """Parse ``k3d cluster list -o json`` output, ordered by name.

    Raises:
        ValueError: If the output is not a JSON list of clusters.
    """
    data = json.loads(stdout or "[]")
    if not isinstance(data, list):
        raise ValueError("expected a list of clusters")
    clusters = [_cluster_from_json(item) for item in data]
    return sorted(clusters, key=lambda c: c.name)


def _count(item: dict, key: str) -> int:
    value = item.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{key} is not a number: {value!r}")
    return int(value)


def _node_from_json(item: Any) -> NodeInfo:
    if not isinstance(item, dict):
        raise ValueError(f"not a node: {item!r}")
    created = item.get("created")
    if created is not None and not isinstance(created, str):
        raise ValueError(f"created is not a timestamp: {created!r}")
    return NodeInfo(
        name=str(item.get("name", "")),
        role=str(item.get("role", "")),
        created=created or None,
    )


def _cluster_from_json(item: Any) -> ClusterInfo:
    if not isinstance(item, dict) or "name" not in item:
        raise ValueError(f"not a cluster: {item!r}")
    raw_nodes = item.get("nodes") or []
    if not isinstance(raw_nodes, list):
        raise ValueError(f"nodes is not a list: {raw_nodes!r}")
    nodes = tuple(_node_from_json(n) for n in raw_nodes)
    created = [n.created for n in nodes if n.created]
    return ClusterInfo(
        name=str(item["name"]),
        servers_count=_count(item, "serversCount"),
        servers_running=_count(item, "serversRunning"),
        agents_count=_count(item, "agentsCount"),
        agents_running=_count(item, "agentsRunning"),
        created=min(created) if created else None,
        nodes=nodes,
    )


class K3d:
    """Runs k3d with the configured binary and environment."""

    def __init__(self, config: K3dConfig | None = None, log: LogChannel | None = None) -> None:
        self.config = config or K3dConfig.from_env()
        self.log = log or LoggingChannel()

    @property
    def executable(self) -> str:
        return self.config.k3d_path

    def tracking(self, command: str, *args: str) -> ProcessTracker:
        """Prepare a tracked ``k3d <command> <args>`` invocation."""
        argv = [*command.split(), *args]
        self.log.append(f"$ {format_command(self.executable, argv)}")
        return ProcessTracker(self.executable, argv, env=self.config.env_overlay())

    async def invoke(self, command: str, args: list[str], parse: Callable[[str], T]) -> Errorable[T]:
        """Run ``k3d <command> <args>`` once and parse its stdout."""
        argv = [*command.split(), *args]
        self.log.append(f"$ {format_command(self.executable, argv)}")

        def and_log(stdout: str) -> T:
            for line in stdout.rstrip().splitlines():
                self.log.append(line.rstrip())
            return parse(stdout)

        return await exec_obj(
            self.executable,
            argv,
            f"{self.executable} {command}",
            and_log,
            env=self.config.env_overlay(),
        )

    def create_cluster(self, settings: ClusterCreateSettings) -> ProcessTracker:
        return self.tracking("cluster create", *settings.create_cluster_args())

    async def delete_cluster(self, name: str) -> Errorable[None]:
        return await self.invoke("cluster delete", [name], lambda _: None)

    async def get_clusters(self) -> Errorable[list[ClusterInfo]]:
        return await self.invoke("cluster list", ["-o", "json"], parse_clusters)

    async def get_kubeconfig(self, name: str) -> Errorable[str]:
        return await self.invoke("kubeconfig get", [name], lambda s: s)

    async def version(self) -> Errorable[str]:
        return await self.invoke("version", [], lambda s: s.strip())

    async def add_node(self, cluster: str, node: str, role: str = "agent") -> Errorable[None]:
        return await self.invoke("node create", [node, "--cluster", cluster, "--role", role], lambda _: None)

    async def delete_node(self, node: str) -> Errorable[None]:
        return await self.invoke("node delete", [node], lambda _: None)
