"""Cluster lifecycle flows shared by the UI."""

from __future__ import annotations

import logging
import random

from k3dterm.core.errorable import Errorable, Failed, failed, map_result
from k3dterm.core.host import ProgressReporter, long_running, long_running_with_messages
from k3dterm.core.k3d import ClusterCreateSettings, K3d
from k3dterm.core.log import LogChannel
from k3dterm.core.progress import adapt, stripped_lines, undecorate

logger = logging.getLogger(__name__)


async def create_cluster_interactive(
    k3d: K3d,
    settings: ClusterCreateSettings,
    reporter: ProgressReporter,
    log: LogChannel | None = None,
) -> Errorable[None]:
    """Create a cluster, showing k3d's bullet lines as progress.

    Every line k3d prints goes to the log channel, including the ones
    filtered out of the progress display.
    """
    tracker = k3d.create_cluster(settings)
    steps = undecorate(adapt(tracker.events(), log=log if log is not None else k3d.log))
    try:
        return await long_running_with_messages("Creating k3d cluster", steps, reporter)
    finally:
        # no-op once k3d has exited; stops it if we were cancelled
        tracker.kill()


async def delete_cluster_by_name(k3d: K3d, name: str, reporter: ProgressReporter) -> Errorable[None]:
    return await long_running(
        f'Deleting cluster "{name}"...',
        lambda: k3d.delete_cluster(name),
        reporter,
    )


async def replace_cluster(
    k3d: K3d,
    settings: ClusterCreateSettings,
    reporter: ProgressReporter,
    log: LogChannel | None = None,
    target: str | None = None,
) -> Errorable[None]:
    """Delete target (or the oldest cluster) and create a new one.

    When there is nothing to delete this is a plain create. A failed delete
    stops the replacement.
    """
    delete_name = target
    if delete_name is None:
        clusters = await k3d.get_clusters()
        if failed(clusters):
            logger.warning("Could not list clusters: %s", clusters.error[0])
        elif clusters.result:
            oldest = min(clusters.result, key=lambda c: c.created or "")
            delete_name = oldest.name

    if delete_name:
        deleted = await delete_cluster_by_name(k3d, delete_name, reporter)
        if failed(deleted):
            return deleted

    return await create_cluster_interactive(k3d, settings, reporter, log)


def new_node_name(cluster: str, role: str) -> str:
    return f"{cluster}-{role}-{random.randint(0, 1000)}"


async def add_node_to_cluster(
    k3d: K3d,
    cluster: str,
    role: str,
    reporter: ProgressReporter,
    node: str | None = None,
) -> Errorable[str]:
    """Add a server or agent node to a cluster and return the node's name."""
    node = node or new_node_name(cluster, role)
    result = await long_running(
        f'Adding {role} "{node}" to "{cluster}"...',
        lambda: k3d.add_node(cluster, node, role),
        reporter,
    )
    return map_result(result, lambda _: node)


async def delete_node_from_cluster(
    k3d: K3d,
    cluster: str,
    role: str,
    reporter: ProgressReporter,
    node: str | None = None,
) -> Errorable[str]:
    """Delete a node of the given role, by default the last one listed."""
    if node is None:
        clusters = await long_running(
            "Getting existing nodes...", k3d.get_clusters, reporter
        )
        if failed(clusters):
            return clusters
        found = next((c for c in clusters.result if c.name == cluster), None)
        candidates = found.nodes_with_role(role) if found else []
        if not candidates:
            return Failed([f'No {role} node found in cluster "{cluster}"'])
        node = candidates[-1].name

    result = await long_running(
        f'Deleting {role} node "{node}" from "{cluster}"...',
        lambda: k3d.delete_node(node),
        reporter,
    )
    return map_result(result, lambda _: node)


def describe_result(result: Errorable[object], success: str, failure: str) -> str:
    """One-line message for a result; full errors belong in the log."""
    if isinstance(result, Failed):
        lines = stripped_lines(result.error[0])
        return f"{failure}: {lines[0] if lines else result.error[0]}"
    return success
