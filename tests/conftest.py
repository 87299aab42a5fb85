"""Shared fixtures: a scripted stand-in for the k3d binary."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from k3dterm.core.config import K3dConfig
from k3dterm.core.k3d import K3d
from k3dterm.core.log import MemoryChannel

FAKE_K3D_SOURCE = '''#!@PYTHON@
import json
import os
import sys

here = os.path.dirname(os.path.abspath(__file__))
args = sys.argv[1:]
with open(os.path.join(here, "calls.jsonl"), "a") as f:
    f.write(json.dumps({"args": args, "KUBECONFIG": os.environ.get("KUBECONFIG")}) + "\\n")


def out(line):
    sys.stdout.buffer.write((line + "\\n").encode("utf-8"))
    sys.stdout.flush()


if args[:2] == ["cluster", "create"]:
    if args[2] == "broken":
        sys.stderr.write("FATA[0001] Failed to create cluster 'broken'\\nbecause it already exists\\n")
        sys.exit(1)
    out("INFO[0000] Prep: Network")
    out("• step 1")
    out("INFO[0001] Starting node")
    out("• step 2")
elif args[:2] == ["cluster", "delete"]:
    if args[2] == "missing":
        sys.stderr.write("No nodes found for given cluster\\n")
        sys.exit(1)
    out("INFO[0000] Deleting cluster '%s'" % args[2])
elif args[:2] == ["cluster", "list"]:
    path = os.path.join(here, "clusters.json")
    out(open(path).read() if os.path.exists(path) else "[]")
elif args[:2] == ["node", "create"]:
    cluster = args[args.index("--cluster") + 1]
    if cluster == "missing":
        sys.stderr.write("FATA[0000] Failed to find cluster 'missing'\\n")
        sys.exit(1)
    out("INFO[0000] Adding 1 node(s) to the runtime local cluster '%s'..." % cluster)
elif args[:2] == ["node", "delete"]:
    if args[2] == "missing":
        sys.stderr.write("FATA[0000] Failed to get node 'missing'\\n")
        sys.exit(1)
    out("INFO[0000] Deleted %s" % args[2])
elif args[:2] == ["kubeconfig", "get"]:
    out("apiVersion: v1")
    out("clusters:")
    out("- cluster:")
    out("    server: https://0.0.0.0:6443")
    out("current-context: k3d-%s" % args[2])
elif args[:1] == ["version"]:
    out("k3d version v5.6.0")
    out("k3s version v1.27.4-k3s1 (default)")
else:
    sys.stderr.write("unknown command\\n")
    sys.exit(2)
'''


@pytest.fixture
def fake_k3d(tmp_path: Path) -> Path:
    """Path to an executable script that answers like k3d."""
    path = tmp_path / "k3d"
    path.write_text(FAKE_K3D_SOURCE.replace("@PYTHON@", sys.executable))
    path.chmod(0o755)
    return path


@pytest.fixture
def k3d(fake_k3d: Path) -> K3d:
    """K3d wired to the fake binary, logging into memory."""
    return K3d(K3dConfig(k3d_path=str(fake_k3d)), log=MemoryChannel())


def recorded_calls(fake_k3d: Path) -> list[dict]:
    calls = fake_k3d.parent / "calls.jsonl"
    if not calls.exists():
        return []
    return [json.loads(line) for line in calls.read_text().splitlines()]


def write_clusters(fake_k3d: Path, clusters: list[dict]) -> None:
    (fake_k3d.parent / "clusters.json").write_text(json.dumps(clusters))


@pytest.fixture
def k3d_calls(fake_k3d: Path):
    """Callable returning every invocation of the fake binary so far."""
    return lambda: recorded_calls(fake_k3d)


@pytest.fixture
def set_clusters(fake_k3d: Path):
    """Callable that sets what ``k3d cluster list -o json`` prints."""
    return lambda clusters: write_clusters(fake_k3d, clusters)
