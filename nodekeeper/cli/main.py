"""Main CLI interface using Typer."""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..agent import AgentClient, UpgradeExecutor, create_app
from ..config import AgentConfig, ReconcilerConfig, load_config
from ..controller import Controller, ReconcileAction, Reconciler, needs_upgrade
from ..k8s import ChangeWatcher, K8sClient
from ..model.upgrade import NodeRole, UpgradeRequest
from ..upgrade.stamps import StampStore
from ..utils.logger import get_logger, set_log_level

app = typer.Typer(
    name="nodekeeper",
    help="Rolling OS and Kubernetes upgrades for cluster nodes",
    add_completion=True,
)

console = Console()
logger = get_logger(__name__)

ACTION_STYLES = {
    ReconcileAction.UPGRADED: "yellow",
    ReconcileAction.AWAITING_SIGNAL: "cyan",
    ReconcileAction.RESTORED: "green",
    ReconcileAction.NONE: "white",
    ReconcileAction.FAILED: "red",
}


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", envvar="NODEKEEPER_LOG_LEVEL", help="Logging level"
    ),
):
    """nodekeeper command line."""
    if log_level:
        set_log_level(log_level)


def _reconciler_config(
    config: Optional[Path],
    node: Optional[str],
    intent: Optional[str],
    namespace: Optional[str],
    agent_url: Optional[str],
    context: Optional[str],
    stamp_dir: Optional[str],
    requeue_after: Optional[float] = None,
) -> ReconcilerConfig:
    cfg = load_config(
        ReconcilerConfig,
        config,
        section="reconciler",
        node_name=node,
        intent_name=intent,
        namespace=namespace,
        agent_url=agent_url,
        context=context,
        stamp_dir=stamp_dir,
        requeue_after=requeue_after,
    )
    if not cfg.node_name:
        raise typer.BadParameter("node name is required (--node or NODE_NAME)")
    if not cfg.intent_name:
        cfg.intent_name = cfg.node_name
    return cfg


def _build_reconciler(cfg: ReconcilerConfig) -> Reconciler:
    return Reconciler(
        k8s=K8sClient(context=cfg.context, namespace=cfg.namespace),
        agent=AgentClient(cfg.agent_url, timeout=cfg.agent_timeout),
        stamps=StampStore(cfg.stamp_dir),
        node_name=cfg.node_name,
        intent_name=cfg.intent_name,
        intent_resource=cfg.intent_resource,
        requeue_after=cfg.requeue_after,
    )


@app.command()
def agent(
    config: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON config file"),
    host: Optional[str] = typer.Option(None, "--host", envvar="NODEKEEPER_AGENT_HOST"),
    port: Optional[int] = typer.Option(None, "--port", envvar="NODEKEEPER_AGENT_PORT"),
    stamp_dir: Optional[str] = typer.Option(None, "--stamp-dir", envvar="NODEKEEPER_STAMP_DIR"),
    command_timeout: Optional[float] = typer.Option(
        None, "--command-timeout", help="Deadline in seconds for each external command"
    ),
):
    """Run the node agent."""
    try:
        cfg = load_config(
            AgentConfig,
            config,
            section="agent",
            host=host,
            port=port,
            stamp_dir=stamp_dir,
            command_timeout=command_timeout,
        )
        executor = UpgradeExecutor(cfg)
        if cfg.resume_pending_reboot and executor.resume_pending():
            console.print("[yellow]Pending OS upgrade found, reboot requested[/yellow]")

        console.print(f"Serving agent on [cyan]{cfg.host}:{cfg.port}[/cyan]")
        uvicorn.run(create_app(executor), host=cfg.host, port=cfg.port, log_level="info")
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(1)


@app.command()
def reconcile(
    config: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON config file"),
    node: Optional[str] = typer.Option(None, "--node", envvar="NODE_NAME", help="Node to manage"),
    intent: Optional[str] = typer.Option(
        None, "--intent", help="Name of the upgrade record (default: node name)"
    ),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    agent_url: Optional[str] = typer.Option(None, "--agent-url", envvar="NODEKEEPER_AGENT_URL"),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Kubernetes context"),
    stamp_dir: Optional[str] = typer.Option(None, "--stamp-dir", envvar="NODEKEEPER_STAMP_DIR"),
    requeue_after: Optional[float] = typer.Option(
        None, "--requeue-after", help="Seconds between periodic passes"
    ),
):
    """Run the reconciler loop for one node."""
    try:
        cfg = _reconciler_config(
            config, node, intent, namespace, agent_url, context, stamp_dir, requeue_after
        )
        watcher = ChangeWatcher(context=cfg.context) if cfg.watch else None
        controller = Controller(_build_reconciler(cfg), watcher)
        controller.start_watches(cfg.namespace)

        console.print(f"Reconciling node [cyan]{cfg.node_name}[/cyan]")
        try:
            controller.run()
        except KeyboardInterrupt:
            controller.stop()
    except typer.BadParameter:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(1)


@app.command("reconcile-once")
def reconcile_once(
    config: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON config file"),
    node: Optional[str] = typer.Option(None, "--node", envvar="NODE_NAME", help="Node to manage"),
    intent: Optional[str] = typer.Option(None, "--intent", help="Name of the upgrade record"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    agent_url: Optional[str] = typer.Option(None, "--agent-url", envvar="NODEKEEPER_AGENT_URL"),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Kubernetes context"),
    stamp_dir: Optional[str] = typer.Option(None, "--stamp-dir", envvar="NODEKEEPER_STAMP_DIR"),
):
    """Run a single reconciliation pass and print what it did."""
    try:
        cfg = _reconciler_config(config, node, intent, namespace, agent_url, context, stamp_dir)
        result = _build_reconciler(cfg).reconcile()
    except typer.BadParameter:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(1)

    style = ACTION_STYLES.get(result.action, "white")
    console.print(f"Node [cyan]{cfg.node_name}[/cyan]: [{style}]{result.action.value}[/{style}]")
    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")
        raise typer.Exit(1)


@app.command()
def apply(
    agent_url: str = typer.Option(
        "http://127.0.0.1:9420", "--agent-url", envvar="NODEKEEPER_AGENT_URL"
    ),
    os_version: str = typer.Option("", "--os-version", help="Target OS version"),
    os_image_url: str = typer.Option("", "--os-image-url", help="OS image reference"),
    kube_version: str = typer.Option("", "--kube-version", help="Target Kubernetes version"),
    role: Optional[NodeRole] = typer.Option(None, "--role", help="Node role"),
):
    """Send one upgrade request to a node agent."""
    try:
        request = UpgradeRequest(
            os_version=os_version,
            os_image_url=os_image_url,
            kube_version=kube_version,
            node_role=role,
        )
        with console.status("[bold green]Waiting for agent..."):
            AgentClient(agent_url).upgrade(request)
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(1)
    console.print("[green]Upgrade request applied[/green]")


@app.command()
def status(
    config: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON config file"),
    node: Optional[str] = typer.Option(None, "--node", envvar="NODE_NAME", help="Node to inspect"),
    intent: Optional[str] = typer.Option(None, "--intent", help="Name of the upgrade record"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    context: Optional[str] = typer.Option(None, "--context", "-c", help="Kubernetes context"),
    stamp_dir: Optional[str] = typer.Option(None, "--stamp-dir", envvar="NODEKEEPER_STAMP_DIR"),
):
    """Show a node's upgrade state."""
    try:
        cfg = _reconciler_config(config, node, intent, namespace, None, context, stamp_dir)
        client = K8sClient(context=cfg.context, namespace=cfg.namespace)
        node_status = client.get_node(cfg.node_name)
        upgrade_intent = client.get_intent(cfg.intent_name, cfg.intent_resource)
        due = needs_upgrade(upgrade_intent, node_status, StampStore(cfg.stamp_dir))
    except typer.BadParameter:
        raise
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(1)

    table = Table(show_header=True, header_style="bold magenta", title=node_status.name)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Role", node_status.role.value)
    table.add_row("OS image", node_status.os_image or "-")
    table.add_row("Unschedulable", str(node_status.unschedulable))
    table.add_row("Upgrading label", str(node_status.is_signaled))
    table.add_row("Target OS version", upgrade_intent.os_version or "-")
    table.add_row("Target Kubernetes version", upgrade_intent.kube_version or "-")
    table.add_row("Force eviction", str(upgrade_intent.evict_pod_force))
    table.add_row("Upgrade due", "[yellow]yes[/yellow]" if due else "[green]no[/green]")
    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]nodekeeper[/bold] version {__version__}")


if __name__ == "__main__":
    app()
