"""Main CLI implementation using Typer."""

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import typer
from rich.console import Console

from infrakit_aliyun.agent.main import run_agent
from infrakit_aliyun.agent.provisioner import VENDOR_INFO
from infrakit_aliyun.cli.client import PluginClient, PluginClientError
from infrakit_aliyun.cli.commands import (
    describe_instances,
    destroy_instance,
    label_instance,
    provision_instance,
    show_info,
)
from infrakit_aliyun.utils.tags import parse_tag_args


# Create Typer app
app = typer.Typer(
    name="infrakit-aliyun",
    help="Aliyun ECS instance plugin",
    add_completion=False,
)

# Console for rich output
console = Console()


def _run_cli_command(handler: Callable[..., Any], socket: Optional[str], **kwargs: Any):
    """Helper to run a CLI command with a plugin client and error handling."""
    try:
        client = PluginClient(socket_path=socket)
        handler(client, **kwargs)
    except PluginClientError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _parse_tags(values: Optional[List[str]], message: str) -> Dict[str, str]:
    try:
        return parse_tag_args(values)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {message}")
        raise typer.Exit(1) from e


def build_overrides(
    region: Optional[str] = None,
    access_key_id: Optional[str] = None,
    access_key_secret: Optional[str] = None,
    private_ip: Optional[bool] = None,
    namespace: Optional[Dict[str, str]] = None,
    name: Optional[str] = None,
    log_level: Optional[str] = None,
) -> Dict[str, Any]:
    """Translate command line flags into configuration overrides."""
    return {
        "server": {"name": name, "log_level": log_level},
        "aliyun": {
            "region": region,
            "access_key_id": access_key_id,
            "access_key_secret": access_key_secret,
            "private_ip_only": private_ip,
        },
        "namespace": namespace or None,
    }


@app.command("run")
def run_command(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
    region: Optional[str] = typer.Option(None, "--region", help="Aliyun region, discovered from metadata if unset"),
    access_key_id: Optional[str] = typer.Option(None, "--access-key-id", help="Aliyun access key ID"),
    access_key_secret: Optional[str] = typer.Option(None, "--access-key-secret", help="Aliyun access key secret"),
    private_ip: Optional[bool] = typer.Option(
        None, "--private-ip/--public-ip", help="Identify instances by private IP (default) or public IP"
    ),
    namespace_tags: Optional[List[str]] = typer.Option(
        None, "--namespace-tags", help="A key=value tag applied to every instance, repeatable"
    ),
    name: Optional[str] = typer.Option(None, "--name", help="Plugin name to advertise for discovery"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Run the instance plugin."""
    namespace = _parse_tags(namespace_tags, "Namespace tags must be formatted as key=value")
    overrides = build_overrides(
        region=region,
        access_key_id=access_key_id,
        access_key_secret=access_key_secret,
        private_ip=private_ip,
        namespace=namespace,
        name=name,
        log_level=log_level,
    )

    try:
        asyncio.run(run_agent(config_file=config, overrides=overrides))
    except KeyboardInterrupt:
        console.print("\nPlugin shutdown requested")
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command("version")
def version_command(
    output_json: bool = typer.Option(False, "--json", help="Print as JSON"),
):
    """Print plugin vendor information."""
    info = VENDOR_INFO.model_dump(by_alias=True)
    if output_json:
        console.print_json(json.dumps(info))
        return
    console.print(f"{info['Name']} {info['Version']} ({info['URL']})")


@app.command("info")
def info_command(
    socket: Optional[str] = typer.Option(None, "--socket", "-s", help="Plugin socket path"),
):
    """Show vendor and API information of a running plugin."""
    _run_cli_command(show_info, socket=socket)


@app.command("describe")
def describe_command(
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="A key=value tag to match, repeatable"),
    output_json: bool = typer.Option(False, "--json", help="Print as JSON"),
    socket: Optional[str] = typer.Option(None, "--socket", "-s", help="Plugin socket path"),
):
    """List instances carrying all the given tags."""
    tag_map = _parse_tags(tags, "Tags must be formatted as key=value")
    _run_cli_command(describe_instances, socket=socket, tags=tag_map, output_json=output_json)


@app.command("provision")
def provision_command(
    spec_file: Path = typer.Argument(..., help="Instance spec file (JSON or YAML)"),
    socket: Optional[str] = typer.Option(None, "--socket", "-s", help="Plugin socket path"),
):
    """Provision an instance and print its ID."""
    _run_cli_command(provision_instance, socket=socket, spec_file=spec_file)


@app.command("destroy")
def destroy_command(
    instance_id: str = typer.Argument(..., help="Instance ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Destroy without confirmation"),
    socket: Optional[str] = typer.Option(None, "--socket", "-s", help="Plugin socket path"),
):
    """Stop and delete an instance."""
    if not force:
        confirm = typer.confirm(f"Destroy instance {instance_id}?")
        if not confirm:
            raise typer.Abort()
    _run_cli_command(destroy_instance, socket=socket, instance_id=instance_id)


@app.command("label")
def label_command(
    instance_id: str = typer.Argument(..., help="Instance ID"),
    labels: List[str] = typer.Argument(..., help="key=value labels to merge into the instance tags"),
    socket: Optional[str] = typer.Option(None, "--socket", "-s", help="Plugin socket path"),
):
    """Merge labels into an instance's tags."""
    label_map = _parse_tags(labels, "Labels must be formatted as key=value")
    _run_cli_command(label_instance, socket=socket, instance_id=instance_id, labels=label_map)


def main():
    """Main entry point for CLI."""
    app()
