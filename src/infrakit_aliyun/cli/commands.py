"""Command implementations for CLI."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from ruamel.yaml import YAML

from infrakit_aliyun.cli.client import PluginClient, PluginClientError


console = Console()
stderr_console = Console(stderr=True)


def _run_action(
    client: PluginClient,
    description: str,
    method: str,
    params: Dict[str, Any],
    success_msg: Optional[str] = None,
    quiet: bool = False,
) -> Any:
    """Helper to run a plugin call with a progress spinner."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=stderr_console,
        disable=quiet,
    ) as progress:
        task = progress.add_task(description, total=None)

        result = client.call(method, params)

        progress.update(task, completed=True)

    if success_msg and not quiet:
        console.print(success_msg)

    return result


def load_spec(spec_file: Path) -> Dict[str, Any]:
    """Load an instance spec from a JSON or YAML file."""
    yaml = YAML(typ="safe")
    try:
        data = yaml.load(Path(spec_file).read_text())
    except OSError as e:
        raise PluginClientError(f"Cannot read spec file {spec_file}: {e}")
    except Exception as e:
        raise PluginClientError(f"Invalid spec file {spec_file}: {e}")

    if not isinstance(data, dict):
        raise PluginClientError(f"Spec file {spec_file} must contain a mapping")
    return data


def describe_instances(client: PluginClient, tags: Dict[str, str], output_json: bool = False):
    """List instances matching all tags."""
    result = client.call("Instance.DescribeInstances", {"Tags": tags})
    descriptions = (result or {}).get("Descriptions") or []

    if output_json:
        console.print_json(json.dumps(descriptions))
        return

    table = Table(title="Instances")
    table.add_column("ID", style="cyan")
    table.add_column("Address", style="green")
    table.add_column("Tags", style="dim")

    for description in descriptions:
        tag_text = ", ".join(
            f"{key}={value}" for key, value in sorted((description.get("Tags") or {}).items())
        )
        table.add_row(description["ID"], description.get("LogicalID") or "-", tag_text)

    console.print(table)


def provision_instance(client: PluginClient, spec_file: Path, quiet: bool = False) -> str:
    """Provision an instance from a spec file and print its ID."""
    spec = load_spec(spec_file)
    try:
        result = _run_action(
            client, "Provisioning instance...", "Instance.Provision", {"Spec": spec}, quiet=quiet
        )
    except PluginClientError as e:
        instance_id = e.data.get("ID")
        if instance_id:
            stderr_console.print(f"[yellow]Instance {instance_id} was created but is not ready[/yellow]")
        raise

    instance_id = result["ID"]
    console.print(instance_id)
    return instance_id


def destroy_instance(client: PluginClient, instance_id: str, quiet: bool = False):
    """Stop and delete an instance."""
    _run_action(
        client,
        f"Destroying instance {instance_id}...",
        "Instance.Destroy",
        {"Instance": instance_id},
        success_msg=f"[green]✓[/green] Instance {instance_id} destroyed",
        quiet=quiet,
    )


def label_instance(client: PluginClient, instance_id: str, labels: Dict[str, str], quiet: bool = False):
    """Merge labels into an instance's tags."""
    _run_action(
        client,
        f"Labelling instance {instance_id}...",
        "Instance.Label",
        {"Instance": instance_id, "Labels": labels},
        success_msg=f"[green]✓[/green] Instance {instance_id} labelled",
        quiet=quiet,
    )


def show_info(client: PluginClient):
    """Show the running plugin's vendor and API versions."""
    info = client.info()
    vendor = info.get("Vendor", {})

    table = Table(title="Plugin")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Name", vendor.get("Name", "-"))
    table.add_row("Version", vendor.get("Version", "-"))
    table.add_row("URL", vendor.get("URL", "-"))
    for api in info.get("Implements", []):
        table.add_row("Implements", f"{api['Name']}/{api['Version']}")

    console.print(table)
