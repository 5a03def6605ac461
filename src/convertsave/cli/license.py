"""``convertsave license``: activation and status."""

from __future__ import annotations

import click

from convertsave import commands
from convertsave.cli.context import run_async
from convertsave.cli.output import echo_json, format_option
from convertsave.license.models import LicenseStatus


def _output_status(status: LicenseStatus, json_output: bool) -> None:
    if json_output:
        echo_json(status)
        return
    if status.is_valid:
        plan = status.plan_type.value if status.plan_type else "unknown"
        line = f"Licensed ({plan} plan)"
        if status.days_remaining is not None:
            if status.in_grace_period:
                line += f", expired {-status.days_remaining} day(s) ago, in grace period"
            else:
                line += f", {status.days_remaining} day(s) remaining"
        click.echo(line)
        return
    if status.requires_activation:
        click.echo("Not activated. Run 'convertsave license activate <product-key>'.")
    if status.error:
        click.echo(f"Error: {status.error}")


@click.group("license")
def license_group() -> None:
    """Manage the license for this device."""


@license_group.command("status")
@format_option
@click.pass_context
def status_command(ctx: click.Context, output_format: str) -> None:
    """Check the license, refreshing it from the server when due."""
    json_output = output_format == "json"
    status = run_async(ctx, commands.check_license_status, json_output=json_output)
    _output_status(status, json_output)


@license_group.command("activate")
@click.argument("product_key")
@format_option
@click.pass_context
def activate_command(ctx: click.Context, product_key: str, output_format: str) -> None:
    """Activate a product key on this device."""
    json_output = output_format == "json"
    status = run_async(
        ctx, commands.activate_license, json_output=json_output, product_key=product_key
    )
    _output_status(status, json_output)


@license_group.command("deactivate")
@format_option
@click.pass_context
def deactivate_command(ctx: click.Context, output_format: str) -> None:
    """Release this device's license so it can be used elsewhere."""
    json_output = output_format == "json"
    status = run_async(ctx, commands.deactivate_license, json_output=json_output)
    if not json_output:
        click.echo("License deactivated.")
        return
    _output_status(status, json_output)


@license_group.command("change-key")
@click.argument("product_key")
@format_option
@click.pass_context
def change_key_command(ctx: click.Context, product_key: str, output_format: str) -> None:
    """Deactivate the current license and activate another key."""
    json_output = output_format == "json"
    status = run_async(
        ctx, commands.change_product_key, json_output=json_output, product_key=product_key
    )
    _output_status(status, json_output)


@license_group.command("device-id")
@click.pass_context
def device_id_command(ctx: click.Context) -> None:
    """Print the device identifier used for activation."""
    click.echo(run_async(ctx, commands.get_device_id))


@license_group.command("product-key")
@click.pass_context
def product_key_command(ctx: click.Context) -> None:
    """Print the product key of the stored license."""
    key = run_async(ctx, commands.get_current_product_key)
    click.echo(key or "No license stored")
