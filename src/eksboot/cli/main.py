"""Main CLI entry point for eksboot."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from eksboot import __version__
from eksboot.core.exceptions import EksbootError

if TYPE_CHECKING:
    from eksboot.core.config import EksbootConfig
    from eksboot.provider.cluster_provider import ClusterProvider

console = Console()


class EksbootContext:
    """Shared context for CLI commands with lazy initialization."""

    def __init__(
        self,
        config_path: str,
        region: str | None,
        profile: str | None,
        verbosity: int,
    ):
        """Initialize context.

        Args:
            config_path: Path to settings file (may not exist)
            region: Region override
            profile: Profile override
            verbosity: Log verbosity, 0-5
        """
        self.config_path = config_path
        self.region = region
        self.profile = profile
        self.verbosity = verbosity
        self._config: EksbootConfig | None = None
        self._provider: ClusterProvider | None = None

    @property
    def config(self) -> EksbootConfig:
        """Get or load settings lazily, applying command line overrides."""
        if self._config is None:
            from eksboot.core.config import EksbootConfig

            path = Path(self.config_path).expanduser()
            config = EksbootConfig.from_file(path) if path.exists() else EksbootConfig()

            if self.region:
                config.provider.region = self.region
            if self.profile is not None:
                config.provider.profile = self.profile
            config.logging.verbosity = self.verbosity
            self._config = config
        return self._config

    @property
    def provider(self) -> ClusterProvider:
        """Get or create the verified cluster provider lazily."""
        if self._provider is None:
            from eksboot.provider.cluster_provider import ClusterProvider

            self._provider = ClusterProvider.new(self.config.provider, verbosity=self.verbosity)
        return self._provider


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    type=click.Path(),
    default="~/.eksboot/config.yaml",
    help="Path to settings file",
)
@click.option("--region", default=None, help="AWS region")
@click.option("--profile", default=None, help="AWS credentials profile")
@click.option("-v", "--verbose", type=click.IntRange(0, 5), default=3, help="Log verbosity (0-5)")
@click.pass_context
def cli(
    ctx: click.Context, config: str, region: str | None, profile: str | None, verbose: int
) -> None:
    """eksboot - resolve sessions, images and zones before bootstrapping EKS clusters."""
    from eksboot.utils.logging import setup_logging, verbosity_to_level

    eksboot_ctx = EksbootContext(config, region, profile, verbose)
    try:
        logging_config = eksboot_ctx.config.logging
    except EksbootError as e:
        _fail(e)
        return

    setup_logging(
        level=verbosity_to_level(verbose),
        format=logging_config.format,
        output=logging_config.output,
    )
    ctx.obj = eksboot_ctx


@cli.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Verify AWS credentials and show the caller identity."""
    try:
        provider = ctx.obj.provider
    except EksbootError as e:
        _fail(e)
        return

    console.print(f"[bold]Role ARN:[/bold] {provider.status.iam_role_arn}")
    console.print(f"[bold]Region:[/bold] {provider.region}")
    if not provider.is_supported_region():
        console.print(f"[yellow]Region {provider.region} is not known to support EKS[/yellow]")


@cli.command(name="check-config")
@click.option("-f", "--config-file", required=True, help="Cluster config file, '-' for stdin")
def check_config(config_file: str) -> None:
    """Parse a cluster config file without calling AWS."""
    from eksboot.core.models import load_cluster_config

    try:
        spec = load_cluster_config(config_file)
    except EksbootError as e:
        _fail(e)
        return

    console.print(
        f"[green]✓ {spec.metadata.name}: {len(spec.all_node_groups())} node group(s)[/green]"
    )


@cli.command(name="resolve-ami")
@click.option("-f", "--config-file", required=True, help="Cluster config file, '-' for stdin")
@click.pass_context
def resolve_ami(ctx: click.Context, config_file: str) -> None:
    """Resolve the image of every node group in a cluster config."""
    from eksboot.core.models import load_cluster_config

    try:
        spec = load_cluster_config(config_file)
        provider = ctx.obj.provider

        table = Table(title=f"Images for {spec.metadata.name} ({provider.region})")
        table.add_column("Node Group", style="cyan")
        table.add_column("Family", style="magenta")
        table.add_column("AMI", style="green")

        for node_group in spec.all_node_groups():
            image_id = provider.resolve_ami(spec.metadata.version, node_group)
            table.add_row(node_group.name, node_group.ami_family, image_id)
    except EksbootError as e:
        _fail(e)
        return

    console.print(table)


@cli.command()
@click.option("-f", "--config-file", default=None, help="Cluster config file, '-' for stdin")
@click.option("--zones", default="", help="Comma-separated availability zones")
@click.pass_context
def zones(ctx: click.Context, config_file: str | None, zones: str) -> None:
    """Select the availability zones for a cluster."""
    from eksboot.core.models import ClusterConfig, ClusterMeta, load_cluster_config

    given = [z.strip() for z in zones.split(",") if z.strip()]

    try:
        if config_file:
            spec = load_cluster_config(config_file)
        else:
            spec = ClusterConfig(metadata=ClusterMeta(name="unnamed"))

        provider = ctx.obj.provider
        selected = provider.set_availability_zones(spec, given)
        if spec.local_zones:
            provider.validate_local_zones(spec.local_zones)
    except EksbootError as e:
        _fail(e)
        return

    console.print(f"[bold]Availability zones:[/bold] {', '.join(selected)}")
    if spec.local_zones:
        console.print(f"[green]✓ Local zones valid: {', '.join(spec.local_zones)}[/green]")


@cli.command(name="validate-local-zones")
@click.argument("local_zones", nargs=-1, required=True)
@click.pass_context
def validate_local_zones(ctx: click.Context, local_zones: tuple[str, ...]) -> None:
    """Check that LOCAL_ZONES are available local zones in the region."""
    try:
        ctx.obj.provider.validate_local_zones(list(local_zones))
    except EksbootError as e:
        _fail(e)
        return

    console.print(f"[green]✓ Local zones valid: {', '.join(local_zones)}[/green]")


if __name__ == "__main__":
    cli()
