"""
CLI interface for chainops.

Provides commands to list and run a network's pending governance tasks and
to verify a state-diff expectation against a recorded execution trace.

Templates are discovered from the `chainops.templates` entry-point group.
"""

import json
import time
from pathlib import Path

import click

from chainops import __version__


@click.group()
@click.version_option(version=__version__, prog_name="chainops")
@click.pass_context
def main(ctx):
    """
    chainops - Governance task orchestrator and state-diff verifier.
    """
    from chainops.config import load_config

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config()
    except Exception as e:
        # init and diff check work without a config; commands that need
        # one check ctx.obj.get("config")
        ctx.obj["config_error"] = str(e)


def _require_config(ctx):
    if "config" not in ctx.obj:
        click.echo(f"✗ Config not loaded: {ctx.obj.get('config_error', 'Unknown error')}", err=True)
        click.echo("Run 'chainops init' to create a configuration file.", err=True)
        raise SystemExit(1)
    return ctx.obj["config"]


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize chainops configuration."""
    from chainops.config import get_chainops_home
    import yaml

    home = get_chainops_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    default_cfg = {
        "tasks_root": "~/superchain-ops/tasks",
        "rpc_url": "${ETH_RPC_URL}",
        "superchain_registry_path": None,
        "state_diff_filename": "state_diff.json",
        "log_level": "INFO",
        "log_format": "pretty",
        "log_file": str(home / "logs" / "chainops.log"),
        "env_file": str(home / ".env"),
    }
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# ETH_RPC_URL=...\n")

    click.echo(f"Initialized chainops config at {cfg_path}")


@main.command("run")
@click.argument("network")
@click.option("--artifact", type=click.Path(path_type=Path), help="Write the final state to this file")
@click.option("--state", "state_path", type=click.Path(exists=True, path_type=Path),
              help="Start from a state dump instead of an empty state")
@click.option("--owners", "owners_path", type=click.Path(exists=True, path_type=Path),
              help="YAML map of multisig -> owners (quoted addresses), used instead of RPC")
@click.pass_context
def run(ctx, network: str, artifact: Path | None, state_path: Path | None, owners_path: Path | None):
    """
    Run every pending task of NETWORK, in order.

    Examples:

        chainops run eth

        chainops run eth --artifact state.json

        chainops run sep --state state.json --owners owners.yaml
    """
    from chainops.discovery import FilesystemTaskDiscovery
    from chainops.errors import ChainopsError
    from chainops.execution import InMemoryChainState
    from chainops.orchestrator import TaskOrchestrator
    from chainops.safe import JsonRpcSafeClient, StaticSafeIntrospector
    from chainops.templates import TemplateContext, TemplateRegistry
    from chainops.utils import format_duration, print_banner, print_error, print_success, setup_logging

    config = _require_config(ctx)
    setup_logging(config.log_file_path, config.log_level, config.log_format)

    if owners_path is None and not config.rpc_url:
        click.echo("✗ No rpc_url configured and no --owners file given", err=True)
        raise SystemExit(1)

    try:
        if owners_path is not None:
            safes = StaticSafeIntrospector.from_file(owners_path)
        else:
            safes = JsonRpcSafeClient(config.rpc_url)
        state = InMemoryChainState.from_dump(state_path) if state_path else InMemoryChainState()
    except ChainopsError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    context = TemplateContext(state=state, safes=safes, registry_path=config.registry_path)

    def _progress(event: str, **kwargs):
        if event == "task_ok":
            print_success(f"{kwargs['task']} ({kwargs['duration_ms']}ms)")
        elif event == "task_fail":
            print_error(f"{kwargs['task']}: {kwargs['error']}")

    orchestrator = TaskOrchestrator(
        discovery=FilesystemTaskDiscovery(config.tasks_root_path),
        templates=TemplateRegistry.from_entry_points(context),
        safes=safes,
        engine=state,
        registry_path=config.registry_path,
        state_diff_filename=config.state_diff_filename,
        progress_callback=_progress,
    )

    print_banner(f"chainops run {network}")
    start = time.time()
    try:
        result = orchestrator.run(network, artifact_path=artifact)
    except (ChainopsError, ValueError) as e:
        click.echo(f"✗ Run aborted: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ {len(result.tasks)} tasks completed in {format_duration(time.time() - start)}")
    if result.artifact_path:
        click.echo(f"  state written to {result.artifact_path}")


@main.group("tasks")
def tasks_group():
    """Inspect tasks."""
    pass


@tasks_group.command("ls")
@click.argument("network")
@click.pass_context
def list_tasks(ctx, network: str):
    """List pending tasks of NETWORK in execution order."""
    from chainops.discovery import FilesystemTaskDiscovery
    from chainops.errors import ChainopsError
    from chainops.task_config import read_descriptor

    config = _require_config(ctx)
    discovery = FilesystemTaskDiscovery(config.tasks_root_path)

    try:
        paths = discovery.list_pending_tasks(network)
        descriptors = [read_descriptor(p) for p in paths]
    except ChainopsError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    if not descriptors:
        click.echo(f"No pending tasks for {network}.")
        return

    for i, d in enumerate(descriptors, start=1):
        suffix = f" (depends on {d.depends_on})" if d.depends_on else ""
        click.echo(f"{i:3d}. {d.name}  [{d.template_name}]{suffix}")


@main.group("diff")
def diff_group():
    """Verify state diffs."""
    pass


@diff_group.command("check")
@click.argument("expected", type=click.Path(exists=True, path_type=Path))
@click.argument("trace", type=click.Path(exists=True, path_type=Path))
@click.option("--default-account", help="Account for entries that omit one")
@click.option("--keyed", is_flag=True, help="Compare by (account, slot) instead of by position")
def check_diff(expected: Path, trace: Path, default_account: str | None, keyed: bool):
    """
    Check EXPECTED (state-diff file) against TRACE (Foundry account accesses JSON).

    Exit code 1 on any mismatch, with the offending field path.
    """
    from chainops.errors import ChainopsError, MismatchError
    from chainops.schemas import ExecutionTrace
    from chainops.state_diff import (
        check_state_diff,
        check_state_diff_keyed,
        extract_actual,
        load_state_diff_spec,
    )

    try:
        expected_spec = load_state_diff_spec(expected, default_account=default_account)
        data = json.loads(trace.read_text())
        if isinstance(data, dict):
            data = data.get("accountAccesses", [])
        actual_spec = extract_actual(ExecutionTrace.from_account_accesses(data))
        if keyed:
            check_state_diff_keyed(expected_spec, actual_spec)
        else:
            check_state_diff(expected_spec, actual_spec)
    except MismatchError as e:
        click.echo(f"✗ Mismatch at {e.field}", err=True)
        click.echo(f"  expected: {e.expected}", err=True)
        click.echo(f"  actual:   {e.actual}", err=True)
        raise SystemExit(1)
    except (ChainopsError, ValueError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ State diff matches ({len(expected_spec)} storage changes on chain {expected_spec.chain_id})")


if __name__ == "__main__":
    main()
