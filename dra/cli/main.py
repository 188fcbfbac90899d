"""
DRA CLI - Command line interface for the deferred-revelation auction.

Commands:
    dra run SCENARIO.json      resolve one scenario, print the record as JSON
    dra simulate ...           Monte-Carlo deviation / safety / timed runs
    dra provenance             crypto library versions and RECORD digests

JSON goes to stdout; logs go to stderr.
"""

import json
import logging
import math
from typing import Dict, Tuple

import click

from dra.core.errors import DRAError
from dra.utils.logger import get_logger, setup_logging

logger = get_logger("cli")


def _emit(data) -> None:
    click.echo(json.dumps(data, indent=2))


def _parse_params(pairs: Tuple[str, ...]) -> Dict[str, float]:
    """Parse repeated key=value options into floats."""
    params = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        try:
            params[key.strip()] = float(raw)
        except ValueError:
            raise click.BadParameter(f"{key} must be a number, got {raw!r}", param_hint="--param")
    return params


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load settings from this .env file")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, env_file):
    """Deferred-revelation auction over a public broadcast channel"""
    from dra.core.config import load_config

    try:
        config = load_config(env_file)
    except DRAError as e:
        raise click.ClickException(str(e))

    level = logging.DEBUG if debug else logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Run Command
# =============================================================================


@cli.command("run")
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False))
@click.option("--full", is_flag=True, help="Also print the audit transcript and broadcast log")
@click.pass_context
def run(ctx, scenario, full):
    """Resolve one auction scenario"""
    from dra.core.config import load_scenario
    from dra.crypto import bytes_to_hex
    from dra.sim.runner import run_scenario

    try:
        config = load_scenario(scenario)
        logger.debug(
            f"Scenario {scenario}: {config.distribution.type}, {len(config.valuations)} bidders, "
            f"{len(config.false_bids)} false bids, backend {config.commitment_backend}"
        )
        record, transcript, log = run_scenario(config, ctx.obj["config"])
    except DRAError as e:
        raise click.ClickException(str(e))

    if not full:
        _emit(record.to_dict())
        return

    _emit({
        "record": record.to_dict(),
        "forfeited_by": [p.tag for p in record.forfeited_by],
        "transcript": [
            {
                "order_index": entry.order_index,
                "participant": entry.participant.tag,
                "scheme": entry.commitment.scheme,
                "receipt": bytes_to_hex(entry.receipt().digest),
            }
            for entry in transcript
        ],
        "broadcast_log": log.to_list(),
    })


# =============================================================================
# Simulate Command
# =============================================================================


@cli.command("simulate")
@click.option("--dist", "kind", default="exponential", show_default=True, help="Distribution family")
@click.option("--param", "params", multiple=True, help="Distribution parameter key=value (repeatable)")
@click.option("--alpha", type=float, default=None, help="Strong-regularity parameter (family default)")
@click.option("--buyers", type=int, default=3, show_default=True)
@click.option("--trials", type=int, default=200, show_default=True)
@click.option("--seed", type=int, default=0, show_default=True)
@click.option("--false-bid", type=float, default=None, help="False bid value (default: twice the collateral)")
@click.option("--reveal/--no-reveal", default=False, show_default=True, help="Whether the false bid is revealed")
@click.option(
    "--mode",
    type=click.Choice(["deviation", "safe", "timed"]),
    default="deviation",
    show_default=True,
)
@click.option("--backend", default=None, help="Commitment backend (config default)")
@click.pass_context
def simulate(ctx, kind, params, alpha, buyers, trials, seed, false_bid, reveal, mode, backend):
    """Monte-Carlo credibility checks"""
    from dra.core.auction.models import PhaseSchedule
    from dra.core.collateral import collateral_requirement
    from dra.core.distribution import make_distribution
    from dra.sim.harness import (
        FalseBid,
        FixedDeviation,
        simulate_deviation,
        simulate_safe_deviation_bound,
        simulate_timed_protocol,
    )

    config = ctx.obj["config"]
    backend = backend or config.commitment_backend

    try:
        dist = make_distribution(kind, **_parse_params(params))
        if alpha is None:
            alpha = dist.strong_regularity()
            alpha = 1.0 if alpha is None else alpha
        if false_bid is None:
            false_bid = 2.0 * collateral_requirement(buyers, dist, alpha)
            if math.isinf(false_bid):
                raise click.UsageError("collateral is unbounded for this alpha; pass --false-bid")
        fb = FalseBid(false_bid, reveal)
        logger.debug(f"Simulating {mode}: {dist.name} alpha={alpha} buyers={buyers} false_bid={false_bid}")

        if mode == "deviation":
            result = simulate_deviation(
                dist, alpha, buyers, trials, FixedDeviation(fb), seed,
                backend=backend,
                backend_options=config.backend_options(backend),
                forfeit_policy=config.forfeit_policy,
            )
        elif mode == "safe":
            result = simulate_safe_deviation_bound(
                dist, alpha, buyers, trials, [fb], seed,
                forfeit_policy=config.forfeit_policy,
            )
        else:
            schedule = PhaseSchedule(
                commit_deadline=config.commit_window,
                reveal_deadline=config.commit_window + config.reveal_window,
            )
            result = simulate_timed_protocol(
                dist, alpha, buyers, trials, FixedDeviation(fb), schedule, seed,
                backend=backend,
                backend_options=config.backend_options(backend),
                forfeit_policy=config.forfeit_policy,
            )
    except DRAError as e:
        raise click.ClickException(str(e))

    output = {"mode": mode, "distribution": dist.name, "alpha": alpha, "false_bid": false_bid}
    output.update(result.to_dict())
    _emit(output)


# =============================================================================
# Provenance Command
# =============================================================================


@cli.command("provenance")
def provenance():
    """Show versions and RECORD digests of crypto dependencies"""
    from dra.utils.provenance import provenance_report

    _emit(provenance_report())


if __name__ == "__main__":
    cli()
