"""
Scenario runner - drive one auction round from a ScenarioConfig.

Used by the CLI `run` command. Every round gets an audit transcript
(the backend's own when it carries one) and is audited before the
record is returned.
"""

import random
from typing import Optional, Tuple

from dra.core.auction.models import ResolutionRecord
from dra.core.auction.transcript import AuditTranscript, audit
from dra.core.commitment import create_scheme
from dra.core.config import EngineConfig, ScenarioConfig
from dra.network.channel import BroadcastLog
from dra.sim.harness import FalseBid, run_protocol
from dra.utils.logger import get_logger

logger = get_logger("runner")


def run_scenario(
    config: ScenarioConfig,
    engine: Optional[EngineConfig] = None,
) -> Tuple[ResolutionRecord, AuditTranscript, BroadcastLog]:
    """
    Run a scenario end to end.

    Valuations and false bids are mapped into the backend's value domain
    first (a no-op except for the range-proof backend).

    Args:
        config: Validated scenario
        engine: Engine defaults (range-proof bits/scale)

    Returns:
        (record, transcript, broadcast log)

    Raises:
        InvalidParameters: distribution / alpha out of domain
        AuditMismatch: transcript does not cover the round's bids
    """
    engine = engine or EngineConfig()
    dist = config.build_distribution()
    alpha = config.resolved_alpha(dist)
    scheme = create_scheme(config.commitment_backend, **engine.backend_options(config.commitment_backend))
    transcript = scheme.transcript if scheme.transcript is not None else AuditTranscript()

    valuations = [scheme.quantize(v) for v in config.valuations]
    if valuations != list(config.valuations):
        logger.warning(f"Valuations rounded to the {scheme.name} grid: {valuations}")
    false_bids = [FalseBid(scheme.quantize(fb.bid), fb.reveal) for fb in config.false_bids]

    rng = random.Random(config.rng_seed) if config.rng_seed is not None else None
    auction = run_protocol(
        dist,
        alpha,
        valuations,
        false_bids,
        scheme,
        rng,
        config.forfeit_policy,
        transcript=transcript,
    )

    audit(transcript, auction.bids)
    return auction.record, transcript, auction.log


__all__ = ["run_scenario"]
