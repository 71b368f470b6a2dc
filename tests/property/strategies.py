"""
Custom Hypothesis Strategies for Property Events

Provides domain-specific strategies for digests, identities and whole
replay scenarios (an ordered event stream plus the documents it links to).
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from hypothesis import strategies as st


# =============================================================================
# VOCABULARY
# =============================================================================

LABELS = ["Seed", "County", "Parcel", "Address"]
JURISDICTIONS = ["Travis", "Harris", "Bexar", "Dallas"]
SUBMITTERS = ["alice", "bob", "carol"]
ROOTS = [f"parcel-{n}" for n in range(6)]


# =============================================================================
# PRIMITIVES
# =============================================================================

def digest_strategy():
    """Any 32-byte digest."""
    return st.binary(min_size=32, max_size=32)


def wrong_width_strategy():
    """Byte strings that are not 32 bytes long."""
    return st.binary(max_size=64).filter(lambda b: len(b) != 32)


def label_strategy():
    """A label, or None for content that never becomes available."""
    return st.one_of(st.sampled_from(LABELS), st.none())


def jurisdiction_strategy():
    """
    A property's jurisdiction.

    None leaves the target document without county_jurisdiction; the empty
    string resolves but is ignored by the aggregates.
    """
    return st.one_of(st.sampled_from(JURISDICTIONS), st.none(), st.just(""))


# =============================================================================
# SCENARIOS
# =============================================================================

@dataclass(frozen=True)
class ScenarioStep:
    index: int
    root: str
    submitter: str
    label: Optional[str]
    block_number: int
    log_index: int
    timestamp: int


@dataclass(frozen=True)
class ReplayScenario:
    jurisdictions: Dict[str, Optional[str]]
    steps: List[ScenarioStep]


@st.composite
def replay_scenario_strategy(draw, max_events=12):
    """
    Generate an ordered event stream over a small pool of properties.

    Positions strictly ascend by (block, log index) and timestamps never
    decrease, as on a real ledger.
    """
    roots = draw(st.lists(st.sampled_from(ROOTS), min_size=1, max_size=4, unique=True))
    jurisdictions = {root: draw(jurisdiction_strategy()) for root in roots}

    count = draw(st.integers(min_value=1, max_value=max_events))
    block, log_index, timestamp = 1, 0, 1_000
    steps = []
    for index in range(count):
        if index and draw(st.booleans()):
            block += draw(st.integers(min_value=1, max_value=3))
            log_index = 0
            timestamp += draw(st.integers(min_value=0, max_value=30))
        elif index:
            log_index += 1

        steps.append(ScenarioStep(
            index=index,
            root=draw(st.sampled_from(roots)),
            submitter=draw(st.sampled_from(SUBMITTERS)),
            label=draw(label_strategy()),
            block_number=block,
            log_index=log_index,
            timestamp=timestamp,
        ))

    return ReplayScenario(jurisdictions=jurisdictions, steps=steps)
