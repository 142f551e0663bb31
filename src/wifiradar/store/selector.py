"""Best-interface selection over a status snapshot."""

from wifiradar.models.base import Sample, StatusSnapshot


def select_best(snapshot: StatusSnapshot) -> Sample | None:
    """Pick the connected interface with the strongest signal.

    Ties on signal quality go to the lexicographically smallest interface
    name. Interfaces without data or with ``connected=False`` are not
    eligible.

    Args:
        snapshot: Status snapshot to choose from

    Returns:
        The winning sample, or None if no interface is eligible
    """
    candidates = [sample for sample in snapshot.samples() if sample.connected]
    if not candidates:
        return None
    return min(candidates, key=lambda s: (-s.signal_quality, s.interface))
