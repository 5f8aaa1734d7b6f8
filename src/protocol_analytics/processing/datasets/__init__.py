"""Dataset catalogue: one definition per independently published snapshot."""

from protocol_analytics.processing.aggregator import DatasetDefinition
from protocol_analytics.shared.models.enums import DatasetKey

from .airdrops import AIRDROPS
from .analytics import ANALYTICS
from .flow import FLOW
from .solana import SOLANA

DATASETS: dict[str, DatasetDefinition] = {
    definition.key: definition for definition in (ANALYTICS, AIRDROPS, SOLANA, FLOW)
}


def get_dataset(key: DatasetKey | str) -> DatasetDefinition:
    """Look up a dataset definition; raises ValueError for unknown keys."""
    return DATASETS[DatasetKey(key).value]


__all__ = ["AIRDROPS", "ANALYTICS", "DATASETS", "FLOW", "SOLANA", "get_dataset"]
