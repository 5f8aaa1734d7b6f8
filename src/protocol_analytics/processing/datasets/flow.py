"""Flow (open-ended streams) analytics."""

from protocol_analytics.ingestion.fetchers import flow_evm
from protocol_analytics.processing.aggregator import (
    DatasetDefinition,
    MetricSpec,
    fetcher,
    single,
)
from protocol_analytics.shared.models.enums import DatasetKey
from protocol_analytics.shared.models.snapshots import FlowSnapshot


def _zero() -> int:
    return 0


FLOW = DatasetDefinition(
    key=DatasetKey.FLOW_ANALYTICS.value,
    snapshot_model=FlowSnapshot,
    metrics=(
        MetricSpec(
            "total_deposits",
            (
                fetcher(
                    "total_deposits", flow_evm.SOURCE, flow_evm.fetch_total_deposits, _zero
                ),
            ),
            single,
        ),
    ),
)
