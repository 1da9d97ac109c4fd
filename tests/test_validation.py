from dataclasses import replace
from types import MappingProxyType

import pytest

from state_relayer.aggregator import aggregate
from state_relayer.config import RelayerConfig
from state_relayer.constants import UINT256_MAX
from state_relayer.errors import InvalidNumericInput
from state_relayer.formatters import format_fixed_point, format_percent, hex_to_bytes, normalize_hex_str, short_hex
from state_relayer.validation import validate_snapshot

NOW = 1_700_000_000


@pytest.fixture
def snapshot(fake_source):
    snap = aggregate(fake_source, RelayerConfig(), now=NOW)
    assert snap is not None
    return snap


def test_valid_snapshot_has_no_issues(snapshot):
    assert validate_snapshot(snapshot) == []


def test_negative_pair_field(snapshot):
    btc = replace(snapshot.pair_records["dBTC-DFI"], rewards=-1)
    bad = replace(snapshot, pair_records=MappingProxyType({**snapshot.pair_records, "dBTC-DFI": btc}))
    with pytest.raises(InvalidNumericInput, match="Pair dBTC-DFI: negative rewards"):
        validate_snapshot(bad)
    assert validate_snapshot(bad, warn_only=True) == ["Pair dBTC-DFI: negative rewards: -1"]


def test_values_above_uint256_max(snapshot):
    btc = replace(snapshot.pair_records["dBTC-DFI"], volume_24h=UINT256_MAX + 1)
    bad = replace(
        snapshot,
        pair_records=MappingProxyType({**snapshot.pair_records, "dBTC-DFI": btc}),
        dex_summary=replace(snapshot.dex_summary, total_24h_volume=UINT256_MAX),
    )
    with pytest.raises(InvalidNumericInput, match="volume_24h exceeds uint256"):
        validate_snapshot(bad)
    assert validate_snapshot(bad, warn_only=True) == [f"Pair dBTC-DFI: volume_24h exceeds uint256: {UINT256_MAX + 1}"]


def test_mixed_decimals(snapshot):
    eth = replace(snapshot.pair_records["dETH-dUSDT"], decimals=18)
    bad = replace(snapshot, pair_records=MappingProxyType({**snapshot.pair_records, "dETH-dUSDT": eth}))
    issues = validate_snapshot(bad, warn_only=True)
    assert issues == ["Pair dETH-dUSDT: decimals 18 differ from snapshot decimals 10"]


def test_negative_summaries_are_all_reported(snapshot):
    bad = replace(
        snapshot,
        vault_summary=replace(snapshot.vault_summary, total_loan_value=-5),
        master_node_summary=replace(snapshot.master_node_summary, ten_year_locked=-7),
    )
    issues = validate_snapshot(bad, warn_only=True)
    assert issues == [
        "Vault summary: negative total_loan_value: -5",
        "Master-node summary: negative ten_year_locked: -7",
    ]


def test_format_fixed_point():
    assert format_fixed_point(12345 * 10**6, 10) == "1.2345"
    assert format_fixed_point(10**18, 10, places=2) == "100,000,000.00"
    assert format_fixed_point(0, 10, places=2) == "0.00"


def test_format_percent_and_short_hex():
    assert format_percent(234) == "234%"
    assert short_hex("0x" + "ab" * 32) == "0xabababab...ababab"
    assert short_hex("local-1") == "local-1"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("0xAbC1", "0xAbC1"),
        ("abc1", "0xabc1"),
        (b"\x01\x02", "0x0102"),
    ],
)
def test_normalize_hex_str(value, expected):
    assert normalize_hex_str(value) == expected


def test_hex_to_bytes():
    assert hex_to_bytes("0x0102") == b"\x01\x02"
    assert hex_to_bytes(bytearray(b"\x03")) == b"\x03"
