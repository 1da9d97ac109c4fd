import json
from pathlib import Path

import pytest

from state_relayer.parsing import parse_dex_prices, parse_pool_pairs, parse_stats

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


def load_fixture(name: str):
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


class FakeSource:
    """Upstream source serving parsed fixture payloads; `fail` maps a call name to an exception."""

    def __init__(self, stats_payload, poolpairs_payload, dexprices_payload, *, fail=None):
        self.stats_payload = stats_payload
        self.poolpairs_payload = poolpairs_payload
        self.dexprices_payload = dexprices_payload
        self.fail = fail or {}
        self.calls = []

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    def get_stats(self):
        self._maybe_fail("stats")
        return parse_stats(self.stats_payload)

    def list_pool_pairs(self, limit):
        self._maybe_fail("poolpairs")
        self.limit = limit
        return parse_pool_pairs(self.poolpairs_payload)

    def list_dex_prices(self, denomination):
        self._maybe_fail("dexprices")
        return parse_dex_prices(self.dexprices_payload, denomination=denomination)


@pytest.fixture
def stats_payload():
    return load_fixture("ocean_stats.json")


@pytest.fixture
def poolpairs_payload():
    return load_fixture("ocean_poolpairs.json")


@pytest.fixture
def dexprices_payload():
    return load_fixture("ocean_dexprices.json")


@pytest.fixture
def fake_source(stats_payload, poolpairs_payload, dexprices_payload):
    return FakeSource(stats_payload, poolpairs_payload, dexprices_payload)
