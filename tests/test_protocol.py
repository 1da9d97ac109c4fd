import pytest
from web3 import Web3

from state_relayer.calldata import decode_call, encode_call
from state_relayer.constants import DEFAULT_ADMIN_ROLE
from state_relayer.errors import AlreadyInBatchCallByBot, InvalidCallData, Unauthorized
from state_relayer.models import MasterNodeSummary, PairRecord, VaultSummary, zero_pair_record
from state_relayer.protocol import BOT_ROLE, ExecutionContext, StateRelayer

ADMIN = Web3.to_checksum_address("0x" + "a1" * 20)
BOT = Web3.to_checksum_address("0x" + "b0" * 20)
USER = Web3.to_checksum_address("0x" + "c3" * 20)
RELAYER = Web3.to_checksum_address("0x" + "5e" * 20)
NOW = 1_700_000_000

MASTER_NODE = MasterNodeSummary(108, 101, 102, 103, 101010)
VAULT = VaultSummary(2, 1000, 23432, 234, 23, 34244)
DEX_ETH = PairRecord(113, 102021, 2164, 14, 31269, 2314, 124, 3, 1231, 18)
DEX_BTC = PairRecord(112, 102020, 2163, 12, 31265, 2312, 123, 2, 1233, 18)


@pytest.fixture
def relayer():
    return StateRelayer(admin=ADMIN, bot=BOT, address=RELAYER, clock=lambda: NOW)


def _bot():
    return ExecutionContext.external(BOT)


def _state(r: StateRelayer):
    return (
        {s: r.dex_info(s) for s in r.dex_symbols},
        r.master_node_information,
        r.vault_info,
        len(r.events),
    )


def _encode_dex(symbols, records):
    return encode_call("updateDEXInfo", symbols, [rec.as_abi_tuple() for rec in records])


def test_roles_are_set_up(relayer):
    assert BOT_ROLE == bytes(Web3.keccak(text="BOT_ROLE"))
    assert relayer.has_role(DEFAULT_ADMIN_ROLE, ADMIN)
    assert relayer.has_role(BOT_ROLE, BOT)
    assert not relayer.has_role(BOT_ROLE, ADMIN)
    assert not relayer.has_role(BOT_ROLE, USER)
    assert relayer.master_node_information == MasterNodeSummary(0, 0, 0, 0, 0)
    assert relayer.dex_info("eth") == zero_pair_record()


def test_update_master_node_information_emits_event(relayer):
    relayer.update_master_node_information(_bot(), MASTER_NODE)
    assert relayer.master_node_information == MASTER_NODE
    event = relayer.events[-1]
    assert event.name == "UpdateMasterNodeInformation"
    assert event.args == (MASTER_NODE,)
    assert event.timestamp == NOW


def test_update_vault_general_information(relayer):
    relayer.update_vault_general_information(_bot(), VAULT)
    assert relayer.vault_info == VAULT
    assert relayer.events[-1].name == "UpdateVaultGeneralInformation"


def test_update_dex_info_overwrites_whole_record(relayer):
    relayer.update_dex_info(_bot(), ["eth", "btc"], [DEX_ETH, DEX_BTC])
    assert relayer.dex_info("eth") == DEX_ETH
    assert relayer.dex_info("btc") == DEX_BTC

    replacement = PairRecord(1, 0, 0, 0, 0, 0, 0, 0, 0, 18)
    relayer.update_dex_info(_bot(), ["eth"], [replacement])
    assert relayer.dex_info("eth") == replacement
    assert relayer.dex_info("btc") == DEX_BTC
    assert relayer.events[-1].args == (("eth",), (replacement,))


def test_update_dex_info_length_mismatch_reverts(relayer):
    before = _state(relayer)
    with pytest.raises(InvalidCallData):
        relayer.update_dex_info(_bot(), ["eth", "btc"], [DEX_ETH])
    assert _state(relayer) == before


@pytest.mark.parametrize(
    ("fn_name", "args"),
    [
        ("updateMasterNodeInformation", (MASTER_NODE.as_abi_tuple(),)),
        ("updateVaultGeneralInformation", (VAULT.as_abi_tuple(),)),
        ("updateDEXInfo", (["eth"], [DEX_ETH.as_abi_tuple()])),
        ("batchCallByBot", ([bytes.fromhex(encode_call("updateVaultGeneralInformation", VAULT.as_abi_tuple())[2:])],)),
    ],
)
@pytest.mark.parametrize("sender", [USER, ADMIN])
def test_non_operator_is_rejected(relayer, fn_name, args, sender):
    before = _state(relayer)
    with pytest.raises(Unauthorized) as exc_info:
        relayer.execute(sender, encode_call(fn_name, *args))
    assert exc_info.value.account == sender
    assert exc_info.value.role == BOT_ROLE
    assert str(exc_info.value) == f"AccessControl: account {sender.lower()} is missing role 0x{BOT_ROLE.hex()}"
    assert _state(relayer) == before


def test_batch_call_updates_everything(relayer):
    calls = [
        encode_call("updateMasterNodeInformation", MASTER_NODE.as_abi_tuple()),
        encode_call("updateVaultGeneralInformation", VAULT.as_abi_tuple()),
        _encode_dex(["eth", "btc"], [DEX_ETH, DEX_BTC]),
    ]
    relayer.batch_call_by_bot(_bot(), calls)

    assert relayer.master_node_information == MASTER_NODE
    assert relayer.vault_info == VAULT
    assert relayer.dex_info("eth") == DEX_ETH
    assert relayer.dex_info("btc") == DEX_BTC
    assert [e.name for e in relayer.events[-3:]] == [
        "UpdateMasterNodeInformation",
        "UpdateVaultGeneralInformation",
        "UpdateDEXInfo",
    ]
    assert not relayer.in_batch_call_by_bot


def test_batch_call_through_calldata(relayer):
    inner = [encode_call("updateVaultGeneralInformation", VAULT.as_abi_tuple())]
    relayer.execute(BOT, encode_call("batchCallByBot", [bytes.fromhex(c[2:]) for c in inner]))
    assert relayer.vault_info == VAULT


@pytest.mark.parametrize(
    "failing_call",
    [
        _encode_dex(["eth", "btc"], [DEX_ETH]),
        encode_call("grantRole", DEFAULT_ADMIN_ROLE, BOT),
        "0xdeadbeef",
    ],
)
def test_batch_is_atomic(relayer, failing_call):
    before = _state(relayer)
    calls = [
        encode_call("updateMasterNodeInformation", MASTER_NODE.as_abi_tuple()),
        failing_call,
        encode_call("updateVaultGeneralInformation", VAULT.as_abi_tuple()),
    ]
    with pytest.raises((InvalidCallData, Unauthorized)):
        relayer.batch_call_by_bot(_bot(), calls)
    assert _state(relayer) == before
    assert not relayer.in_batch_call_by_bot


def test_batch_cannot_grant_roles(relayer):
    encoded_grant = encode_call("grantRole", DEFAULT_ADMIN_ROLE, BOT)
    with pytest.raises(Unauthorized) as exc_info:
        relayer.batch_call_by_bot(_bot(), [encoded_grant])
    assert exc_info.value.role == DEFAULT_ADMIN_ROLE
    assert not relayer.has_role(DEFAULT_ADMIN_ROLE, BOT)


def _nested_batch():
    return encode_call("batchCallByBot", [bytes.fromhex(encode_call("BOT_ROLE")[2:])])


def test_nested_batch_is_rejected(relayer):
    before = _state(relayer)
    with pytest.raises(AlreadyInBatchCallByBot):
        relayer.batch_call_by_bot(_bot(), [_nested_batch()])
    assert _state(relayer) == before
    assert not relayer.in_batch_call_by_bot


def test_nested_batch_is_rejected_even_when_relayer_holds_bot_role(relayer):
    relayer.grant_role(ExecutionContext.external(ADMIN), BOT_ROLE, RELAYER)
    assert relayer.has_role(BOT_ROLE, RELAYER)
    with pytest.raises(AlreadyInBatchCallByBot):
        relayer.batch_call_by_bot(_bot(), [_nested_batch()])
    with pytest.raises(AlreadyInBatchCallByBot):
        relayer.execute(BOT, encode_call("batchCallByBot", [bytes.fromhex(_nested_batch()[2:])]))
    assert not relayer.in_batch_call_by_bot


def test_nested_batch_aborts_earlier_calls(relayer):
    calls = [encode_call("updateVaultGeneralInformation", VAULT.as_abi_tuple()), _nested_batch()]
    with pytest.raises(AlreadyInBatchCallByBot):
        relayer.batch_call_by_bot(_bot(), calls)
    assert relayer.vault_info == VaultSummary(0, 0, 0, 0, 0, 0)


def test_guard_is_released_after_failure(relayer):
    with pytest.raises(AlreadyInBatchCallByBot):
        relayer.batch_call_by_bot(_bot(), [_nested_batch()])
    relayer.batch_call_by_bot(_bot(), [encode_call("updateVaultGeneralInformation", VAULT.as_abi_tuple())])
    assert relayer.vault_info == VAULT


def test_batch_views_return_values(relayer):
    results = relayer.batch_call_by_bot(_bot(), [encode_call("BOT_ROLE"), encode_call("hasRole", BOT_ROLE, BOT)])
    assert results == [BOT_ROLE, True]


def test_relayer_granted_admin_role_lets_batches_use_it(relayer):
    # Granting the relayer itself a role exposes that role to every batch caller.
    relayer.grant_role(ExecutionContext.external(ADMIN), DEFAULT_ADMIN_ROLE, RELAYER)
    relayer.batch_call_by_bot(_bot(), [encode_call("grantRole", BOT_ROLE, USER)])
    assert relayer.has_role(BOT_ROLE, USER)


def test_relayer_role_does_not_apply_to_direct_calls(relayer):
    relayer.grant_role(ExecutionContext.external(ADMIN), BOT_ROLE, RELAYER)
    with pytest.raises(Unauthorized):
        relayer.update_vault_general_information(ExecutionContext.external(USER), VAULT)


def test_role_management(relayer):
    admin = ExecutionContext.external(ADMIN)
    relayer.grant_role(admin, BOT_ROLE, USER)
    assert relayer.has_role(BOT_ROLE, USER)
    assert relayer.events[-1].name == "RoleGranted"
    relayer.revoke_role(admin, BOT_ROLE, USER)
    assert not relayer.has_role(BOT_ROLE, USER)
    assert relayer.events[-1].name == "RoleRevoked"

    with pytest.raises(Unauthorized):
        relayer.grant_role(_bot(), BOT_ROLE, USER)


def test_views_through_calldata(relayer):
    relayer.update_dex_info(_bot(), ["eth"], [DEX_ETH])
    assert relayer.execute(USER, encode_call("DEXInfoMapping", "eth")) == DEX_ETH
    assert relayer.execute(USER, encode_call("DEFAULT_ADMIN_ROLE")) == DEFAULT_ADMIN_ROLE


def test_decode_call_round_trips_struct_arguments():
    fn_name, args = decode_call(encode_call("updateVaultGeneralInformation", VAULT.as_abi_tuple()))
    assert fn_name == "updateVaultGeneralInformation"
    assert "_vaultInfo" in args


def test_undecodable_calldata(relayer):
    with pytest.raises(InvalidCallData):
        relayer.execute(BOT, "0x12345678")
