import pytest

from ticketgate.tickets import codec
from ticketgate.tickets.models import TicketIdentity


def test_encode_joins_fields_in_order():
    identity = TicketIdentity(ticket_id="12345", contract_address="0x25b2...180F14", network_id="84532")

    assert codec.encode(identity) == "12345-0x25b2...180F14-84532"


@pytest.mark.parametrize(
    "identity",
    [
        TicketIdentity(ticket_id="1", contract_address="0xabc", network_id="1"),
        TicketIdentity(ticket_id="12345", contract_address="0x25b2C2eaf9b8EC899d9cd44Ac74001eF17180F14", network_id="84532"),
        TicketIdentity(ticket_id="vip_007", contract_address="0xDEAD", network_id="0084532"),
    ],
)
def test_decode_reverses_encode(identity):
    assert codec.decode(codec.encode(identity)) == identity


@pytest.mark.parametrize("code", ["a-b", "a-b-c-d", "", "12345"])
def test_decode_rejects_wrong_field_count(code):
    with pytest.raises(codec.MalformedCodeError):
        codec.decode(code)


def test_decode_keeps_network_id_textual():
    identity = codec.decode("a-b-c")
    assert identity == TicketIdentity(ticket_id="a", contract_address="b", network_id="c")

    leading_zero = codec.decode("7-0xabc-000084532")
    assert leading_zero.network_id == "000084532"


@pytest.mark.parametrize(
    "identity",
    [
        TicketIdentity(ticket_id="12-345", contract_address="0xabc", network_id="1"),
        TicketIdentity(ticket_id="12345", contract_address="0xa-bc", network_id="1"),
        TicketIdentity(ticket_id="", contract_address="0xabc", network_id="1"),
    ],
)
def test_encode_rejects_ambiguous_identities(identity):
    with pytest.raises(codec.InvalidTicketIdentityError):
        codec.encode(identity)
