import pytest

from minikern.idt import InterruptTable


def test_interrupt_gate_layout():
    table = InterruptTable(8)
    table.interrupt(40, 0x12345678)
    assert table.entry(40) == (0x00085678, 0x12348E00)


def test_trap_gate_with_user_privilege():
    table = InterruptTable(8)
    table.trap(14, 0x12345678, 3)
    low, high = table.entry(14)
    assert low == 0x00085678
    assert high & 0xFFFF0000 == 0x12340000
    assert (high >> 13) & 3 == 3
    assert high & 0x1F00 == 0x0F00


def test_unset_entries_are_zero():
    table = InterruptTable(8)
    table.interrupt(1, 0xDEADBEEF)
    assert table.entry(2) == (0, 0)


def test_trap_and_interrupt_differ_only_in_type():
    a = InterruptTable(0x10)
    b = InterruptTable(0x10)
    a.interrupt(5, 0xC0001234)
    b.trap(5, 0xC0001234, 0)
    assert a.entry(5)[0] == b.entry(5)[0]
    assert a.entry(5)[1] ^ b.entry(5)[1] == 0x0100


def test_out_of_range_vector():
    table = InterruptTable(8, 32)
    with pytest.raises(IndexError):
        table.interrupt(32, 0)
    with pytest.raises(IndexError):
        table.entry(-1)