"""Machine configuration discovered from BIOS memory data and ACPI tables."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

MAX_PROCS = 16

_RSD_SIGNATURE = b"RSD PTR "
_SDT_SIZE = 36
_MADT_SIZE = _SDT_SIZE + 8
_EBDA_POINTER = 0x40E
_BIOS_AREA = (0x000E0000, 0x00100000)
_EBDA_SPAN = 1 << 10


@dataclass(frozen=True)
class MemInfo:
    """Register values reported by the BIOS memory-size query."""

    ax: int
    bx: int
    cx: int
    dx: int


@dataclass(frozen=True)
class ApicInfo:
    """One processor's local APIC."""

    processor_id: int
    apic_id: int
    flags: int


@dataclass
class Config:
    """What the kernel knows about the machine."""

    mem_size: int = 0
    n_other_procs: int = 0
    total_procs: int = 0
    local_apic: int = 0
    madt_flags: int = 0
    io_apic: int = 0
    apic_info: list[ApicInfo] = field(default_factory=list)
    oemid: str = ""


def _u32(memory: bytes, address: int) -> int:
    return struct.unpack_from("<I", memory, address)[0]


def mem_above_1m(mem_info: MemInfo) -> int:
    """Bytes of memory above the first megabyte."""
    if not (mem_info.cx == 15 * 1024 or mem_info.dx == 0):
        raise ValueError("inconsistent BIOS memory information")
    return ((mem_info.ax | mem_info.cx) << 10) + ((mem_info.bx | mem_info.dx) << 16)


def _find_rsd_in_range(memory: bytes, start: int, end: int) -> int | None:
    end = min(end, len(memory) - len(_RSD_SIGNATURE) + 1)
    for address in range(start, end, 16):
        if memory[address : address + len(_RSD_SIGNATURE)] == _RSD_SIGNATURE:
            return address
    return None


def find_rsd(memory: bytes) -> int | None:
    """Address of the root system description pointer, or None.

    The BIOS area is searched first, then the first kilobyte of the
    extended BIOS data area.
    """
    found = _find_rsd_in_range(memory, *_BIOS_AREA)
    if found is None and len(memory) >= _EBDA_POINTER + 2:
        base = struct.unpack_from("<H", memory, _EBDA_POINTER)[0] << 4
        found = _find_rsd_in_range(memory, base, base + _EBDA_SPAN)
    return found


def find_sdt(memory: bytes, rsd_address: int, name: str) -> int | None:
    """Address of the system description table called ``name``, or None."""
    rsdt = _u32(memory, rsd_address + 16)
    entries = (_u32(memory, rsdt + 4) - _SDT_SIZE) // 4
    wanted = name.encode("ascii")[:4]
    for i in range(entries):
        table = _u32(memory, rsdt + _SDT_SIZE + 4 * i)
        if memory[table : table + 4] == wanted:
            return table
    return None


def config_init(memory: bytes, mem_info: MemInfo) -> Config:
    """Build the configuration from physical memory and BIOS memory information."""
    config = Config(mem_size=mem_above_1m(mem_info) + (1 << 20))
    rsdp = find_rsd(memory)
    if rsdp is None:
        raise ValueError("no root system description pointer found")
    config.oemid = memory[rsdp + 9 : rsdp + 15].decode("ascii", errors="replace")

    madt = find_sdt(memory, rsdp, "APIC")
    if madt is None:
        raise ValueError("no APIC table found")
    config.local_apic = _u32(memory, madt + _SDT_SIZE)
    config.madt_flags = _u32(memory, madt + _SDT_SIZE + 4)

    remaining = _u32(memory, madt + 4) - _MADT_SIZE
    entry = madt + _MADT_SIZE
    while remaining > 0:
        kind, length = memory[entry], memory[entry + 1]
        if length == 0:
            raise ValueError(f"zero-length APIC table entry at {entry:#x}")
        if kind == 0:
            processor_id, apic_id = memory[entry + 2], memory[entry + 3]
            # processor 0 is the boot processor, which is not listed
            if processor_id != 0:
                if len(config.apic_info) >= MAX_PROCS:
                    raise ValueError(f"more than {MAX_PROCS} processors")
                config.apic_info.append(
                    ApicInfo(processor_id, apic_id, _u32(memory, entry + 4))
                )
        elif kind == 1:
            config.io_apic = _u32(memory, entry + 4)
        entry += length
        remaining -= length

    config.n_other_procs = len(config.apic_info)
    config.total_procs = config.n_other_procs + 1
    return config