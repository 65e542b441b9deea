"""Read-only access to an ext2 file system on a block device."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass

from minikern.block_io import BlockIO
from minikern.kformat import sprintf

_SUPERBLOCK_OFFSET = 1024
_SUPERBLOCK_FMT = "<13I6H4I2HI2H3I16s16sI"
_BLOCK_GROUP_FMT = "<3I4H12s"
_NODE_FMT = "<2H5I2H3I12I3I4I12s"
_ROOT_INODE = 2
_MAX_NAME = 256
_MAX_SYMLINKS = 10
_FAST_SYMLINK_LIMIT = 60

_TYPE_DIR = 4
_TYPE_FILE = 8
_TYPE_SYMLINK = 0xA


def _unpack(fmt: str, data: bytes, what: str) -> tuple:
    size = struct.calcsize(fmt)
    if len(data) < size:
        raise ValueError(f"{what} needs {size} bytes, got {len(data)}")
    return struct.unpack(fmt, data[:size])


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="surrogateescape")


@dataclass(frozen=True)
class SuperBlock:
    """The ext2 super block."""

    inodes_count: int
    blocks_count: int
    reserved_blocks_count: int
    free_blocks_count: int
    free_inodes_count: int
    first_data_block: int
    log_block_size: int
    log_frag_size: int
    blocks_per_group: int
    frags_per_group: int
    inodes_per_group: int
    mtime: int
    wtime: int
    mnt_count: int
    max_mnt_count: int
    magic: int
    state: int
    errors: int
    minor_rev_level: int
    lastcheck: int
    checkinterval: int
    creator_os: int
    rev_level: int
    def_resuid: int
    def_resgid: int
    first_inode: int
    inode_size: int
    block_group_nr: int
    feature_compat: int
    feature_incompat: int
    feature_ro_compat: int
    uuid: bytes
    volume_name: bytes
    algo_bitmap: int

    SIZE = struct.calcsize(_SUPERBLOCK_FMT)

    @staticmethod
    def from_bytes(data: bytes) -> SuperBlock:
        return SuperBlock(*_unpack(_SUPERBLOCK_FMT, data, "super block"))


@dataclass(frozen=True)
class BlockGroup:
    """One entry of the block group descriptor table."""

    block_bitmap: int
    inode_bitmap: int
    inode_table: int
    free_blocks_count: int
    free_inodes_count: int
    used_dirs_count: int
    pad: int
    reserved: bytes

    SIZE = struct.calcsize(_BLOCK_GROUP_FMT)

    @staticmethod
    def from_bytes(data: bytes) -> BlockGroup:
        return BlockGroup(*_unpack(_BLOCK_GROUP_FMT, data, "block group"))


@dataclass(frozen=True)
class NodeData:
    """The on-disk fields of an i-node."""

    mode: int
    uid: int
    size_low: int
    atime: int
    ctime: int
    mtime: int
    dtime: int
    gid: int
    n_links: int
    n_sectors: int
    flags: int
    os1: int
    direct: tuple[int, ...]
    indirect_1: int
    indirect_2: int
    indirect_3: int
    gen: int
    reserved1: int
    reserved2: int
    fragment: int
    os2: bytes

    SIZE = struct.calcsize(_NODE_FMT)

    @staticmethod
    def from_bytes(data: bytes) -> NodeData:
        v = _unpack(_NODE_FMT, data, "i-node")
        return NodeData(*v[:12], tuple(v[12:24]), *v[24:])

    def get_type(self) -> int:
        return self.mode >> 12

    def is_dir(self) -> bool:
        return self.get_type() == _TYPE_DIR

    def is_file(self) -> bool:
        return self.get_type() == _TYPE_FILE

    def is_symlink(self) -> bool:
        return self.get_type() == _TYPE_SYMLINK

    def show(self, what: str) -> str:
        """A short human-readable summary of the i-node."""
        return (
            sprintf("%s\n", what)
            + sprintf("    mode 0x%x\n", self.mode)
            + sprintf("    uid %d\n", self.uid)
            + sprintf("    gif %d\n", self.gid)
            + sprintf("    n_links %d\n", self.n_links)
            + sprintf("    n_sectors %d\n", self.n_sectors)
        )


class Node(BlockIO):
    """An i-node and the data it represents."""

    def __init__(self, device: BlockIO, number: int, block_size: int, data: NodeData) -> None:
        super().__init__(block_size)
        self.device = device
        self.number = number
        self.data = data

    def size_in_bytes(self) -> int:
        """File size, directory size, or symbolic link target length."""
        return self.data.size_low

    def read_block(self, index: int) -> bytes:
        """Read a file-system block of this node (direct and single-indirect only)."""
        if not 0 <= index < self.data.n_sectors // (self.block_size // 512):
            raise IndexError(f"block index {index} out of range for i-node {self.number}")
        refs_per_block = self.block_size // 4
        if index < 12:
            block_index = self.data.direct[index]
        elif index < 12 + refs_per_block:
            address = self.data.indirect_1 * self.block_size + (index - 12) * 4
            (block_index,) = self.device.read_struct(address, "<I")
        else:
            raise IndexError(f"index = {index}")
        block = self.device.read_all(block_index * self.block_size, self.block_size)
        if len(block) != self.block_size:
            raise EOFError(f"short read of block {block_index}")
        return block

    def is_dir(self) -> bool:
        return self.data.is_dir()

    def is_file(self) -> bool:
        return self.data.is_file()

    def is_symlink(self) -> bool:
        return self.data.is_symlink()

    def get_symbol(self) -> str:
        """The path a symbolic link refers to."""
        if not self.is_symlink():
            raise ValueError(f"i-node {self.number} is not a symbolic link")
        size = self.size_in_bytes()
        if size <= _FAST_SYMLINK_LIMIT:
            d = self.data
            raw = struct.pack("<15I", *d.direct, d.indirect_1, d.indirect_2, d.indirect_3)
            return _decode(raw[:size])
        raw = self.read_all(0, size)
        if len(raw) != size:
            raise EOFError(f"short symbolic link in i-node {self.number}")
        return _decode(raw)

    def n_links(self) -> int:
        """Number of hard links to this node."""
        return self.data.n_links

    def entries(self) -> Iterator[tuple[int, str]]:
        """Yield (i-number, name) for each entry of a directory."""
        if not self.is_dir():
            raise ValueError(f"i-node {self.number} is not a directory")
        offset = 0
        while offset < self.data.size_low:
            inode, total_size, name_length = self.read_struct(offset, "<IHB")
            name = self.read_all(offset + 8, name_length)
            if len(name) != name_length:
                raise EOFError(f"short directory entry at offset {offset}")
            if total_size == 0:
                raise ValueError(f"zero-length directory entry at offset {offset}")
            yield inode, _decode(name)
            offset += total_size

    def find(self, name: str) -> int:
        """The i-number linked to ``name`` in this directory, or 0."""
        found = 0
        for number, entry_name in self.entries():
            if entry_name == name:
                found = number
        return found

    def entry_count(self) -> int:
        """Number of entries in this directory."""
        return sum(1 for _ in self.entries())


class Ext2:
    """An ext2 file system mounted from a block device."""

    def __init__(self, device: BlockIO) -> None:
        self.device = device
        sb = SuperBlock.from_bytes(device.read_all(_SUPERBLOCK_OFFSET, SuperBlock.SIZE))
        self.superblock = sb
        if sb.blocks_per_group == 0 or sb.inodes_per_group == 0:
            raise ValueError("invalid super block")
        self._inode_size = sb.inode_size
        self._inodes_per_group = sb.inodes_per_group
        self._number_of_nodes = sb.inodes_count
        self._number_of_blocks = sb.blocks_count
        self._block_size = 1 << (sb.log_block_size + 10)
        self._n_groups = -(-sb.blocks_count // sb.blocks_per_group)
        self._sym_length = 0

        group_table_number = _SUPERBLOCK_OFFSET // self._block_size + 1
        table_size = BlockGroup.SIZE * self._n_groups
        raw = device.read_all(group_table_number * self._block_size, table_size)
        if len(raw) != table_size:
            raise ValueError("block group table is truncated")
        self._inode_tables = [
            BlockGroup.from_bytes(raw[i : i + BlockGroup.SIZE]).inode_table
            for i in range(0, table_size, BlockGroup.SIZE)
        ]
        self.root = self.get_node(_ROOT_INODE)

    def get_sym_length(self) -> int:
        """Symbolic links followed since the last call; resets the count."""
        length, self._sym_length = self._sym_length, 0
        return length

    def get_block_size(self) -> int:
        return self._block_size

    def get_inode_size(self) -> int:
        return self._inode_size

    def get_node(self, number: int) -> Node:
        """The i-node with the given i-number."""
        if not 0 < number <= self._number_of_nodes:
            raise ValueError(f"i-number {number} out of range")
        group_index, index_in_group = divmod(number - 1, self._inodes_per_group)
        if group_index >= self._n_groups:
            raise ValueError(f"i-number {number} outside every block group")
        table_base = self._inode_tables[group_index]
        if table_base > self._number_of_blocks:
            raise ValueError(f"i-node table at block {table_base} is out of range")
        node_offset = table_base * self._block_size + index_in_group * self._inode_size
        data = NodeData.from_bytes(self.device.read_all(node_offset, NodeData.SIZE))
        return Node(self.device, number, self._block_size, data)

    def find(self, current: Node | None, path: str) -> Node | None:
        """Resolve ``path`` starting at ``current``, following symbolic links.

        Link targets are resolved from the root. Returns None when a component
        does not exist or too many links are followed.
        """
        path = path.split("\0", 1)[0]
        idx = 0
        while True:
            if current is not None and current.is_symlink():
                self._sym_length += 1
                if self._sym_length >= _MAX_SYMLINKS:
                    return None
                current = self.find(self.root, current.get_symbol())
            while idx < len(path) and path[idx] == "/":
                idx += 1
            if current is None or idx >= len(path):
                return current
            end = path.find("/", idx)
            if end < 0:
                end = len(path)
            part = path[idx:end]
            if len(part) > _MAX_NAME:
                raise ValueError(f"path component longer than {_MAX_NAME} characters")
            idx = end
            number = current.find(part)
            if number == 0:
                return None
            current = self.get_node(number)